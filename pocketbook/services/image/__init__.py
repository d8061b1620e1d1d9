"""Image processing services package."""

from pocketbook.services.image.normalizer import (
    ImageNormalizationError,
    ImageNormalizer,
    ImageTooLargeError,
    NormalizedImage,
    ReceiptUploadSession,
    UnsupportedImageError,
    target_size,
)

__all__ = [
    "ImageNormalizationError",
    "ImageNormalizer",
    "ImageTooLargeError",
    "NormalizedImage",
    "ReceiptUploadSession",
    "UnsupportedImageError",
    "target_size",
]
