"""
Receipt Image Normalizer

DESIGN DECISION: Receipt photos are stored inline with the expense (as a
data URL), so they are made small before they ever reach storage:
- the longest side is brought down to at most 800 px (never upscaled)
- the image is re-encoded as JPEG at quality 0.6

Normalization is best effort. An unreadable file does not block the
expense: the async entry point returns None and the record is saved
without an image.

A phone camera shot of 4000x3000 typically shrinks from several MB to
well under 100 KB.
"""

import asyncio
import base64
from io import BytesIO
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError
from pydantic import BaseModel, Field

from pocketbook.audit import AuditLogger
from pocketbook.config import get_settings
from pocketbook.models.audit import AuditEventBuilder


DATA_URL_PREFIX = "data:image/jpeg;base64,"


class ImageNormalizationError(Exception):
    """Base exception for receipt images that cannot be normalized."""
    pass


class UnsupportedImageError(ImageNormalizationError):
    """File is not an image, or not in an accepted format."""
    pass


class ImageTooLargeError(ImageNormalizationError):
    """File exceeds the upload size limit."""
    pass


class NormalizedImage(BaseModel):
    """A receipt image ready to be attached to an expense."""

    data_url: str = Field(..., description="data:image/jpeg;base64,... payload")
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    original_width: int = Field(..., gt=0)
    original_height: int = Field(..., gt=0)
    encoded_bytes: int = Field(..., ge=0, description="Size of the JPEG before base64")

    @property
    def was_resized(self) -> bool:
        return (self.width, self.height) != (self.original_width, self.original_height)


def target_size(width: int, height: int, max_dimension: int = 800) -> tuple[int, int]:
    """
    Output dimensions for a width x height image.

    scale = min(1, max_dimension / longest_side), so images are only
    ever shrunk. Each side is rounded and kept at least 1 px.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid image size {width}x{height}")
    scale = min(1.0, max_dimension / max(width, height))
    return max(1, round(width * scale)), max(1, round(height * scale))


class ImageNormalizer:
    """
    Downscale and re-encode receipt images.

    `normalize_bytes` is the synchronous core and raises on bad input.
    `normalize` runs it off the event loop and degrades to None.
    """

    def __init__(self, audit_logger: Optional[AuditLogger] = None):
        self._settings = get_settings().app
        self._audit_logger = audit_logger

    @property
    def max_dimension(self) -> int:
        return self._settings.receipt_max_dimension

    def normalize_bytes(self, image_bytes: bytes) -> NormalizedImage:
        """
        Normalize raw image bytes.

        Raises:
            ImageTooLargeError: If the file is over the upload limit
            UnsupportedImageError: If Pillow cannot read it or the format
                is not accepted
        """
        if not image_bytes:
            raise UnsupportedImageError("Empty file")
        if len(image_bytes) > self._settings.max_upload_size_bytes:
            raise ImageTooLargeError(
                f"File is {len(image_bytes)} bytes, limit is "
                f"{self._settings.max_upload_size_bytes}"
            )

        try:
            img = Image.open(BytesIO(image_bytes))
            img.load()
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise UnsupportedImageError(f"Unreadable image: {e}")

        fmt = (img.format or "").lower()
        if fmt not in self._settings.supported_formats_list:
            raise UnsupportedImageError(f"Unsupported image format: {fmt or 'unknown'}")

        # Phone photos carry their rotation in EXIF
        img = ImageOps.exif_transpose(img)
        original_width, original_height = img.size
        width, height = target_size(original_width, original_height, self.max_dimension)

        if (width, height) != img.size:
            img = img.resize((width, height), Image.LANCZOS)

        if img.mode != "RGB":
            if img.mode in ("RGBA", "LA", "P"):
                # JPEG has no alpha: flatten onto white
                rgba = img.convert("RGBA")
                background = Image.new("RGB", rgba.size, (255, 255, 255))
                background.paste(rgba, mask=rgba.split()[-1])
                img = background
            else:
                img = img.convert("RGB")

        buffer = BytesIO()
        img.save(buffer, format="JPEG", quality=self._settings.receipt_pillow_quality)
        encoded = buffer.getvalue()

        return NormalizedImage(
            data_url=DATA_URL_PREFIX + base64.b64encode(encoded).decode("ascii"),
            width=width,
            height=height,
            original_width=original_width,
            original_height=original_height,
            encoded_bytes=len(encoded),
        )

    async def normalize(
        self,
        image_bytes: bytes,
        correlation_id=None,
    ) -> Optional[NormalizedImage]:
        """
        Normalize in a worker thread.

        Returns:
            The normalized image, or None if the input could not be used
        """
        try:
            result = await asyncio.to_thread(self.normalize_bytes, image_bytes)
        except ImageNormalizationError as e:
            if self._audit_logger:
                self._audit_logger.log(AuditEventBuilder.image_rejected(str(e), correlation_id))
            return None

        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.image_normalized(
                original_size=(result.original_width, result.original_height),
                stored_size=(result.width, result.height),
                encoded_bytes=result.encoded_bytes,
                correlation_id=correlation_id,
            ))
        return result


class ReceiptUploadSession:
    """
    Serializes receipt uploads for one open expense form.

    Every submission takes a new, strictly increasing token. Starting a
    new upload cancels the one in flight, and a result whose token is no
    longer the latest is discarded, so the form always shows the image
    the user picked last.
    """

    def __init__(
        self,
        normalizer: ImageNormalizer,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._normalizer = normalizer
        self._audit_logger = audit_logger
        self._token = 0
        self._task: Optional[asyncio.Task] = None
        self._latest: Optional[NormalizedImage] = None
        # (source_id, result) of the last finished submission
        self._finished: Optional[tuple[str, Optional[NormalizedImage]]] = None

    @property
    def current_token(self) -> int:
        return self._token

    @property
    def latest(self) -> Optional[NormalizedImage]:
        """Result of the most recent completed, non-superseded upload."""
        return self._latest

    def cancel(self) -> None:
        """Abandon any upload in flight (e.g. the form was closed)."""
        self._token += 1
        self._cancel_pending()
        self._finished = None

    def clear(self) -> None:
        self.cancel()
        self._latest = None

    def _cancel_pending(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
            if self._audit_logger:
                self._audit_logger.log(AuditEventBuilder.image_superseded(self._token - 1))
        self._task = None

    async def submit(
        self,
        image_bytes: bytes,
        correlation_id=None,
        source_id: Optional[str] = None,
    ) -> Optional[NormalizedImage]:
        """
        Normalize a newly picked image.

        `source_id` identifies the picked file. Submitting the same id again
        returns the earlier result without decoding the image a second time.

        Returns:
            The image, or None if it was unreadable or superseded
        """
        if source_id is not None and self._finished is not None:
            finished_id, finished_result = self._finished
            if finished_id == source_id and self._task is None:
                return finished_result

        self._finished = None
        self._token += 1
        token = self._token
        self._cancel_pending()

        task = asyncio.ensure_future(self._normalizer.normalize(image_bytes, correlation_id))
        self._task = task

        try:
            result = await task
        except asyncio.CancelledError:
            if token != self._token:
                return None
            raise

        if token != self._token:
            return None

        self._task = None
        if result is not None:
            self._latest = result
        if source_id is not None:
            self._finished = (source_id, result)
        return result
