"""AI Agents package."""

from pocketbook.agents.smart_parser import (
    SmartParseAgent,
    SmartParseUnavailableError,
    resolve_category,
)

__all__ = [
    "SmartParseAgent",
    "SmartParseUnavailableError",
    "resolve_category",
]
