"""Seam for the external screenshot text-extraction service."""

from typing import Protocol


class TextExtractor(Protocol):
    async def extract_text(self, image_ref: str) -> str:
        """Return the text found in the image, or "" when there is none."""
        ...


class NullTextExtractor:
    """Used when no OCR service is configured."""

    async def extract_text(self, image_ref: str) -> str:
        return ""
