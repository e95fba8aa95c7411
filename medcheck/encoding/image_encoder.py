"""Reads captured images and turns them into base64 transport payloads."""

import asyncio
import base64
import binascii
import mimetypes
from pathlib import Path
from typing import Protocol

from medcheck.encoding.exceptions import EncodingError
from medcheck.encoding.models import EncodedImage

_DEFAULT_MEDIA_TYPE = "application/octet-stream"


class ImageSource(Protocol):
    @property
    def path(self) -> Path: ...

    @property
    def media_type(self) -> str: ...


def strip_data_uri(text: str) -> str:
    """Return only the payload body of a ``data:<type>;base64,<body>`` string."""
    if text.startswith("data:") and "," in text:
        return text.split(",", 1)[1]
    return text


def decode_payload(payload: str) -> bytes:
    """Decode a payload produced by ImageEncoder back into raw bytes.

    Raises:
        EncodingError: if the payload is not valid base64.
    """
    try:
        return base64.b64decode(strip_data_uri(payload), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise EncodingError(f"Invalid base64 payload: {exc}") from exc


def guess_media_type(path: Path) -> str:
    media_type, _ = mimetypes.guess_type(path.name)
    return media_type or _DEFAULT_MEDIA_TYPE


class ImageEncoder:
    """Encodes image files for the recognition and verification endpoints."""

    async def encode(self, image: ImageSource) -> EncodedImage:
        """Read the image file without blocking the event loop and base64 it.

        Raises:
            EncodingError: if the file cannot be read or is empty.
        """
        raw = await asyncio.to_thread(self._read, image.path)
        if not raw:
            raise EncodingError(f"Image file is empty: {image.path}")
        payload = base64.b64encode(raw).decode("ascii")
        media_type = image.media_type or guess_media_type(image.path)
        return EncodedImage(payload=payload, media_type=media_type)

    @staticmethod
    def _read(path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as exc:
            raise EncodingError(f"Failed to read image {path}: {exc}") from exc
