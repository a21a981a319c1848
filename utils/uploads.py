"""
Artwork upload validation and data-URI transcoding.

The shopper's file is never written to disk: it is checked, decoded once
with Pillow to prove it is an image, and kept only as a base64 data URI.
"""
import base64
import binascii
import io
import logging
from dataclasses import dataclass
from typing import Optional

from PIL import Image, UnidentifiedImageError

from constants import (
    ARTWORK_MIME_PREFIX,
    MAX_ARTWORK_BYTES,
    MSG_INVALID_FILE_TYPE,
    MSG_FILE_TOO_LARGE,
)
from models import Artwork

logger = logging.getLogger(__name__)

SVG_MIME_TYPE = "image/svg+xml"


class TranscodeError(Exception):
    """Raised when an accepted upload cannot be read as an image."""


@dataclass(frozen=True)
class UploadedFile:
    """File descriptor crossing the browser -> core boundary."""
    filename: str
    content_type: str
    size: int
    data: bytes

    @classmethod
    def from_file_storage(cls, file_storage):
        """
        Build a descriptor from a Werkzeug FileStorage.

        The stream is read fully here; the FileStorage handle is not kept.
        """
        data = file_storage.read()
        return cls(
            filename=file_storage.filename or "",
            content_type=(file_storage.mimetype or file_storage.content_type or "").lower(),
            size=len(data),
            data=data,
        )


def validate_artwork_upload(upload) -> Optional[str]:
    """
    Check type then size of an uploaded file.

    Returns:
        None when the file is acceptable, otherwise the user-facing message.
    """
    if not (upload.content_type or "").lower().startswith(ARTWORK_MIME_PREFIX):
        return MSG_INVALID_FILE_TYPE
    if upload.size > MAX_ARTWORK_BYTES:
        return MSG_FILE_TOO_LARGE
    return None


def display_file_name(filename):
    """Original name without any client-side directory part."""
    name = (filename or "").replace("\\", "/").rsplit("/", 1)[-1].strip()
    return name or "artwork"


def encode_data_uri(data: bytes, mime_type: str) -> str:
    payload = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{payload}"


def decode_data_uri(data_uri: str) -> bytes:
    """
    Inverse of encode_data_uri.

    Raises:
        ValueError: if the string is not a base64 data URI.
    """
    if not data_uri or not data_uri.startswith("data:") or ";base64," not in data_uri:
        raise ValueError("Not a base64 data URI")
    _, payload = data_uri.split(";base64,", 1)
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Malformed base64 payload: {e}")


def _read_svg(data: bytes):
    try:
        text = data[:4096].decode("utf-8", errors="strict")
    except UnicodeDecodeError:
        raise TranscodeError("SVG is not valid UTF-8")
    if "<svg" not in text.lower():
        raise TranscodeError("SVG document has no <svg> root")
    return None, None


def _read_raster(data: bytes):
    try:
        # verify() consumes the parser, so re-open for the dimensions
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
        with Image.open(io.BytesIO(data)) as img:
            return img.width, img.height
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
        raise TranscodeError(f"Invalid image file: {e}")


def transcode_to_artwork(upload) -> Artwork:
    """
    Read an accepted upload into a self-contained Artwork.

    Raises:
        TranscodeError: if the bytes are empty or do not decode as an image.
    """
    if not upload.data:
        raise TranscodeError("Empty file")

    mime_type = upload.content_type.lower()
    if mime_type == SVG_MIME_TYPE:
        width, height = _read_svg(upload.data)
    else:
        width, height = _read_raster(upload.data)

    artwork = Artwork(
        data_uri=encode_data_uri(upload.data, mime_type),
        file_name=display_file_name(upload.filename),
        mime_type=mime_type,
        size_bytes=upload.size,
        width=width,
        height=height,
    )
    logger.info(
        f"[Uploads] Transcoded {artwork.file_name} ({mime_type}, {upload.size} bytes, "
        f"{width or '?'}x{height or '?'})"
    )
    return artwork
