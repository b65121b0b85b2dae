"""
Image upload handling.

Uploaded images are buffered in memory, validated, and stored inline as
base64 data URLs (`data:image/png;base64,...`). The same module decodes
stored data URLs back to bytes when an image is served directly.
"""

from __future__ import annotations

import base64
import binascii
import re

from fastapi import HTTPException, UploadFile, status

from . import settings

DEFAULT_MAX_IMAGE_BYTES = 3 * 1024 * 1024  # 3 MiB per file
DEFAULT_MAX_POST_IMAGES = 5
DEFAULT_ALLOWED_IMAGE_TYPES = ["image/png", "image/jpeg", "image/gif", "image/webp"]

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<payload>[A-Za-z0-9+/=\s]*)$")


class InvalidDataURL(ValueError):
    pass


def max_image_bytes() -> int:
    value = settings.env_int("MAX_IMAGE_BYTES", DEFAULT_MAX_IMAGE_BYTES)
    return value if value > 0 else DEFAULT_MAX_IMAGE_BYTES


def max_post_images() -> int:
    value = settings.env_int("MAX_POST_IMAGES", DEFAULT_MAX_POST_IMAGES)
    return value if value > 0 else DEFAULT_MAX_POST_IMAGES


def allowed_image_types() -> set[str]:
    return {t.lower() for t in settings.env_list("ALLOWED_IMAGE_TYPES", DEFAULT_ALLOWED_IMAGE_TYPES)}


def encode_data_url(content_type: str, data: bytes) -> str:
    b64 = base64.b64encode(data).decode("ascii")
    return f"data:{content_type};base64,{b64}"


def decode_data_url(value: str) -> tuple[str, bytes]:
    """
    Return (media_type, raw_bytes) for a base64 data URL.
    """
    match = _DATA_URL_RE.match((value or "").strip())
    if match is None:
        raise InvalidDataURL("Not a base64 data URL.")
    try:
        data = base64.b64decode(match.group("payload"), validate=False)
    except (binascii.Error, ValueError) as exc:
        raise InvalidDataURL("Data URL payload is not valid base64.") from exc
    return match.group("mime").lower(), data


def is_data_url(value: str) -> bool:
    try:
        decode_data_url(value)
    except InvalidDataURL:
        return False
    return True


async def read_upload_bytes(file: UploadFile, max_bytes: int) -> bytes:
    """
    Read the upload into memory, enforcing a maximum size.
    """
    chunk_size = 256 * 1024
    buf = bytearray()

    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        buf.extend(chunk)
        if len(buf) > max_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"Image too large. Max is {max_bytes} bytes.",
            )

    return bytes(buf)


def validate_image(file: UploadFile) -> str:
    """
    Return the normalized media type if this upload is an acceptable image.
    """
    if not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing filename.")

    content_type = (file.content_type or "").split(";", 1)[0].strip().lower()
    allowed = allowed_image_types()
    if content_type not in allowed:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Unsupported image type '{content_type or 'unknown'}'. Allowed: {sorted(allowed)}",
        )
    return content_type


async def read_image(file: UploadFile) -> str:
    """
    Validate one uploaded image and return it as a data URL.
    """
    content_type = validate_image(file)
    data = await read_upload_bytes(file, max_bytes=max_image_bytes())
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Image file is empty.")
    return encode_data_url(content_type, data)


async def read_images(files: list[UploadFile] | None, *, max_count: int | None = None) -> list[str]:
    """
    Validate a batch of uploaded images, preserving upload order.
    """
    # Browsers send an empty part with no filename when no file is chosen.
    files = [f for f in (files or []) if f is not None and f.filename]
    limit = max_post_images() if max_count is None else max_count
    if len(files) > limit:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Too many images. Max is {limit}.",
        )
    return [await read_image(f) for f in files]
