from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass

from fastapi import Request
from pydantic import ValidationError as SchemaValidationError
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException

from pageorient.config import ServiceConfig
from pageorient.exceptions import CapacityError, ValidationError
from pageorient.server.models import Base64ImageRequest

BASE64_PATTERN = re.compile(r"^[A-Za-z0-9+/=\r\n]+$")
DATA_URL_PATTERN = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(;[\w=-]+)*,", re.IGNORECASE)
DEFAULT_BASE64_MIME = "image/png"


@dataclass(frozen=True, slots=True)
class ImagePayload:
    data: bytes
    mime_type: str


def ensure_usable_buffer(
    data: bytes | None,
    config: ServiceConfig,
    oversize_code: str = "file_too_large",
) -> bytes:
    if not data:
        raise ValidationError(
            "The uploaded image appears to be empty. Try again with another file.",
            code="empty_image",
            retryable=True,
        )
    if len(data) > config.max_upload_bytes:
        raise CapacityError(
            f"File is too large. Choose a PNG/JPEG under {config.max_upload_mb:g}MB.",
            code=oversize_code,
        )
    return data


def decode_base64_image(raw_value: str, config: ServiceConfig) -> ImagePayload:
    trimmed = raw_value.strip()
    mime_type = DEFAULT_BASE64_MIME

    data_url_match = DATA_URL_PATTERN.match(trimmed)
    if data_url_match:
        if data_url_match.group("mime"):
            mime_type = data_url_match.group("mime").lower()
        trimmed = trimmed[data_url_match.end():]
    elif "," in trimmed:
        trimmed = trimmed.rsplit(",", 1)[-1]

    if mime_type not in config.allowed_mime_types:
        raise ValidationError("Unsupported image format.", code="unsupported_mime")

    if not trimmed or not BASE64_PATTERN.match(trimmed):
        raise ValidationError(
            "The image could not be read. Try again with another image.",
            code="invalid_image",
        )

    try:
        decoded = base64.b64decode(re.sub(r"\s+", "", trimmed))
    except (binascii.Error, ValueError) as decode_error:
        raise ValidationError(
            "The image could not be read. Try again with another image.",
            code="invalid_image",
        ) from decode_error

    return ImagePayload(data=ensure_usable_buffer(decoded, config), mime_type=mime_type)


async def _extract_upload(request: Request, config: ServiceConfig) -> ImagePayload:
    try:
        form = await request.form()
    except HTTPException as form_error:
        raise ValidationError(
            "The image could not be read. Try again with another image.",
            code="invalid_image",
        ) from form_error
    upload = form.get("file")
    if not isinstance(upload, UploadFile):
        raise ValidationError("An image is required.", code="image_required")

    mime_type = (upload.content_type or "").lower()
    if mime_type not in config.allowed_mime_types:
        raise ValidationError("Unsupported image format.", code="unsupported_mime")

    data = await upload.read()
    await upload.close()
    return ImagePayload(
        data=ensure_usable_buffer(data, config, oversize_code="LIMIT_FILE_SIZE"),
        mime_type=mime_type,
    )


async def _extract_base64(request: Request, config: ServiceConfig) -> ImagePayload:
    try:
        body = await request.json()
    except ValueError:
        body = None

    try:
        image_request = Base64ImageRequest.model_validate(body)
    except SchemaValidationError:
        raise ValidationError("An image is required.", code="image_required") from None

    if not image_request.image_base64:
        raise ValidationError("An image is required.", code="image_required")

    return decode_base64_image(image_request.image_base64, config)


async def extract_image_payload(request: Request, config: ServiceConfig) -> ImagePayload:
    content_type = request.headers.get("content-type", "").lower()
    if content_type.startswith("multipart/form-data"):
        return await _extract_upload(request, config)
    return await _extract_base64(request, config)
