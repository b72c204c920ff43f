"""Image uploads stored under the configured upload directory."""

from __future__ import annotations

import os
import uuid
from typing import Any

import structlog
from fastapi import UploadFile
from werkzeug.utils import secure_filename

from skynest.config import Settings
from skynest.errors import ValidationFailed

logger = structlog.get_logger(__name__)

ALLOWED_MIME_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "image/webp", "image/gif"})
ALLOWED_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".webp", ".gif"})

# Extension used when only the MIME type identified the image
MIME_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


def save_image(upload: UploadFile, kind: str, settings: Settings) -> dict[str, Any]:
    """
    Validate and store an uploaded image.

    Either the MIME type or the file extension must identify a JPEG, PNG,
    WebP or GIF image.

    Args:
        upload (UploadFile): Multipart file from the request.
        kind (str): Sub-directory, e.g. ``rooms`` or ``profiles``.
        settings (Settings): Provides upload_dir and max_upload_bytes.

    Returns:
        dict: url, filename, size and type of the stored file

    Raises:
        ValidationFailed: Missing file, wrong type, or too large
    """
    if upload is None or not upload.filename:
        raise ValidationFailed("No file uploaded")

    content_type = (upload.content_type or "").lower()
    ext = os.path.splitext(secure_filename(upload.filename))[1].lower()
    if content_type not in ALLOWED_MIME_TYPES and ext not in ALLOWED_EXTENSIONS:
        raise ValidationFailed(
            "Invalid file type. Only JPEG, PNG, WebP, and GIF are allowed.",
            content_type=content_type,
            extension=ext,
        )
    if ext not in ALLOWED_EXTENSIONS:
        ext = MIME_EXTENSIONS[content_type]

    data = upload.file.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        max_mb = settings.max_upload_bytes // (1024 * 1024)
        raise ValidationFailed(f"File too large. Maximum size is {max_mb}MB")

    directory = os.path.join(settings.upload_dir, kind)
    os.makedirs(directory, exist_ok=True)
    filename = f"{uuid.uuid4().hex}{ext}"
    with open(os.path.join(directory, filename), "wb") as fh:
        fh.write(data)

    logger.info("file_uploaded", kind=kind, filename=filename, size=len(data))
    return {
        "url": f"/uploads/{kind}/{filename}",
        "filename": filename,
        "size": len(data),
        "type": content_type,
    }
