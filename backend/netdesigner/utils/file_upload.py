"""
Upload validation for equipment images and configuration files.

Images land in images/, everything else in configs/, under a uuid file name
that keeps the original extension.
"""
import uuid
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from fastapi import UploadFile

from netdesigner.core.config import settings
from netdesigner.core.exceptions import ValidationError


IMAGE_MIME_TYPES = {
    "image/png",
    "image/jpg",
    "image/jpeg",
    "image/webp",
    "image/gif",
}

CONFIG_MIME_TYPES = {
    "text/plain",
    "application/json",
    "application/x-yaml",
    "text/yaml",
    "text/x-shellscript",
    "application/xml",
    "text/xml",
    "text/csv",
    "text/ini",
    "text/x-python",
}

# Browsers often send device configs as octet-stream
CONFIG_EXTENSIONS = {".cfg", ".conf", ".txt"}

SIZE_UNITS = ["Bytes", "KB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB"]


def format_file_size(size: int, decimals: int = 2) -> str:
    """Human readable size using powers of 1000"""
    if size == 0:
        return "0 Bytes"
    index = 0
    value = float(size)
    while value >= 1000 and index < len(SIZE_UNITS) - 1:
        value /= 1000
        index += 1
    return f"{round(value, decimals):g} {SIZE_UNITS[index]}"


def is_image(content_type: Optional[str]) -> bool:
    return bool(content_type) and content_type.startswith("image/")


def upload_folder(content_type: Optional[str]) -> str:
    return "images" if is_image(content_type) else "configs"


def unique_filename(original_name: Optional[str]) -> str:
    return f"{uuid.uuid4()}{Path(original_name or '').suffix.lower()}"


def validate_upload(
    content_type: Optional[str],
    filename: Optional[str],
    size: int,
    images_only: bool = False,
) -> None:
    """Raise ValidationError for unsupported types or oversize files"""
    content_type = (content_type or "").lower()
    extension = Path(filename or "").suffix.lower()

    allowed = content_type in IMAGE_MIME_TYPES
    if not images_only:
        allowed = allowed or content_type in CONFIG_MIME_TYPES or (
            content_type == "application/octet-stream" and extension in CONFIG_EXTENSIONS
        )
    if not allowed:
        raise ValidationError(f"Unsupported file format: {content_type or 'unknown'}", field="file")

    if size > settings.MAX_UPLOAD_SIZE:
        raise ValidationError(
            f"File too large ({format_file_size(size)}). "
            f"Maximum size is {format_file_size(settings.MAX_UPLOAD_SIZE)}",
            field="file",
        )


async def read_upload(file: UploadFile, images_only: bool = False) -> bytes:
    """Read and validate an uploaded file"""
    content = await file.read()
    validate_upload(file.content_type, file.filename, len(content), images_only=images_only)
    return content


def attachment_headers(filename: str, fallback: str) -> dict:
    """Content-Disposition for a download; non-ASCII names go in filename* (RFC 5987)"""
    if filename.isascii() and '"' not in filename and "\\" not in filename:
        return {"Content-Disposition": f'attachment; filename="{filename}"'}
    return {
        "Content-Disposition": f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"
    }
