"""Validation and decoding of variant files before extraction."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = (".vcf", ".txt")
ALLOWED_CONTENT_TYPES = ("text/plain",)
MAX_UPLOAD_BYTES = 10 * 1024 * 1024

INVALID_TYPE_MESSAGE = "Invalid file type. Only .vcf and .txt files are allowed."


class InvalidUploadError(ValueError):
    """Raised when a variant file is rejected before extraction."""


def sanitize_filename(name: str) -> str:
    return re.sub(r"\s+", "_", name)


def validate_upload(
    filename: str,
    content_type: Optional[str] = None,
    size: Optional[int] = None,
    *,
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> None:
    """Accept plain-text uploads or ``.vcf``/``.txt`` files no larger than ``max_bytes``."""

    allowed_type = content_type in ALLOWED_CONTENT_TYPES
    allowed_name = bool(filename) and filename.endswith(ALLOWED_EXTENSIONS)
    if not (allowed_type or allowed_name):
        raise InvalidUploadError(INVALID_TYPE_MESSAGE)
    if size is not None and size > max_bytes:
        raise InvalidUploadError(f"File too large: {size} bytes exceeds the {max_bytes} byte limit.")


def read_variant_file(path: Path, *, max_bytes: int = MAX_UPLOAD_BYTES) -> str:
    """Validate and decode a variant file as UTF-8 text."""

    resolved = Path(path).expanduser().resolve()
    if not resolved.exists():
        msg = f"Variant file not found: {resolved}"
        raise FileNotFoundError(msg)

    size = resolved.stat().st_size
    validate_upload(resolved.name, size=size, max_bytes=max_bytes)
    logger.info("Received file %s (%d bytes)", sanitize_filename(resolved.name), size)

    text = resolved.read_bytes().decode("utf-8", errors="replace")
    if "\ufffd" in text:
        logger.warning("File %s contains invalid UTF-8; bad bytes were replaced", resolved.name)
    return text


__all__ = [
    "ALLOWED_CONTENT_TYPES",
    "ALLOWED_EXTENSIONS",
    "InvalidUploadError",
    "MAX_UPLOAD_BYTES",
    "read_variant_file",
    "sanitize_filename",
    "validate_upload",
]
