"""Utility helper functions for the Controller."""

from datetime import datetime, timezone

from common.constants import FILENAME_EXTRA_CHARS, MAX_FILENAME_LENGTH
from common.exceptions import ValidationError


def utcnow() -> datetime:
    """
    Get the current time as a timezone-aware UTC datetime.
    """
    return datetime.now(timezone.utc)


def validate_filename(filename: str) -> str:
    """
    Validate an uploaded file name.

    Allowed: 1-255 characters, letters, digits, '.', '_' and '-'; the names
    '.' and '..' are rejected.

    Args:
        filename: Original file name

    Returns:
        The validated file name

    Raises:
        ValidationError: If the name is empty, too long or has invalid characters
    """
    if not isinstance(filename, str) or not filename:
        raise ValidationError("Filename cannot be empty")
    if len(filename) > MAX_FILENAME_LENGTH:
        raise ValidationError(f"Filename too long; max {MAX_FILENAME_LENGTH} characters allowed")
    if filename in (".", ".."):
        raise ValidationError("Filename cannot be '.' or '..'")
    if not all(ch.isalnum() or ch in FILENAME_EXTRA_CHARS for ch in filename):
        raise ValidationError("Filename contains invalid characters")
    return filename


def validate_file_size(size: int, max_size: int) -> int:
    """
    Validate a content length against the configured cap.

    Raises:
        ValidationError: If size is zero or exceeds max_size
    """
    if size <= 0:
        raise ValidationError("File cannot be empty")
    if size > max_size:
        raise ValidationError(f"File size exceeds maximum of {max_size} bytes")
    return size
