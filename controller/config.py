"""Configuration settings for the file store controller."""

import os
from datetime import datetime, timezone
from typing import Optional

from pydantic import AwareDatetime, BaseModel, Field, field_validator

from common.constants import (
    CHUNK_SIZE_BYTES,
    DEFAULT_MAX_FILE_SIZE_BYTES,
    DEFAULT_STATE_PATH,
    MAX_FILE_SIZE_HARD_CAP_BYTES,
)
from common.exceptions import ValidationError


STATE_PATH = os.environ.get("CDN_STATE_PATH", DEFAULT_STATE_PATH)

CONTROLLER_HOST = os.environ.get("CDN_HOST", "0.0.0.0")

CONTROLLER_PORT = int(os.environ.get("CDN_PORT", "8000"))

CHUNK_SIZE = int(os.environ.get("CDN_CHUNK_SIZE_BYTES", str(CHUNK_SIZE_BYTES)))

BOOTSTRAP_ADMIN = os.environ.get("CDN_BOOTSTRAP_ADMIN") or None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_valid_domain(domain: str) -> bool:
    """
    Basic domain name check: letters, digits, dashes and dots, at least one
    dot, no leading or trailing dash.
    """
    valid_chars = all(ch.isascii() and (ch.isalnum() or ch in "-.") for ch in domain)
    return (
        valid_chars
        and "." in domain
        and not domain.startswith("-")
        and not domain.endswith("-")
    )


def validate_max_file_size(size: int) -> int:
    if size <= 0:
        raise ValidationError("max_file_size_bytes must be > 0")
    if size > MAX_FILE_SIZE_HARD_CAP_BYTES:
        raise ValidationError(
            f"max_file_size_bytes exceeds hard cap of {MAX_FILE_SIZE_HARD_CAP_BYTES} bytes"
        )
    return size


class RuntimeConfig(BaseModel):
    """Admin-tunable configuration held by the Store and persisted with it."""
    max_file_size_bytes: int = DEFAULT_MAX_FILE_SIZE_BYTES
    uploads_enabled: bool = True
    domain: Optional[str] = None
    last_updated_at: AwareDatetime = Field(default_factory=_utcnow)

    @field_validator("max_file_size_bytes")
    @classmethod
    def _check_size(cls, value: int) -> int:
        if value <= 0 or value > MAX_FILE_SIZE_HARD_CAP_BYTES:
            raise ValueError("max_file_size_bytes out of range")
        return value

    @field_validator("domain")
    @classmethod
    def _check_domain(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not is_valid_domain(value):
            raise ValueError("invalid domain format")
        return value


class ConfigUpdate(BaseModel):
    """
    Partial config update. Unset fields keep their current value; `domain`
    explicitly set to None clears it.
    """
    max_file_size_bytes: Optional[int] = None
    uploads_enabled: Optional[bool] = None
    domain: Optional[str] = None

    def apply_to(self, current: RuntimeConfig) -> RuntimeConfig:
        """
        Produce a new RuntimeConfig with this update applied.

        Raises:
            ValidationError: If a value is out of range or malformed
        """
        changes = {}
        provided = self.model_fields_set

        if "max_file_size_bytes" in provided and self.max_file_size_bytes is not None:
            changes["max_file_size_bytes"] = validate_max_file_size(self.max_file_size_bytes)

        if "uploads_enabled" in provided and self.uploads_enabled is not None:
            changes["uploads_enabled"] = self.uploads_enabled

        if "domain" in provided:
            if self.domain is not None and not is_valid_domain(self.domain):
                raise ValidationError("invalid domain format")
            changes["domain"] = self.domain

        changes["last_updated_at"] = _utcnow()
        return current.model_copy(update=changes)
