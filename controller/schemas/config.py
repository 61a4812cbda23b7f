"""Pydantic schemas for runtime configuration endpoints."""

from typing import Optional
from pydantic import BaseModel


class ConfigResponse(BaseModel):
    """Response model for the runtime configuration."""
    max_file_size_bytes: int
    uploads_enabled: bool
    domain: Optional[str] = None
    last_updated_at: str
