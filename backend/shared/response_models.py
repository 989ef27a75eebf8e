"""
Common API response models.
"""

from typing import Any

from pydantic import BaseModel, Field


class APIResponse(BaseModel):
    """Standard API response wrapper."""

    success: bool = Field(default=True, description="Whether the operation was successful")
    message: str = Field(default="Operation completed successfully", description="Response message")
    data: dict[str, Any] | None = Field(None, description="Response data")
    timestamp: str | None = Field(None, description="Response timestamp")
