"""
API Schemas
===========
Request and response bodies for the gateway's JSON endpoints.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    status: str
    message: str


class UploadResponse(BaseModel):
    """Shared response body for upload and signed-URL endpoints."""
    success: bool
    url: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None

    def to_content(self) -> dict:
        return self.model_dump(exclude_none=True)


class SignedUrlRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    filename: str = ""
    content_type: str = Field(default="", alias="contentType")
