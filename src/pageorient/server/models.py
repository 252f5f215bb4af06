from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Base64ImageRequest(BaseModel):
    """Request body for a base64-encoded page image."""

    model_config = ConfigDict(populate_by_name=True)

    image_base64: str = Field(alias="imageBase64")


class OrientationPayload(BaseModel):
    """Successful orientation response."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    rotation: int | None
    confidence: float
    likelihood: float
    text_sample: str | None = Field(default=None, alias="textSample")
    processing_ms: int = Field(alias="processingMs")

    def to_json(self) -> dict:
        body = self.model_dump(by_alias=True)
        if body["textSample"] is None:
            del body["textSample"]
        return body


class ErrorPayload(BaseModel):
    success: bool = False
    message: str
    code: str
    retryable: bool


class HealthResponse(BaseModel):
    status: str
    version: str
    ocr_enabled: bool = Field(serialization_alias="ocrEnabled")
