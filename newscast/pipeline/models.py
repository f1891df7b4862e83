"""
Pydantic models and enums for the newscast pipeline.
"""

import base64
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ── Pipeline Status ──────────────────────────────────────────────────────────

class PipelineStatus(str, Enum):
    RECEIVED = "RECEIVED"
    SCRIPT_GENERATED = "SCRIPT_GENERATED"
    AUDIO_GENERATED = "AUDIO_GENERATED"
    VIDEO_GENERATED = "VIDEO_GENERATED"
    VIDEO_DOWNLOADED = "VIDEO_DOWNLOADED"
    UPLOADED = "UPLOADED"
    METADATA_SAVED = "METADATA_SAVED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


# ── API Envelopes ────────────────────────────────────────────────────────────

class GenerateRequest(BaseModel):
    """Inbound body for POST /api/generate."""
    model_config = ConfigDict(populate_by_name=True)

    business_data: Optional[str] = Field(default=None, alias="businessData")

    def cleaned(self) -> Optional[str]:
        """Return the business data, or None when it is absent or blank."""
        if self.business_data is None or not self.business_data.strip():
            return None
        return self.business_data


class GenerateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    video_url: str = Field(..., alias="videoUrl")


class ErrorResponse(BaseModel):
    error: str


# ── Stage Payloads ───────────────────────────────────────────────────────────

class AudioPayload(BaseModel):
    """Speech audio held in memory between stage 2 and stage 3."""
    data: bytes
    mime_type: str = "audio/mpeg"

    def to_data_uri(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


class StoredVideo(BaseModel):
    filename: str
    public_url: str
    script: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class PipelineResult(BaseModel):
    """Terminal outcome of one pipeline run: COMPLETED with a video, or FAILED."""
    request_id: str
    status: PipelineStatus
    video: Optional[StoredVideo] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    failed_stage: Optional[PipelineStatus] = None
    http_status: int = 200
    history: list[PipelineStatus] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == PipelineStatus.COMPLETED
