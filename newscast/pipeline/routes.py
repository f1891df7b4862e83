"""
FastAPI routes for the newscast pipeline.

  POST /api/generate: business data in, public video URL out

Responses:
  200 {"videoUrl": "..."}
  400 {"error": "..."}   missing / blank businessData, nothing called
  500 {"error": "..."}   any stage failure
"""

import time
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from .. import metrics
from ..config import PipelineConfig
from .errors import ValidationError
from .models import ErrorResponse, GenerateRequest, GenerateResponse
from .orchestrator import NewsVideoService
from .provider_factory import ProviderFactory

logger = logging.getLogger(__name__)

REQUIRED_MESSAGE = "Business data is required"


# ── Service singleton ────────────────────────────────────────────────────────

_service: Optional[NewsVideoService] = None


def get_service() -> NewsVideoService:
    """Lazily build the service from the environment on first use."""
    global _service
    if _service is None:
        _service = ProviderFactory.build_service(PipelineConfig.from_env())
    return _service


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


# ═════════════════════════════════════════════════════════════════════════════
# Generate Router
# ═════════════════════════════════════════════════════════════════════════════

generate_router = APIRouter(prefix="/api", tags=["generate"])


@generate_router.post(
    "/generate",
    response_model=GenerateResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def generate(
    request: GenerateRequest,
    service: NewsVideoService = Depends(get_service),
):
    """Run the whole pipeline synchronously and return the published video URL."""
    metrics.inc_counter("requests.generate")

    business_data = request.cleaned()
    if business_data is None:
        return error_response(ValidationError.http_status, REQUIRED_MESSAGE)

    started = time.time()
    try:
        result = await service.run(business_data)
    except ValidationError as e:
        return error_response(e.http_status, e.message)
    finally:
        metrics.record_latency("generate", (time.time() - started) * 1000)

    if not result.ok:
        metrics.inc_counter("generate.failed")
        metrics.record_error(
            "/api/generate",
            result.error_type or "PipelineError",
            result.error or "",
            stage=result.failed_stage.value if result.failed_stage else "",
        )
        return error_response(result.http_status, result.error or "An error occurred")

    metrics.inc_counter("generate.completed")
    return GenerateResponse(video_url=result.video.public_url)
