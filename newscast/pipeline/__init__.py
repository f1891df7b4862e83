"""
News Report Video Pipeline

Business data → spoken news script → narration audio → talking-head video
→ Supabase Storage + metadata row → public URL.
"""

from .orchestrator import NewsVideoService
from .routes import generate_router
from .models import PipelineStatus, PipelineResult

__all__ = [
    "NewsVideoService",
    "generate_router",
    "PipelineStatus",
    "PipelineResult",
]
