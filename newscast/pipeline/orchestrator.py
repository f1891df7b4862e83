"""
NewsVideoService: Main pipeline orchestrator.

Chains the four stages strictly in order, one request at a time:
  Step 1: Script (OpenAI chat)
  Step 2: Voice (OpenAI TTS)
  Step 3: Anchor video (SadTalker on Replicate)
  Step 4: Publish (download → Supabase Storage → Supabase table)

Any stage failure stops the run; later stages are never called. The run
always ends in a PipelineResult that is either COMPLETED (with the stored
video) or FAILED (with the error message).
"""

import logging
import uuid
from typing import Optional

from .animate import animate_anchor
from .errors import (
    DownloadError,
    MetadataPersistError,
    PipelineError,
    ProviderTransportError,
    StorageUploadError,
    ValidationError,
)
from .interfaces import (
    BlobStore,
    MetadataStore,
    SpeechSynthesizer,
    TextGenerator,
    VideoSynthesizer,
)
from .models import PipelineResult, PipelineStatus, StoredVideo
from .script_gen import generate_script
from .speech import synthesize_speech
from .storage import HttpVideoFetcher, download_video, save_metadata, upload_video

logger = logging.getLogger(__name__)

# Error type used when a stage raises something outside the taxonomy
_STAGE_ERRORS = {
    PipelineStatus.SCRIPT_GENERATED: ProviderTransportError,
    PipelineStatus.AUDIO_GENERATED: ProviderTransportError,
    PipelineStatus.VIDEO_GENERATED: ProviderTransportError,
    PipelineStatus.VIDEO_DOWNLOADED: DownloadError,
    PipelineStatus.UPLOADED: StorageUploadError,
    PipelineStatus.METADATA_SAVED: MetadataPersistError,
}


class _Run:
    """Per-request state: current status and the transitions taken so far."""

    def __init__(self, request_id: str):
        self.request_id = request_id
        self.status = PipelineStatus.RECEIVED
        self.history = [PipelineStatus.RECEIVED]

    def advance(self, status: PipelineStatus, step: str = ""):
        self.status = status
        self.history.append(status)
        logger.info(f"[{self.request_id}] {status.value} → {step}")


class NewsVideoService:
    """
    Business data in, published news-report video out.

    Usage:
        service = NewsVideoService(
            text_generator=..., speech_synthesizer=..., video_synthesizer=...,
            blob_store=..., metadata_store=..., source_image_url=...,
        )
        result = await service.run("Sales up 20%, hired 5 engineers")
    """

    def __init__(
        self,
        *,
        text_generator: TextGenerator,
        speech_synthesizer: SpeechSynthesizer,
        video_synthesizer: VideoSynthesizer,
        blob_store: BlobStore,
        metadata_store: MetadataStore,
        source_image_url: str,
        video_fetcher: Optional[HttpVideoFetcher] = None,
    ):
        self._text = text_generator
        self._speech = speech_synthesizer
        self._video = video_synthesizer
        self._blobs = blob_store
        self._metadata = metadata_store
        self._source_image_url = source_image_url
        self._fetcher = video_fetcher or HttpVideoFetcher()

    async def run(self, business_data: Optional[str], request_id: Optional[str] = None) -> PipelineResult:
        """
        Run the full pipeline for one request.

        Raises:
            ValidationError: business data is missing or blank. No provider
                is contacted in that case.

        Returns:
            PipelineResult, COMPLETED or FAILED.
        """
        if business_data is None or not business_data.strip():
            raise ValidationError("Business data is required", details={"field": "businessData"})

        run = _Run(request_id or uuid.uuid4().hex[:12])
        target = PipelineStatus.SCRIPT_GENERATED

        try:
            script = await generate_script(self._text, business_data)
            run.advance(target, "script ready, generating audio...")

            target = PipelineStatus.AUDIO_GENERATED
            audio = await synthesize_speech(self._speech, script)
            run.advance(target, "audio ready, generating video with SadTalker...")

            target = PipelineStatus.VIDEO_GENERATED
            remote_url = await animate_anchor(self._video, audio, self._source_image_url)
            run.advance(target, "video ready, downloading...")

            target = PipelineStatus.VIDEO_DOWNLOADED
            video_bytes = await download_video(self._fetcher, remote_url)
            run.advance(target, "uploading to storage...")

            target = PipelineStatus.UPLOADED
            key, public_url = await upload_video(self._blobs, video_bytes)
            run.advance(target, "saving metadata...")

            target = PipelineStatus.METADATA_SAVED
            await save_metadata(self._metadata, script, public_url, key)
            run.advance(target, "metadata saved")

        except Exception as e:
            error = self._as_pipeline_error(e, target)
            logger.error(
                f"[{run.request_id}] Pipeline failed at {target.value}: {error.message}",
                exc_info=True,
            )
            run.advance(PipelineStatus.FAILED, error.message)
            return PipelineResult(
                request_id=run.request_id,
                status=PipelineStatus.FAILED,
                error=error.message,
                error_type=type(error).__name__,
                http_status=error.http_status,
                failed_stage=target,
                history=run.history,
            )

        run.advance(PipelineStatus.COMPLETED, public_url)
        return PipelineResult(
            request_id=run.request_id,
            status=PipelineStatus.COMPLETED,
            video=StoredVideo(filename=key, public_url=public_url, script=script),
            history=run.history,
        )

    @staticmethod
    def _as_pipeline_error(exc: Exception, stage: PipelineStatus) -> PipelineError:
        if isinstance(exc, PipelineError):
            if exc.stage is None:
                exc.stage = stage.value
            return exc
        error_cls = _STAGE_ERRORS.get(stage, PipelineError)
        message = str(exc) or exc.__class__.__name__
        return error_cls(message, stage=stage.value)
