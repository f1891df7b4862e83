from typing import Any, Dict, List, Optional, Union

import httpx
import pytest

from newscast import metrics
from newscast.pipeline.errors import MetadataPersistError, StorageUploadError
from newscast.pipeline.interfaces import (
    BlobStore,
    MetadataStore,
    SpeechSynthesizer,
    TextGenerator,
    VideoSynthesizer,
)
from newscast.pipeline.models import AudioPayload
from newscast.pipeline.orchestrator import NewsVideoService
from newscast.pipeline.storage import HttpVideoFetcher

REMOTE_VIDEO_URL = "https://replicate.delivery/pbxt/abc/out.mp4"
PUBLIC_BASE = "https://project.supabase.co/storage/v1/object/public/videos"
ANCHOR_IMAGE = "https://i.imgur.com/5vPKgb4.jpg"
VIDEO_BYTES = b"\x00\x00\x00\x18ftypmp42fake-video"


class FakeTextGenerator(TextGenerator):
    def __init__(self, calls: List[str], script: str = "Breaking news: sales are up 20 percent.", error: Optional[Exception] = None):
        self.calls = calls
        self.script = script
        self.error = error
        self.prompts: List[tuple] = []

    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append("script")
        self.prompts.append((system_prompt, user_prompt))
        if self.error:
            raise self.error
        return self.script


class FakeSpeechSynthesizer(SpeechSynthesizer):
    def __init__(self, calls: List[str], audio: bytes = b"ID3fake-mp3-bytes", error: Optional[Exception] = None):
        self.calls = calls
        self.audio = audio
        self.error = error
        self.texts: List[str] = []

    async def synthesize(self, text: str) -> AudioPayload:
        self.calls.append("speech")
        self.texts.append(text)
        if self.error:
            raise self.error
        return AudioPayload(data=self.audio, mime_type="audio/mpeg")


class FakeVideoSynthesizer(VideoSynthesizer):
    def __init__(
        self,
        calls: List[str],
        output: Union[str, List[str], None] = REMOTE_VIDEO_URL,
        error: Optional[Exception] = None,
    ):
        self.calls = calls
        self.output = output
        self.error = error
        self.requests: List[Dict[str, Any]] = []

    async def synthesize(self, audio_uri, source_image_url, params):
        self.calls.append("video")
        self.requests.append(
            {"audio_uri": audio_uri, "source_image_url": source_image_url, "params": params}
        )
        if self.error:
            raise self.error
        return self.output


class FakeBlobStore(BlobStore):
    def __init__(self, calls: List[str], fail_with: Optional[str] = None):
        self.calls = calls
        self.fail_with = fail_with
        self.objects: Dict[str, Dict[str, Any]] = {}

    async def upload(self, key, data, content_type, cache_control):
        self.calls.append("upload")
        if self.fail_with:
            raise StorageUploadError(f"Failed to upload video: {self.fail_with}")
        self.objects[key] = {
            "data": data,
            "content_type": content_type,
            "cache_control": cache_control,
        }

    def public_url(self, key):
        return f"{PUBLIC_BASE}/{key}"


class FakeMetadataStore(MetadataStore):
    def __init__(self, calls: List[str], fail_with: Optional[str] = None):
        self.calls = calls
        self.fail_with = fail_with
        self.rows: List[Dict[str, Any]] = []

    async def insert(self, record):
        self.calls.append("metadata")
        if self.fail_with:
            raise MetadataPersistError(f"Failed to save to database: {self.fail_with}")
        self.rows.append(record)


class FakeVideoFetcher(HttpVideoFetcher):
    """HttpVideoFetcher over an httpx.MockTransport that logs each GET."""

    def __init__(self, calls: List[str], status_code: int = 200, body: bytes = VIDEO_BYTES):
        self.calls = calls
        self.urls: List[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            self.urls.append(str(request.url))
            return httpx.Response(status_code, content=body)

        super().__init__(timeout=5, transport=httpx.MockTransport(handler))

    async def fetch(self, url: str) -> bytes:
        self.calls.append("download")
        return await super().fetch(url)


class Harness:
    """All fakes sharing one call log, plus a service wired to them."""

    def __init__(self, **overrides):
        self.calls: List[str] = []
        self.text = overrides.get("text") or FakeTextGenerator(self.calls)
        self.speech = overrides.get("speech") or FakeSpeechSynthesizer(self.calls)
        self.video = overrides.get("video") or FakeVideoSynthesizer(self.calls)
        self.fetcher = overrides.get("fetcher") or FakeVideoFetcher(self.calls)
        self.blobs = overrides.get("blobs") or FakeBlobStore(self.calls)
        self.metadata = overrides.get("metadata") or FakeMetadataStore(self.calls)
        for fake in (self.text, self.speech, self.video, self.fetcher, self.blobs, self.metadata):
            fake.calls = self.calls

        self.service = NewsVideoService(
            text_generator=self.text,
            speech_synthesizer=self.speech,
            video_synthesizer=self.video,
            blob_store=self.blobs,
            metadata_store=self.metadata,
            source_image_url=ANCHOR_IMAGE,
            video_fetcher=self.fetcher,
        )


@pytest.fixture
def harness():
    return Harness()


@pytest.fixture(autouse=True)
def clean_metrics():
    metrics.reset()
    yield
    metrics.reset()
