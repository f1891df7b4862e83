from typing import Optional

from openai import AsyncOpenAI

from ..config import PipelineConfig
from .animate import ReplicateVideoSynthesizer
from .orchestrator import NewsVideoService
from .script_gen import OpenAITextGenerator
from .speech import OpenAISpeechSynthesizer
from .storage import (
    HttpVideoFetcher,
    LazySupabase,
    SupabaseBlobStore,
    SupabaseMetadataStore,
)


class LazyOpenAI:
    """Proxy that defers AsyncOpenAI construction until first attribute access."""

    def __init__(self, api_key: str):
        self._api_key = api_key
        self._client: Optional[AsyncOpenAI] = None

    def _get_client(self) -> AsyncOpenAI:
        # AsyncOpenAI raises OpenAIError here when no key is available
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key or None)
        return self._client

    def __getattr__(self, name):
        return getattr(self._get_client(), name)


class ProviderFactory:
    @staticmethod
    def get_text_generator(config: PipelineConfig, client: AsyncOpenAI) -> OpenAITextGenerator:
        return OpenAITextGenerator(
            client, model=config.script_model, max_tokens=config.script_max_tokens
        )

    @staticmethod
    def get_speech_synthesizer(config: PipelineConfig, client: AsyncOpenAI) -> OpenAISpeechSynthesizer:
        return OpenAISpeechSynthesizer(client, model=config.tts_model, voice=config.tts_voice)

    @staticmethod
    def get_video_synthesizer(config: PipelineConfig) -> ReplicateVideoSynthesizer:
        return ReplicateVideoSynthesizer(
            api_token=config.replicate_api_token,
            version=config.sadtalker_version,
            poll_interval=config.replicate_poll_interval,
        )

    @staticmethod
    def build_service(config: PipelineConfig) -> NewsVideoService:
        """Wire the OpenAI / Replicate / Supabase adapters into a service."""
        # Credentials are not checked here; a missing key fails the first call
        openai_client = LazyOpenAI(config.openai_api_key)
        supabase = LazySupabase(config.supabase_url, config.supabase_key)

        return NewsVideoService(
            text_generator=ProviderFactory.get_text_generator(config, openai_client),
            speech_synthesizer=ProviderFactory.get_speech_synthesizer(config, openai_client),
            video_synthesizer=ProviderFactory.get_video_synthesizer(config),
            blob_store=SupabaseBlobStore(supabase, bucket=config.storage_bucket),
            metadata_store=SupabaseMetadataStore(supabase, table=config.metadata_table),
            source_image_url=config.source_image_url,
            video_fetcher=HttpVideoFetcher(timeout=config.download_timeout),
        )
