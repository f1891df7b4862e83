"""
Capability ports consumed by the pipeline.

The orchestrator depends only on these abstractions; provider_factory wires
in the OpenAI / Replicate / Supabase adapters. Swapping a provider means
writing another adapter, not touching orchestration.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Union

from .models import AudioPayload


class TextGenerator(ABC):
    """Language generation: persona + content instruction -> text."""

    @abstractmethod
    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        """Return generated text; an empty string when the model returns nothing."""
        pass


class SpeechSynthesizer(ABC):
    """Text-to-speech with a fixed voice and model."""

    @abstractmethod
    async def synthesize(self, text: str) -> AudioPayload:
        pass


class VideoSynthesizer(ABC):
    """Talking-head generation from an audio URI and a face image URL."""

    @abstractmethod
    async def synthesize(
        self,
        audio_uri: str,
        source_image_url: str,
        params: Dict[str, Any],
    ) -> Union[str, List[str]]:
        """
        Block until the remote job finishes.

        Returns a single video URL or an ordered list of URLs. Raises
        InsufficientCreditsError for billing refusals and
        ProviderTransportError for everything else.
        """
        pass


class BlobStore(ABC):
    """Durable object storage that issues public URLs."""

    @abstractmethod
    async def upload(
        self,
        key: str,
        data: bytes,
        content_type: str,
        cache_control: str,
    ) -> None:
        """Store `data` under `key`. Raises StorageUploadError on rejection."""
        pass

    @abstractmethod
    def public_url(self, key: str) -> str:
        pass


class MetadataStore(ABC):
    """Structured store for script / video URL records."""

    @abstractmethod
    async def insert(self, record: Dict[str, Any]) -> None:
        """Insert one row. Raises MetadataPersistError on rejection."""
        pass
