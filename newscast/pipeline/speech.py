"""
Step 2: Narration via OpenAI text-to-speech.

Produces MP3 bytes held entirely in memory. The next step only accepts URIs,
so the audio is shipped onward as a base64 data URI instead of a temp file.
"""

import logging

from openai import AsyncOpenAI, OpenAIError

from .errors import ProviderTransportError
from .interfaces import SpeechSynthesizer
from .models import AudioPayload

logger = logging.getLogger(__name__)

AUDIO_MIME_TYPE = "audio/mpeg"


class OpenAISpeechSynthesizer(SpeechSynthesizer):
    """Fixed voice / fixed model TTS adapter."""

    def __init__(self, client: AsyncOpenAI, model: str = "tts-1", voice: str = "alloy"):
        self._client = client
        self._model = model  # tts-1-hd for higher quality
        self._voice = voice

    async def synthesize(self, text: str) -> AudioPayload:
        try:
            response = await self._client.audio.speech.create(
                model=self._model,
                voice=self._voice,
                input=text,
            )
            audio_bytes = response.content
        except OpenAIError as e:
            raise ProviderTransportError(
                f"Speech synthesis failed: {e}",
                provider="openai",
                status_code=getattr(e, "status_code", None),
            ) from e

        return AudioPayload(data=audio_bytes, mime_type=AUDIO_MIME_TYPE)


async def synthesize_speech(synthesizer: SpeechSynthesizer, script: str) -> AudioPayload:
    """Step 2: Voice the script. Returns the in-memory audio payload."""
    audio = await synthesizer.synthesize(script)
    logger.info(f"Audio generated, size: {len(audio.data)} bytes ({audio.mime_type})")
    return audio
