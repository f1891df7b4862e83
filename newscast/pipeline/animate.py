"""
Step 3: SadTalker talking head via Replicate.

Drives a fixed reference face with the narration audio. The Replicate
prediction is asynchronous on their side; this step submits it and polls
until the prediction reaches a terminal state.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Union

import httpx

from .errors import InsufficientCreditsError, ProviderTransportError
from .interfaces import VideoSynthesizer
from .models import AudioPayload

logger = logging.getLogger(__name__)

# ── Config ───────────────────────────────────────────────────────────────────

REPLICATE_API_BASE = "https://api.replicate.com/v1"

SADTALKER_PARAMS = {
    "pose_style": 0,
    "preprocess": "crop",
}

INSUFFICIENT_CREDITS_MESSAGE = (
    "Insufficient Replicate credits. "
    "Please add billing at https://replicate.com/account/billing"
)

TERMINAL_FAILURES = ("failed", "canceled")


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:300]
    if isinstance(body, dict):
        return str(body.get("detail") or body.get("error") or body)
    return str(body)


def _raise_for_replicate(response: httpx.Response) -> None:
    """Translate Replicate HTTP failures into pipeline errors."""
    if response.status_code == 402:
        raise InsufficientCreditsError(
            INSUFFICIENT_CREDITS_MESSAGE,
            provider="replicate",
            status_code=402,
            details={"response_body": _error_detail(response)},
        )
    if response.is_error:
        raise ProviderTransportError(
            f"Replicate request failed ({response.status_code}): {_error_detail(response)}",
            provider="replicate",
            status_code=response.status_code,
        )


class ReplicateVideoSynthesizer(VideoSynthesizer):
    """Runs a pinned SadTalker version through the Replicate predictions API."""

    def __init__(
        self,
        api_token: str,
        version: str,
        poll_interval: float = 2.0,
        base_url: str = REPLICATE_API_BASE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_token = api_token
        self._version = version
        self._poll_interval = poll_interval
        self._base_url = base_url.rstrip("/")
        self._transport = transport

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self._api_token}",
            "Content-Type": "application/json",
        }

    async def synthesize(
        self,
        audio_uri: str,
        source_image_url: str,
        params: Dict[str, Any],
    ) -> Union[str, List[str]]:
        payload = {
            "version": self._version,
            "input": {
                "driven_audio": audio_uri,
                "source_image": source_image_url,
                **params,
            },
        }

        try:
            async with httpx.AsyncClient(timeout=60, transport=self._transport) as client:
                submit_resp = await client.post(
                    f"{self._base_url}/predictions",
                    headers=self._headers(),
                    json=payload,
                )
                _raise_for_replicate(submit_resp)
                prediction = submit_resp.json()

                prediction_id = prediction.get("id")
                if not prediction_id:
                    raise ProviderTransportError(
                        f"Replicate submit failed, no prediction id: {prediction}",
                        provider="replicate",
                    )
                logger.info(f"SadTalker prediction submitted: id={prediction_id}")

                poll_url = (prediction.get("urls") or {}).get("get") or (
                    f"{self._base_url}/predictions/{prediction_id}"
                )

                attempt = 0
                while prediction.get("status") != "succeeded":
                    status = prediction.get("status", "")
                    if status in TERMINAL_FAILURES:
                        error_msg = prediction.get("error") or f"prediction {status}"
                        raise ProviderTransportError(
                            f"SadTalker generation failed: {error_msg}",
                            provider="replicate",
                            details={"prediction_id": prediction_id},
                        )

                    await asyncio.sleep(self._poll_interval)
                    attempt += 1
                    poll_resp = await client.get(poll_url, headers=self._headers())
                    _raise_for_replicate(poll_resp)
                    prediction = poll_resp.json()
                    logger.info(f"SadTalker poll #{attempt}: status={prediction.get('status')}")

        except httpx.HTTPError as e:
            raise ProviderTransportError(
                f"Replicate request error: {e}", provider="replicate"
            ) from e

        return prediction.get("output")


def select_video_url(output: Union[str, List[str], None]) -> str:
    """Pick the canonical video URL: the first element of a list, or the string itself."""
    if isinstance(output, (list, tuple)):
        output = output[0] if output else None
    if not output or not isinstance(output, str):
        raise ProviderTransportError(
            f"Video provider returned no video URL: {output!r}", provider="replicate"
        )
    return output


async def animate_anchor(
    synthesizer: VideoSynthesizer,
    audio: AudioPayload,
    source_image_url: str,
) -> str:
    """
    Step 3: Generate the talking-head video for the narration.

    Args:
        synthesizer:      Video capability.
        audio:            Narration from Step 2, shipped as a data URI.
        source_image_url: The fixed anchor face.

    Returns:
        Remote URL of the generated video.
    """
    output = await synthesizer.synthesize(
        audio.to_data_uri(),
        source_image_url,
        dict(SADTALKER_PARAMS),
    )
    video_url = select_video_url(output)
    logger.info(f"Video generated: {video_url}")
    return video_url
