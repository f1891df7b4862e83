"""
Runtime configuration for the newscast worker.

Everything is read once from the environment (and `.env` via python-dotenv)
into a PipelineConfig, which is then handed to the pipeline constructor.
Nothing downstream reads os.environ at call time.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel

# ── Defaults ─────────────────────────────────────────────────────────────────

SADTALKER_VERSION = "a519cc0cfebaaeade068b23899165a11ec76aaa1d2b313d40d214f204ec957a3"
ANCHOR_IMAGE_URL = "https://i.imgur.com/5vPKgb4.jpg"


class PipelineConfig(BaseModel):
    # OpenAI (script + speech)
    openai_api_key: str = ""
    script_model: str = "gpt-4"
    script_max_tokens: int = 200
    tts_model: str = "tts-1"
    tts_voice: str = "alloy"

    # Replicate (SadTalker talking head)
    replicate_api_token: str = ""
    sadtalker_version: str = SADTALKER_VERSION
    source_image_url: str = ANCHOR_IMAGE_URL
    replicate_poll_interval: float = 2.0

    # Supabase (blob + metadata)
    supabase_url: str = ""
    supabase_key: str = ""
    storage_bucket: str = "videos"
    metadata_table: str = "videos"

    download_timeout: float = 120.0

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Build a config from the process environment, loading `.env` first."""
        load_dotenv()
        env = os.environ
        return cls(
            openai_api_key=env.get("OPENAI_API_KEY", ""),
            script_model=env.get("SCRIPT_MODEL", "gpt-4"),
            script_max_tokens=int(env.get("SCRIPT_MAX_TOKENS", "200")),
            tts_model=env.get("TTS_MODEL", "tts-1"),
            tts_voice=env.get("TTS_VOICE", "alloy"),
            replicate_api_token=env.get("REPLICATE_API_TOKEN", ""),
            sadtalker_version=env.get("SADTALKER_VERSION", SADTALKER_VERSION),
            source_image_url=env.get("SOURCE_IMAGE_URL", ANCHOR_IMAGE_URL),
            replicate_poll_interval=float(env.get("REPLICATE_POLL_INTERVAL", "2.0")),
            supabase_url=env.get("SUPABASE_URL", ""),
            supabase_key=env.get("SUPABASE_SERVICE_ROLE_KEY", ""),
            storage_bucket=env.get("SUPABASE_BUCKET", "videos"),
            metadata_table=env.get("SUPABASE_TABLE", "videos"),
            download_timeout=float(env.get("VIDEO_DOWNLOAD_TIMEOUT", "120")),
        )
