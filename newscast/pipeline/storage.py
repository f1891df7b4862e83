"""
Step 4: Publish to Supabase Storage and the metadata table.

Downloads the rendered video from the provider CDN, re-uploads it under a
fresh collision-free key, resolves the public URL and records the
script / URL pair.

Upload and insert are two independent one-shot calls. If the insert fails
the uploaded object is NOT removed; the error carries the object key.
"""

import asyncio
import logging
from typing import Any, Dict, Optional
from uuid import uuid4

import httpx
from supabase import Client, create_client

from .errors import DownloadError, MetadataPersistError, StorageUploadError
from .interfaces import BlobStore, MetadataStore

logger = logging.getLogger(__name__)

# ── Object Naming ────────────────────────────────────────────────────────────

VIDEO_KEY_PREFIX = "video-"
VIDEO_EXTENSION = ".mp4"
VIDEO_CONTENT_TYPE = "video/mp4"
VIDEO_CACHE_CONTROL = "3600"  # 1 hour


def video_object_key() -> str:
    """Generate a unique storage key, e.g. video-3f2b...c1.mp4."""
    return f"{VIDEO_KEY_PREFIX}{uuid4()}{VIDEO_EXTENSION}"


def _store_detail(exc: Exception) -> str:
    # storage3 / postgrest errors carry a `.message`; fall back to str()
    return getattr(exc, "message", None) or str(exc)


# ── Download ─────────────────────────────────────────────────────────────────

class HttpVideoFetcher:
    """Plain HTTP GET of the provider-hosted video."""

    def __init__(
        self,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._timeout = timeout
        self._transport = transport

    async def fetch(self, url: str) -> bytes:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                resp = await client.get(url)
                resp.raise_for_status()
                return resp.content
        except httpx.HTTPError as e:
            raise DownloadError(
                f"Failed to download video: {e}",
                details={"video_url": url},
            ) from e


# ── Supabase Adapters ────────────────────────────────────────────────────────

class LazySupabase:
    """Proxy that defers create_client until first attribute access."""

    def __init__(self, url: str, key: str):
        self._url = url
        self._key = key
        self._client: Optional[Client] = None

    def _get_client(self) -> Client:
        if self._client is None:
            if not self._url or not self._key:
                raise RuntimeError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
            self._client = create_client(self._url, self._key)
        return self._client

    def __getattr__(self, name):
        return getattr(self._get_client(), name)


class SupabaseBlobStore(BlobStore):
    """Supabase Storage bucket. The sync client runs in a worker thread."""

    def __init__(self, client: Client, bucket: str = "videos"):
        self._client = client
        self._bucket_name = bucket

    def _bucket(self):
        return self._client.storage.from_(self._bucket_name)

    async def upload(
        self,
        key: str,
        data: bytes,
        content_type: str,
        cache_control: str,
    ) -> None:
        try:
            await asyncio.to_thread(
                self._bucket().upload,
                path=key,
                file=data,
                file_options={"content-type": content_type, "cache-control": cache_control},
            )
        except Exception as e:
            raise StorageUploadError(
                f"Failed to upload video: {_store_detail(e)}",
                details={"object_key": key, "bucket": self._bucket_name},
            ) from e

    def public_url(self, key: str) -> str:
        return self._bucket().get_public_url(key)


class SupabaseMetadataStore(MetadataStore):
    """Row inserts into a Supabase (PostgREST) table."""

    def __init__(self, client: Client, table: str = "videos"):
        self._client = client
        self._table = table

    async def insert(self, record: Dict[str, Any]) -> None:
        try:
            await asyncio.to_thread(
                lambda: self._client.table(self._table).insert([record]).execute()
            )
        except Exception as e:
            raise MetadataPersistError(
                f"Failed to save to database: {_store_detail(e)}",
                details={"table": self._table},
            ) from e


# ── Step Functions ───────────────────────────────────────────────────────────

async def download_video(fetcher: HttpVideoFetcher, video_url: str) -> bytes:
    video_bytes = await fetcher.fetch(video_url)
    logger.info(f"Video downloaded, size: {len(video_bytes)} bytes")
    return video_bytes


async def upload_video(blob_store: BlobStore, video_bytes: bytes) -> tuple[str, str]:
    """Upload the video under a fresh key. Returns (key, public_url)."""
    key = video_object_key()
    await blob_store.upload(key, video_bytes, VIDEO_CONTENT_TYPE, VIDEO_CACHE_CONTROL)
    public_url = blob_store.public_url(key)
    logger.info(f"Uploaded {key}: {public_url}")
    return key, public_url


async def save_metadata(
    metadata_store: MetadataStore,
    script: str,
    public_url: str,
    object_key: str,
) -> None:
    try:
        await metadata_store.insert({"script": script, "video_url": public_url})
    except Exception as e:
        error = e if isinstance(e, MetadataPersistError) else MetadataPersistError(
            f"Failed to save to database: {e}"
        )
        error.details.setdefault("object_key", object_key)
        logger.warning(f"Metadata insert failed; {object_key} left in storage unreferenced")
        if error is e:
            raise
        raise error from e
