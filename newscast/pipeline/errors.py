"""
Exception hierarchy for the newscast pipeline.

Every stage failure surfaces as a PipelineError subclass so the route can
map it to a single JSON envelope without inspecting provider internals.
"""

from typing import Any, Dict, Optional


class PipelineError(Exception):
    """Base exception for all pipeline failures."""

    http_status = 500

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.details = details or {}


class ValidationError(PipelineError):
    """Inbound request is missing its business data."""

    http_status = 400


class ProviderTransportError(PipelineError):
    """Network or protocol failure talking to a generation provider."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if provider:
            details["provider"] = provider
        if status_code:
            details["status_code"] = status_code
        super().__init__(message, details=details, **kwargs)
        self.status_code = status_code


class InsufficientCreditsError(ProviderTransportError):
    """The video provider refused the job for billing reasons (HTTP 402)."""


class DownloadError(PipelineError):
    """Fetching the synthesized video from the provider's CDN failed."""


class StorageUploadError(PipelineError):
    """Blob upload was rejected by the object store."""


class MetadataPersistError(PipelineError):
    """
    Metadata insert failed after the blob was already uploaded.

    The uploaded object is left in place; `details["object_key"]` names it
    so operators can reconcile by hand.
    """
