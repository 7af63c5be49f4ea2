"""Failure taxonomy for pipeline runs.

Every failure that can leave a pipeline run carries three things:

- ``code``: a stable identifier surfaced to callers and logs
- ``status_code``: the HTTP-like status the inbound trigger answers with
- ``terminal_status``: the SourceItem status the orchestrator writes for it,
  or ``None`` when the failure happens before the item is claimed
"""
from typing import Optional


class PipelineError(Exception):
    """Base class for classified pipeline failures."""

    code = "pipeline_error"
    status_code = 500
    terminal_status: Optional[str] = "error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


class SourceItemNotFound(PipelineError):
    """The requested source item does not exist."""

    code = "not_found"
    status_code = 404
    terminal_status = None


class Conflict(PipelineError):
    """Another run currently holds the item in `processing`."""

    code = "conflict"
    status_code = 409
    terminal_status = None


class InsufficientContext(PipelineError):
    """Not enough source material to attempt generation."""

    code = "insufficient_context"
    status_code = 400
    terminal_status = "skipped"


class InsufficientContentSentinel(PipelineError):
    """The model explicitly declined to expand the source material."""

    code = "insufficient_content"
    status_code = 200
    terminal_status = "skipped"


class OutputFormatError(PipelineError):
    """Model output failed the sanitizer's format contract."""

    code = "output_format_error"
    status_code = 422


class TitleValidationError(OutputFormatError):
    """Generated title is too short or too close to the source title."""

    code = "title_validation_failed"


class GenerationTimeout(PipelineError):
    """The generation service did not answer within the timeout."""

    code = "generation_timeout"
    status_code = 504


class GenerationFailed(PipelineError):
    """The generation service returned an error or retries ran out."""

    code = "generation_failed"
    status_code = 502


class UpstreamQuotaExceeded(PipelineError):
    """The generation service quota is exhausted."""

    code = "upstream_quota_exceeded"
    status_code = 429


class FixtureDataUnavailable(PipelineError):
    """The sports-data provider could not supply the fixture."""

    code = "fixture_data_unavailable"
    status_code = 502


class PipelineFailure(PipelineError):
    """Wraps an unclassified exception raised inside a run."""

    code = "pipeline_failure"
    status_code = 500


class GenerationServiceError(Exception):
    """Raw error signal from the text generation service."""

    def __init__(self, message: str, status: Optional[int] = None, timed_out: bool = False):
        super().__init__(message)
        self.message = message
        self.status = status
        self.timed_out = timed_out

    @property
    def is_transient(self) -> bool:
        """Timeouts, rate limits and 5xx responses are worth another attempt."""
        if self.timed_out:
            return True
        if self.status is None:
            return False
        return self.status == 429 or 500 <= self.status < 600

    @property
    def is_quota_exhausted(self) -> bool:
        text = self.message.lower()
        return "quota" in text or "billing" in text


class DuplicateSlugError(Exception):
    """A content record with the same slug was inserted concurrently."""

    def __init__(self, slug: str):
        super().__init__(f"Slug '{slug}' already exists")
        self.slug = slug
