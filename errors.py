"""Exception types raised across the pipeline."""

from __future__ import annotations


class PipelineError(RuntimeError):
    """Base class for pipeline failures."""


class SessionAcquisitionError(PipelineError):
    """Browser session could not be obtained within the allowed attempts."""


class SessionLoadError(PipelineError):
    """Saved cookie file is missing or unreadable."""


class TransientFetchError(PipelineError):
    """A single HTTP call failed at the network level."""


class MalformedResponseError(PipelineError):
    """Response body lacks the expected list-valued `data` field."""
