from __future__ import annotations
from typing import Optional


class PipelineError(RuntimeError):
    """Any failure that aborts a task run."""


class CompletionFailure(PipelineError):
    """The model call errored, timed out, or came back empty."""


class MalformedResponseError(PipelineError):
    """A completion arrived but could not be decoded into the expected shape.

    The message stays generic so it can be shown to callers; the raw completion
    and the parser detail are kept on the instance for logs.
    """

    def __init__(self, raw: str, detail: Optional[str] = None):
        super().__init__("Invalid JSON response from agent")
        self.raw = raw
        self.detail = detail


class RequestValidationError(ValueError):
    """Rejected before a coordinator is built (missing task or API key)."""
