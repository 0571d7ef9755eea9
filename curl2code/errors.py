"""Error taxonomy shared by the parser, the emitters and the preview engine.

Parse and emit failures are fatal to that one call only. Live preview
failures are reported through ``ExecutionError`` and never touch code that
has already been generated.
"""

from __future__ import annotations


class Curl2CodeError(Exception):
    """Base class for every error raised by curl2code."""


class InvalidInvocation(Curl2CodeError, ValueError):
    """The input is not a curl invocation, or it names no URL."""


class UnsupportedTarget(Curl2CodeError, ValueError):
    """No emitter is registered under the requested target id."""

    def __init__(self, target_id: str) -> None:
        super().__init__(f"Unsupported target: {target_id!r}")
        self.target_id = target_id


class JsonReformatFailure(Curl2CodeError, ValueError):
    """A JSON-typed body could not be decoded; emitters fall back to raw text."""


class ExecutionError(Curl2CodeError):
    """Transport failure, timeout or cancellation during a live preview."""

    def __init__(self, message: str, cancelled: bool = False) -> None:
        super().__init__(message)
        self.cancelled = cancelled
