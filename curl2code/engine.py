"""Live preview: perform a parsed request and report the response.

This is the only stateful part of curl2code.  It runs apart from parsing
and code generation, and its failures are raised as ``ExecutionError`` so
they never invalidate code that has already been generated.
"""

from __future__ import annotations

import json
import logging
import sys
import threading
import time
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from typing import TextIO

import requests
import urllib3

from curl2code.errors import ExecutionError
from curl2code.parser import RequestDescriptor

logger = logging.getLogger(__name__)

# Overall deadline for one preview request, in seconds
DEFAULT_TIMEOUT = 30.0

# Bytes read between cancellation/deadline checks
CHUNK_SIZE = 8192


class ExecutionResult:
    """Container for the response of a live preview request."""

    __slots__ = (
        "status_code",
        "reason",
        "headers",
        "body",
        "elapsed",
    )

    def __init__(
        self,
        status_code: int,
        reason: str,
        headers: dict[str, str],
        body: str,
        elapsed: float,
    ) -> None:
        self.status_code = status_code
        self.reason = reason
        self.headers = headers
        self.body = body
        self.elapsed = elapsed

    def __repr__(self) -> str:
        return (
            f"ExecutionResult(status_code={self.status_code!r}, "
            f"headers=<{len(self.headers)} headers>, "
            f"body=<{len(self.body)} chars>)"
        )


def format_body(text: str, content_type: str) -> str:
    """Pretty-print JSON responses; return anything else unchanged."""
    if "application/json" not in content_type.lower():
        return text
    try:
        return json.dumps(json.loads(text), indent=2, ensure_ascii=False)
    except ValueError:
        return text


def _check_cancel(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        logger.warning("Preview request cancelled")
        raise ExecutionError("Request cancelled", cancelled=True)


def execute_request(
    descriptor: RequestDescriptor,
    timeout: float = DEFAULT_TIMEOUT,
    verify: bool = True,
    cancel_event: threading.Event | None = None,
) -> ExecutionResult:
    """Perform the described request and collect the response.

    The body is streamed in chunks so that ``cancel_event`` and the overall
    ``timeout`` are honoured while the response is still arriving.

    Args:
        descriptor: The parsed request.
        timeout: Overall deadline in seconds, also used as the socket timeout.
        verify: Whether to verify TLS certificates.
        cancel_event: Set it from another thread to abandon the request.

    Returns:
        An ExecutionResult with status, headers and (pretty-printed) body.

    Raises:
        ExecutionError: On transport failure, timeout or cancellation.
    """
    _check_cancel(cancel_event)

    if not verify:
        # Suppress InsecureRequestWarning when certificate checks are off
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    data = None
    if descriptor.body is not None:
        data = descriptor.body.encode("utf-8")

    logger.debug("Executing %s %s", descriptor.method, descriptor.url)
    started = time.monotonic()
    deadline = started + timeout

    try:
        response = requests.request(
            method=descriptor.method,
            url=descriptor.url,
            headers=dict(descriptor.headers),
            data=data,
            timeout=timeout,
            verify=verify,
            stream=True,
        )
    except requests.RequestException as exc:
        logger.warning("Preview request failed: %s", exc)
        raise ExecutionError(f"Request failed: {exc}") from exc

    chunks: list[bytes] = []
    try:
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            _check_cancel(cancel_event)
            if time.monotonic() > deadline:
                logger.warning("Preview request exceeded %gs deadline", timeout)
                raise ExecutionError(f"Request timed out after {timeout:g}s")
            chunks.append(chunk)
    except requests.RequestException as exc:
        logger.warning("Preview response could not be read: %s", exc)
        raise ExecutionError(f"Reading response failed: {exc}") from exc
    finally:
        response.close()

    text = b"".join(chunks).decode(response.encoding or "utf-8", errors="replace")
    headers = dict(response.headers)
    elapsed = time.monotonic() - started
    logger.debug(
        "Preview finished: HTTP %s in %.3fs", response.status_code, elapsed
    )

    return ExecutionResult(
        status_code=response.status_code,
        reason=response.reason or "",
        headers=headers,
        body=format_body(text, response.headers.get("Content-Type", "")),
        elapsed=elapsed,
    )


class PreviewHandle:
    """A running preview request that the caller can wait on or cancel."""

    def __init__(self, future: Future, cancel_event: threading.Event) -> None:
        self._future = future
        self._cancel_event = cancel_event

    def cancel(self) -> None:
        self._cancel_event.set()
        self._future.cancel()

    def done(self) -> bool:
        return self._future.done()

    def result(self, wait: float | None = None) -> ExecutionResult:
        """Block until the request finishes.

        Raises:
            ExecutionError: If the request failed or was cancelled.
            concurrent.futures.TimeoutError: If ``wait`` elapsed first.
        """
        try:
            return self._future.result(timeout=wait)
        except CancelledError:
            raise ExecutionError("Request cancelled", cancelled=True) from None


class PreviewRunner:
    """Owns the worker threads that run preview requests.

    Use it as a context manager, or call ``close()`` when done; closing
    cancels whatever is still in flight.
    """

    def __init__(
        self,
        max_workers: int = 4,
        timeout: float = DEFAULT_TIMEOUT,
        verify: bool = True,
    ) -> None:
        self.timeout = timeout
        self.verify = verify
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="curl2code-preview"
        )
        self._lock = threading.Lock()
        self._pending: set[threading.Event] = set()
        self._closed = False

    def submit(self, descriptor: RequestDescriptor) -> PreviewHandle:
        cancel_event = threading.Event()
        with self._lock:
            if self._closed:
                raise RuntimeError("PreviewRunner is closed")
            self._pending.add(cancel_event)
            future = self._executor.submit(
                execute_request,
                descriptor,
                timeout=self.timeout,
                verify=self.verify,
                cancel_event=cancel_event,
            )
        future.add_done_callback(lambda _: self._forget(cancel_event))
        return PreviewHandle(future, cancel_event)

    def _forget(self, cancel_event: threading.Event) -> None:
        with self._lock:
            self._pending.discard(cancel_event)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            for cancel_event in self._pending:
                cancel_event.set()
        self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> PreviewRunner:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def format_response(result: ExecutionResult) -> str:
    """Render status line, headers and body as display text."""
    lines = [f"Status: {result.status_code} {result.reason}".rstrip(), ""]
    lines.append("Headers:")
    for key, value in result.headers.items():
        lines.append(f"  {key}: {value}")
    lines.extend(["", "Body:", result.body])
    return "\n".join(lines)


def print_report(result: ExecutionResult, file: TextIO | None = None) -> None:
    """Print a formatted preview report (to stdout unless ``file`` is given)."""
    out = file if file is not None else sys.stdout
    banner = "=" * 60
    print(f"\n{banner}", file=out)
    print("  CURL2CODE — Live Preview", file=out)
    print(banner, file=out)
    print(f"\n  Elapsed : {result.elapsed:.3f}s\n", file=out)
    print(format_response(result), file=out)
    print(f"\n{banner}\n", file=out)
