"""
Cancellation token for cooperative cancellation of one send_message call.

One token is shared by the chat backend request, the stream decoder and any
in-flight MCP tool request:
- Cancellation signaling via asyncio.Event
- Callback registration for cancellation notifications
- A scope that interrupts the awaiting task when cancel() is called
"""

from __future__ import annotations

import asyncio
import contextlib

from collections.abc import AsyncIterator, Callable

from emcy_agent.utils.logger import logger


class CancellationToken:
    """Cooperative cancellation token.

    Usage:
        token = CancellationToken()

        # In controller:
        token.cancel()

        # In consumer:
        async for chunk in stream:
            token.check()  # Raises CancelledError if cancelled
            process(chunk)

        # Or interrupt whatever is being awaited:
        async with token.cancellation_scope():
            await long_request()
    """

    __slots__ = ("_callbacks", "_cancel_reason", "_cancelled")

    def __init__(self) -> None:
        self._cancelled = asyncio.Event()
        self._callbacks: list[Callable[[], None]] = []
        self._cancel_reason: str | None = None

    @property
    def is_cancelled(self) -> bool:
        """Check if cancellation has been requested."""
        return self._cancelled.is_set()

    @property
    def cancel_reason(self) -> str | None:
        """Get the reason for cancellation, if any."""
        return self._cancel_reason

    def cancel(self, reason: str | None = None) -> None:
        """Request cancellation and notify all callbacks.

        Idempotent: only the first call records a reason and fires callbacks.

        Args:
            reason: Optional reason for cancellation (for logging/debugging)
        """
        if self._cancelled.is_set():
            return

        self._cancel_reason = reason
        self._cancelled.set()

        for callback in list(self._callbacks):
            self._invoke_callback(callback)

    def _invoke_callback(self, callback: Callable[[], None]) -> None:
        """Invoke a callback, logging any errors."""
        try:
            callback()
        except Exception as e:
            logger.warning(f"Cancellation callback error: {e}")

    async def wait_for_cancellation(self, timeout: float | None = None) -> bool:
        """Wait for cancellation to be requested.

        Args:
            timeout: Maximum time to wait (None = wait forever)

        Returns:
            True if cancelled, False if timeout expired
        """
        try:
            await asyncio.wait_for(self._cancelled.wait(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            return False

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a callback to be called when cancelled.

        Args:
            callback: Function to call on cancellation

        Returns:
            The callback (for use as decorator)
        """
        # If already cancelled, call immediately
        if self._cancelled.is_set():
            self._invoke_callback(callback)
            return callback

        self._callbacks.append(callback)
        return callback

    def remove_callback(self, callback: Callable[[], None]) -> None:
        """Remove a previously registered callback."""
        with contextlib.suppress(ValueError):
            self._callbacks.remove(callback)

    @contextlib.asynccontextmanager
    async def cancellation_scope(self) -> AsyncIterator[None]:
        """Context manager that interrupts the current task when cancelled.

        The CancelledError raised inside the scope propagates to the caller;
        the task's own cancellation request is withdrawn, so the caller may
        handle the error and keep running.

        Raises:
            asyncio.CancelledError: If token is cancelled before or during scope
        """
        self.check()

        current_task = asyncio.current_task()
        interrupted = False

        def interrupt() -> None:
            nonlocal interrupted
            if current_task is None or current_task.done():
                return
            # Cancelled from inside the scoped task itself: the next check() raises
            if _calling_task() is current_task:
                return
            interrupted = True
            current_task.cancel(self._cancel_reason)

        self.on_cancel(interrupt)
        try:
            yield
        finally:
            self.remove_callback(interrupt)
            if interrupted and current_task is not None:
                current_task.uncancel()

        self.check()

    def check(self) -> None:
        """Check cancellation and raise if cancelled.

        Raises:
            asyncio.CancelledError: If token is cancelled
        """
        if self.is_cancelled:
            raise asyncio.CancelledError(self._cancel_reason or "Cancellation requested")


def _calling_task() -> asyncio.Task | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


__all__ = ["CancellationToken"]
