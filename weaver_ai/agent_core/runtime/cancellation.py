from __future__ import annotations

"""Cooperative cancellation tokens.

A ``CancellationSource`` is owned by whoever may cancel (the issuer). It hands
out a read-only ``CancellationToken`` that running work observes by polling
``cancelled``, calling ``raise_if_cancelled`` or awaiting ``wait``.

Cancellation is advisory: signalling a token never interrupts work that does
not look at it. Signalling is idempotent.

Timeouts are composed by deriving a source that fires after a deadline::

    source = CancellationSource(timeout=5.0, parents=[caller_token])
"""

import asyncio
import logging
from typing import Any, Callable, List, Optional, Sequence

from ..errors import RunCancelledError

logger = logging.getLogger(__name__)

CancelCallback = Callable[[Any], None]


class CancellationToken:
    """Read-only view on a ``CancellationSource``."""

    def __init__(self, source: "CancellationSource") -> None:
        self._source = source

    @property
    def cancelled(self) -> bool:
        return self._source._cancelled

    @property
    def reason(self) -> Any:
        return self._source._reason

    def add_callback(self, callback: CancelCallback) -> Callable[[], None]:
        """
        Call ``callback(reason)`` once the token is signalled.

        The callback runs immediately when the token is already signalled.

        Returns:
            A callable that unsubscribes the callback.
        """
        return self._source._subscribe(callback)

    def raise_if_cancelled(self) -> None:
        """Raise ``RunCancelledError`` when the token has been signalled."""
        if self.cancelled:
            raise RunCancelledError(reason=self.reason)

    async def wait(self) -> Any:
        """Suspend until the token is signalled and return the reason."""
        if self.cancelled:
            return self.reason
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Any] = loop.create_future()

        def _resolve(reason: Any) -> None:
            if not future.done():
                future.set_result(reason)

        remove = self.add_callback(_resolve)
        try:
            return await future
        finally:
            remove()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"


class CancellationSource:
    """Issuer of a ``CancellationToken``.

    Args:
        parents: Tokens whose cancellation is forwarded to this source.
        timeout: Seconds after which the source cancels itself. Requires a
            running event loop.
    """

    def __init__(
        self,
        *,
        parents: Sequence[Optional[CancellationToken]] = (),
        timeout: Optional[float] = None,
    ) -> None:
        self._cancelled = False
        self._reason: Any = None
        self._callbacks: List[CancelCallback] = []
        self._unlinks: List[Callable[[], None]] = []
        self._timer: Optional[asyncio.TimerHandle] = None
        self.token = CancellationToken(self)

        for parent in parents:
            if parent is None:
                continue
            self._unlinks.append(parent.add_callback(self.cancel))
        if timeout is not None:
            self._timer = asyncio.get_running_loop().call_later(
                timeout, self.cancel, TimeoutError(f"deadline of {timeout}s exceeded")
            )

    @classmethod
    def with_timeout(cls, timeout: float, parent: Optional[CancellationToken] = None) -> "CancellationSource":
        """Derive a source that fires after ``timeout`` seconds or when ``parent`` fires."""
        return cls(parents=[parent], timeout=timeout)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self, reason: Any = None) -> None:
        """Signal the token. Subsequent calls are no-ops."""
        if self._cancelled:
            return
        self._cancelled = True
        self._reason = reason if reason is not None else "cancelled"
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback(self._reason)
            except Exception as e:
                logger.error(f"Cancellation callback failed: {e}", exc_info=True)
        self.dispose()

    def dispose(self) -> None:
        """Release parent links and the deadline timer without signalling."""
        for unlink in self._unlinks:
            unlink()
        self._unlinks.clear()
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _subscribe(self, callback: CancelCallback) -> Callable[[], None]:
        if self._cancelled:
            callback(self._reason)
            return lambda: None
        self._callbacks.append(callback)

        def _remove() -> None:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass

        return _remove
