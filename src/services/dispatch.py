"""
Dispatch - Run blocking wallet operations off the caller's thread.

Every operation returns a concurrent.futures.Future. Cancelling a future
only stops waiting for it (or prevents it from starting); a transaction that
has already been broadcast stays broadcast.

Callback-style consumers get the legacy nil-on-error behaviour through
call_with_callback, which logs the error instead of dropping it silently.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional

from wallet.errors import WalletError

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4


def _deliver_directly(callback: Callable[[Any], None], value: Any) -> None:
    callback(value)


class WalletDispatcher:
    """
    Worker pool for wallet operations.

    Args:
        max_workers: Pool size
        deliver: How callbacks reach the caller's context, e.g. a function
            that posts to a UI event loop. Defaults to calling them on the
            worker thread.
    """

    def __init__(self, max_workers: int = DEFAULT_MAX_WORKERS,
                 deliver: Optional[Callable[[Callable[[Any], None], Any], None]] = None):
        self._executor = ThreadPoolExecutor(max_workers=max_workers,
                                            thread_name_prefix="wallet")
        self._deliver = deliver or _deliver_directly

    def submit(self, fn: Callable[..., Any], *args, **kwargs) -> Future:
        """Schedule fn(*args, **kwargs) and return its future."""
        return self._executor.submit(fn, *args, **kwargs)

    def call_with_callback(self, fn: Callable[..., Any],
                           callback: Callable[[Optional[Any]], None],
                           *args, **kwargs) -> Future:
        """
        Run fn and hand its result to callback, or None if it failed or was
        cancelled.

        The error itself is only logged; use submit() or the blocking call
        when the failure reason matters.
        """
        future = self.submit(fn, *args, **kwargs)
        name = getattr(fn, "__name__", repr(fn))

        def done(f: Future) -> None:
            if f.cancelled():
                logger.info(f"{name} cancelled before completion")
                self._deliver(callback, None)
                return
            error = f.exception()
            if error is None:
                self._deliver(callback, f.result())
                return
            if isinstance(error, WalletError):
                logger.warning(f"{name} failed: {error.kind}: {error.message}")
            else:
                logger.error(f"{name} failed unexpectedly: {error!r}", exc_info=error)
            self._deliver(callback, None)

        future.add_done_callback(done)
        return future

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=True)
