"""Deferred notifications, tied to the lifetime of their owner.

Uses the running asyncio loop's `call_later` so a host that drives the
controller from an event loop gets its notification after the current
handler has finished.  At most one notification is pending at a time:
scheduling a new one cancels the previous, and `close()` cancels whatever is
pending and refuses further work, so nothing ever calls back into a disposed
host.

Without a running loop (plain synchronous callers, tests) the callback runs
immediately.
"""

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger("permstate.scheduler")


class DeferredNotifier:
    def __init__(self, delay: float, loop: asyncio.AbstractEventLoop | None = None):
        self.delay = delay
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None
        self._closed = False

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def _resolve_loop(self) -> asyncio.AbstractEventLoop | None:
        if self._loop is not None and not self._loop.is_closed():
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None

    def schedule(self, callback: Callable[[], None]) -> None:
        """Run `callback` after `delay` seconds, replacing any pending one."""
        if self._closed:
            logger.debug("Notifier closed; dropping notification")
            return
        self.cancel()

        loop = self._resolve_loop()
        if loop is None:
            callback()
            return

        def _fire() -> None:
            self._handle = None
            if self._closed:
                return
            try:
                callback()
            except Exception:
                logger.exception("Unhandled error in deferred notification")

        self._handle = loop.call_later(self.delay, _fire)

    def cancel(self) -> bool:
        """Cancel the pending notification.  Returns True if one was pending."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        return True

    def close(self) -> None:
        if self.cancel():
            logger.debug("Cancelled pending notification on close")
        self._closed = True
