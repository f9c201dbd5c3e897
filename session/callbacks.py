"""
Callback-style adapter for session stores.

Some hosts expect session store methods that take a trailing
callback(error, result) instead of returning an awaitable. This adapter
exposes that calling convention on top of any SessionStore while the
store itself stays coroutine-based.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from session.store import SessionStore

logger = logging.getLogger(__name__)

SessionCallback = Callable[[Optional[BaseException], Any], None]


class CallbackSessionStore:
    """
    Expose get/set/destroy/touch with Node-style callbacks.

    Each method schedules the wrapped coroutine on the event loop and
    returns the task. When it completes the callback receives
    (None, result) on success or (exception, None) on failure.
    """

    def __init__(
        self,
        store: SessionStore,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        """
        Args:
            store: The coroutine-based store to wrap.
            loop: Loop to schedule on. Defaults to the running loop at
                call time.
        """
        self.store = store
        self._loop = loop

    def _dispatch(
        self, operation: Awaitable[Any], callback: SessionCallback
    ) -> asyncio.Task:
        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(operation)

        def _done(finished: asyncio.Task) -> None:
            if finished.cancelled():
                error: Optional[BaseException] = asyncio.CancelledError()
                result = None
            else:
                error = finished.exception()
                result = None if error is not None else finished.result()
            try:
                callback(error, result)
            except Exception:
                logger.exception("Session store callback raised")

        task.add_done_callback(_done)
        return task

    def get(self, session_id: str, callback: SessionCallback) -> asyncio.Task:
        return self._dispatch(self.store.get(session_id), callback)

    def set(
        self, session_id: str, record: dict[str, Any], callback: SessionCallback
    ) -> asyncio.Task:
        return self._dispatch(self.store.set(session_id, record), callback)

    def destroy(self, session_id: str, callback: SessionCallback) -> asyncio.Task:
        return self._dispatch(self.store.destroy(session_id), callback)

    def touch(
        self, session_id: str, record: dict[str, Any], callback: SessionCallback
    ) -> asyncio.Task:
        return self._dispatch(self.store.touch(session_id, record), callback)
