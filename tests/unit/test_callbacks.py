"""
Unit tests for the callback-style session store adapter.
"""

import asyncio

import pytest

from session.callbacks import CallbackSessionStore
from session.expiry_store import SessionExpiryStore


class Recorder:
    """Collects callback invocations."""

    def __init__(self):
        self.calls = []

    def __call__(self, error, result):
        self.calls.append((error, result))


@pytest.fixture
def adapter(spy_database):
    store = SessionExpiryStore(spy_database, refresh_ms=1000)
    yield CallbackSessionStore(store)
    store.shutdown()


class TestCallbackSessionStore:
    """Tests for CallbackSessionStore."""

    @pytest.mark.asyncio
    async def test_set_then_get_delivers_record(self, adapter):
        record = {"cookie": {}, "user": "alice"}
        set_done = Recorder()
        get_done = Recorder()

        await adapter.set("abc", record, set_done)
        await adapter.get("abc", get_done)
        await asyncio.sleep(0)

        assert set_done.calls == [(None, None)]
        assert get_done.calls == [(None, record)]

    @pytest.mark.asyncio
    async def test_get_missing_session_delivers_none(self, adapter):
        done = Recorder()

        await adapter.get("missing", done)
        await asyncio.sleep(0)

        assert done.calls == [(None, None)]

    @pytest.mark.asyncio
    async def test_destroy_and_touch_deliver_success(self, adapter):
        destroyed = Recorder()
        touched = Recorder()

        await adapter.touch("abc", {"cookie": {"expires": 4102444800000}}, touched)
        await adapter.destroy("abc", destroyed)
        await asyncio.sleep(0)

        assert touched.calls == [(None, None)]
        assert destroyed.calls == [(None, None)]

    @pytest.mark.asyncio
    async def test_failure_is_delivered_as_error(self, mock_database):
        failure = ConnectionError("database down")
        mock_database.get.side_effect = failure
        adapter = CallbackSessionStore(SessionExpiryStore(mock_database))
        done = Recorder()

        task = adapter.get("abc", done)
        with pytest.raises(ConnectionError):
            await task
        await asyncio.sleep(0)

        assert done.calls == [(failure, None)]

    @pytest.mark.asyncio
    async def test_raising_callback_does_not_break_the_loop(self, adapter):
        def explode(error, result):
            raise RuntimeError("callback bug")

        await adapter.get("abc", explode)
        await asyncio.sleep(0)

    @pytest.mark.asyncio
    async def test_returns_task(self, adapter):
        task = adapter.get("abc", Recorder())
        assert isinstance(task, asyncio.Task)
        await task
