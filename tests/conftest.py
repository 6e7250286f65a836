import asyncio
import threading

import pytest

from wirekv.config.settings import Settings
from wirekv.db.keyValueStore import KeyValueStore
from wirekv.server.server import start_server


class ServerThread:
    """Runs a WireKV server on an ephemeral port in a background event loop."""

    def __init__(self, store, settings):
        self.store = store
        self.settings = settings
        self.loop = asyncio.new_event_loop()
        self.thread = threading.Thread(target=self._run, daemon=True)
        self.ready = threading.Event()
        self.server = None
        self.port = None

    def _run(self):
        asyncio.set_event_loop(self.loop)
        self.server = self.loop.run_until_complete(
            start_server(self.store, "127.0.0.1", 0, self.settings)
        )
        self.port = self.server.sockets[0].getsockname()[1]
        self.ready.set()
        self.loop.run_forever()

    def start(self):
        self.thread.start()
        assert self.ready.wait(5), "server did not start"
        return self

    async def _shutdown(self):
        self.server.close()
        current = asyncio.current_task()
        tasks = [t for t in asyncio.all_tasks() if t is not current]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await self.server.wait_closed()

    def stop(self):
        if self.loop.is_closed():
            return
        asyncio.run_coroutine_threadsafe(self._shutdown(), self.loop).result(5)
        self.loop.call_soon_threadsafe(self.loop.stop)
        self.thread.join(5)
        self.loop.close()


@pytest.fixture
def settings():
    return Settings(
        HOST="127.0.0.1",
        PORT=0,
        MAX_KEY_SIZE=1024,
        MAX_VALUE_SIZE=4096,
        DRAIN_TIMEOUT=0.05,
    )


@pytest.fixture
def store():
    return KeyValueStore()


@pytest.fixture
def server(store, settings):
    srv = ServerThread(store, settings).start()
    yield srv
    srv.stop()
