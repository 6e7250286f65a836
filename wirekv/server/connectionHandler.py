import asyncio
from logging import getLogger
from typing import Optional

from wirekv.config.settings import Settings, get_settings
from wirekv.db.keyValueDBInterface import KeyValueDBInterface
from wirekv.protocol.command import Command
from wirekv.protocol.errors import FieldTooLarge, InvalidCommand, Truncated
from wirekv.protocol.wireCodec import HEADER_SIZE, RequestHeader, decode_header, read_exact
from wirekv.utils.display import render_bytes

logger = getLogger(__name__)

INSERT_OK = b"Insertion successful\n"
DELETE_OK = b"Deletion successful"


class ConnectionHandler:
    """Serves the requests of one client connection until it closes.

    The handler loops reading a 17 byte header, the key (and for SET the
    value) it declares, then applies the command to the shared store and
    writes the response. A clean EOF at a header boundary ends `run()`
    normally; any other short read or socket error propagates.
    """

    def __init__(
        self,
        store: KeyValueDBInterface,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        settings: Optional[Settings] = None,
    ):
        self.store = store
        self.reader = reader
        self.writer = writer
        self.settings = settings or get_settings()
        self.peer = writer.get_extra_info("peername")

    async def run(self):
        while True:
            try:
                raw_header = await read_exact(self.reader, HEADER_SIZE)
            except Truncated as e:
                if not e.partial:
                    return
                raise

            try:
                header = decode_header(raw_header)
            except InvalidCommand as e:
                logger.warning(f"Invalid request from {self.peer}: {e}")
                await self._send(f"An error occurred: {e}".encode())
                discarded = await self._drain_pending()
                logger.debug(f"Discarded {discarded} pending bytes from {self.peer}")
                continue

            await self._check_sizes(header)
            response = await self._execute(header)
            await self._send(response)

    async def _check_sizes(self, header: RequestHeader):
        try:
            if self.settings.MAX_KEY_SIZE and header.key_length > self.settings.MAX_KEY_SIZE:
                raise FieldTooLarge("key", header.key_length, self.settings.MAX_KEY_SIZE)
            if (
                header.command == Command.SET
                and self.settings.MAX_VALUE_SIZE
                and header.value_length > self.settings.MAX_VALUE_SIZE
            ):
                raise FieldTooLarge("value", header.value_length, self.settings.MAX_VALUE_SIZE)
        except FieldTooLarge as e:
            # The body can't be skipped safely, so the connection ends here
            await self._send(f"An error occurred: {e}".encode())
            raise

    async def _execute(self, header: RequestHeader) -> bytes:
        key = await read_exact(self.reader, header.key_length)

        if header.command == Command.SET:
            value = await read_exact(self.reader, header.value_length)
            logger.debug(
                f"SET received: Key size = {header.key_length}, Value size = {header.value_length}"
            )
            self.store.set(key, value)
            return INSERT_OK

        if header.command == Command.GET:
            logger.debug(f"GET received: Key size = {header.key_length}")
            value = self.store.get(key)
            if value is None:
                return f"GET Error: Key not found: {render_bytes(key)}".encode()
            return value

        logger.debug(f"DEL received: Key size = {header.key_length}")
        if self.store.delete(key):
            return DELETE_OK
        return f"DEL Error: Key not found: {render_bytes(key)}".encode()

    async def _send(self, payload: bytes):
        self.writer.write(payload)
        await self.writer.drain()

    async def _drain_pending(self) -> int:
        # Best effort: one window for the whole drain, bytes arriving after
        # the deadline are read as the next header
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.settings.DRAIN_TIMEOUT
        discarded = 0
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            try:
                chunk = await asyncio.wait_for(
                    self.reader.read(self.settings.DRAIN_CHUNK_SIZE),
                    timeout=remaining,
                )
            except asyncio.TimeoutError:
                break
            if not chunk:
                break
            discarded += len(chunk)
        return discarded
