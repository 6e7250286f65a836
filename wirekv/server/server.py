import asyncio
from functools import partial
from logging import getLogger
from typing import Optional

from wirekv.config.settings import Settings, get_settings
from wirekv.db.keyValueDBInterface import KeyValueDBInterface
from wirekv.db.keyValueStore import get_key_value_store
from wirekv.server.connectionHandler import ConnectionHandler
from wirekv.utils.logs import setup_logging

logger = getLogger(__name__)


async def handle_client(
    store: KeyValueDBInterface,
    settings: Settings,
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
):
    addr = writer.get_extra_info("peername")
    logger.info(f"Client connected: {addr}")

    try:
        await ConnectionHandler(store, reader, writer, settings).run()
        logger.info(f"Client connection closed: {addr}")

    except Exception as e:
        logger.error(f"Client error {addr}: {e}")

    finally:
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            # Peer already reset the connection
            pass
        logger.info(f"Client disconnected: {addr}")


async def start_server(
    store: Optional[KeyValueDBInterface] = None,
    host: Optional[str] = None,
    port: Optional[int] = None,
    settings: Optional[Settings] = None,
) -> asyncio.AbstractServer:
    """Start listening; each accepted connection runs in its own task"""
    settings = settings or get_settings()
    store = store if store is not None else get_key_value_store()
    host = host if host is not None else settings.HOST
    port = port if port is not None else settings.PORT
    server = await asyncio.start_server(
        partial(handle_client, store, settings), host, port
    )
    for sock in server.sockets:
        logger.info(f"WireKV server listening on {sock.getsockname()}")
    return server


async def serve(
    store: Optional[KeyValueDBInterface] = None,
    host: Optional[str] = None,
    port: Optional[int] = None,
    settings: Optional[Settings] = None,
):
    server = await start_server(store, host, port, settings)
    try:
        async with server:
            await server.serve_forever()
    except asyncio.CancelledError:
        logger.info("Shutting down WireKV server...")


def main():
    setup_logging()
    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        logger.info("WireKV server stopped")


if __name__ == "__main__":
    main()
