import socket
from logging import getLogger
from typing import Callable, Optional

from wirekv.config.settings import Settings, get_settings
from wirekv.protocol.command import Command
from wirekv.protocol.errors import InvalidCommand
from wirekv.protocol.wireCodec import encode
from wirekv.utils.display import render_bytes
from wirekv.utils.logs import setup_logging

logger = getLogger(__name__)

PROMPT_HELP = "Commands: 0 = SET, 1 = GET, 2 = DEL (empty line to quit)"


class KeyValueClient:
    """Blocking client for a WireKV server.

    Responses are unframed, so `request` returns whatever a single `recv`
    yields, up to `RESPONSE_BUFFER_SIZE` bytes.
    """

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.host = host if host is not None else self.settings.HOST
        self.port = port if port is not None else self.settings.PORT
        self.sock: Optional[socket.socket] = None

    def connect(self):
        self.sock = socket.create_connection((self.host, self.port))
        logger.info(f"Connected to {self.host}:{self.port}")
        return self

    def close(self):
        if self.sock is not None:
            self.sock.close()
            self.sock = None

    def __enter__(self):
        return self.connect()

    def __exit__(self, *exc):
        self.close()

    def request(self, command: Command, key: bytes, value: bytes = b"") -> bytes:
        if self.sock is None:
            raise ConnectionError("client is not connected")
        self.sock.sendall(encode(command, key, value))
        return self.sock.recv(self.settings.RESPONSE_BUFFER_SIZE)

    def set(self, key: bytes, value: bytes) -> bytes:
        return self.request(Command.SET, key, value)

    def get(self, key: bytes) -> bytes:
        return self.request(Command.GET, key)

    def delete(self, key: bytes) -> bytes:
        return self.request(Command.DEL, key)


def run_prompt(
    client: KeyValueClient,
    input_fn: Callable[[str], str] = input,
    output_fn: Callable[[str], None] = print,
):
    output_fn(PROMPT_HELP)
    while True:
        try:
            token = input_fn("command> ").strip()
            if not token:
                return
            try:
                command = Command.from_string(token)
            except InvalidCommand as e:
                output_fn(f"Invalid command: {e}")
                continue

            key = input_fn("key> ").encode()
            value = b""
            if command == Command.SET:
                value = input_fn("value> ").encode()
        except EOFError:
            return

        try:
            response = client.request(command, key, value)
        except OSError as e:
            output_fn(f"Connection to {client.host}:{client.port} lost: {e}")
            return
        if not response:
            output_fn("Server closed the connection.")
            return
        output_fn(render_bytes(response))


def main(host: Optional[str] = None, port: Optional[int] = None):
    setup_logging()
    client = KeyValueClient(host, port)
    try:
        client.connect()
    except ConnectionRefusedError:
        print(f"Could not connect to {client.host}:{client.port} (is the server running?)")
        return
    except OSError as e:
        print(f"Could not connect to {client.host}:{client.port}: {e}")
        return

    try:
        run_prompt(client)
    except KeyboardInterrupt:
        print()
    finally:
        client.close()


if __name__ == "__main__":
    main()
