"""Framing of WireKV requests.

Format on the wire (integers are unsigned, network order):
  [1 byte command] [8 bytes key length] [8 bytes value length] [key] [value]
The value is only sent for SET. GET and DEL carry a value length of 0.

Responses have no framing: the server writes raw bytes back.
"""
import asyncio
import socket
import struct
from dataclasses import dataclass

from wirekv.protocol.command import Command
from wirekv.protocol.errors import Truncated

HEADER_FORMAT = "!BQQ"
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)  # 17


@dataclass(frozen=True)
class RequestHeader:
    command: Command
    key_length: int
    value_length: int


@dataclass(frozen=True)
class Request:
    command: Command
    key: bytes
    value: bytes = b""


def encode(command: Command, key: bytes, value: bytes = b"") -> bytes:
    if command != Command.SET:
        value = b""
    header = struct.pack(HEADER_FORMAT, command.to_byte(), len(key), len(value))
    return header + key + value


def decode_header(header: bytes) -> RequestHeader:
    if len(header) != HEADER_SIZE:
        raise Truncated(HEADER_SIZE, bytes(header))
    tag, key_length, value_length = struct.unpack(HEADER_FORMAT, header)
    return RequestHeader(Command.from_byte(tag), key_length, value_length)


def decode(frame: bytes) -> Request:
    """Decode a complete in-memory frame. Trailing bytes are ignored."""
    header = decode_header(frame[:HEADER_SIZE])
    key_end = HEADER_SIZE + header.key_length
    key = frame[HEADER_SIZE:key_end]
    if len(key) < header.key_length:
        raise Truncated(header.key_length, key)

    if header.command != Command.SET:
        return Request(header.command, key)

    value = frame[key_end:key_end + header.value_length]
    if len(value) < header.value_length:
        raise Truncated(header.value_length, value)
    return Request(header.command, key, value)


async def read_exact(reader: asyncio.StreamReader, n: int) -> bytes:
    # NOTE: n comes straight from the peer; callers bound it first.
    try:
        return await reader.readexactly(n)
    except asyncio.IncompleteReadError as e:
        raise Truncated(n, e.partial) from None


def recv_exact(sock: socket.socket, n: int) -> bytes:
    buf = bytearray()
    while len(buf) < n:
        chunk = sock.recv(n - len(buf))
        if not chunk:
            raise Truncated(n, bytes(buf))
        buf.extend(chunk)
    return bytes(buf)
