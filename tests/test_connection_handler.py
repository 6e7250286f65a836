import asyncio

import pytest

from wirekv.protocol.command import Command
from wirekv.protocol.errors import FieldTooLarge, Truncated
from wirekv.protocol.wireCodec import encode
from wirekv.server.connectionHandler import ConnectionHandler


class FakeWriter:
    def __init__(self):
        self.responses = []

    def write(self, data):
        self.responses.append(bytes(data))

    async def drain(self):
        pass

    def get_extra_info(self, name, default=None):
        return ("127.0.0.1", 50000) if name == "peername" else default


def run_handler(data, store, settings, eof=True, writer=None):
    """Feed `data` to a handler and return what it wrote back."""
    writer = writer or FakeWriter()

    async def run():
        reader = asyncio.StreamReader()
        reader.feed_data(data)
        if eof:
            reader.feed_eof()
        await ConnectionHandler(store, reader, writer, settings).run()

    asyncio.run(run())
    return writer.responses


def test_graceful_close_without_requests(store, settings):
    assert run_handler(b"", store, settings) == []


def test_set_get_del_sequence(store, settings):
    data = (
        encode(Command.SET, b"apple", b"orange")
        + encode(Command.GET, b"apple")
        + encode(Command.DEL, b"apple")
        + encode(Command.GET, b"apple")
        + encode(Command.DEL, b"apple")
    )
    assert run_handler(data, store, settings) == [
        b"Insertion successful\n",
        b"orange",
        b"Deletion successful",
        b"GET Error: Key not found: apple",
        b"DEL Error: Key not found: apple",
    ]
    assert b"apple" not in store


def test_overwrite(store, settings):
    data = (
        encode(Command.SET, b"k", b"v1")
        + encode(Command.SET, b"k", b"v2")
        + encode(Command.GET, b"k")
    )
    assert run_handler(data, store, settings)[-1] == b"v2"


def test_get_ignores_declared_value_length(store, settings):
    store.set(b"k", b"v")
    header = bytes([1]) + (1).to_bytes(8, "big") + (99).to_bytes(8, "big")
    assert run_handler(header + b"k", store, settings) == [b"v"]


def test_empty_key_and_value(store, settings):
    data = encode(Command.SET, b"", b"") + encode(Command.GET, b"")
    assert run_handler(data, store, settings) == [b"Insertion successful\n", b""]


def test_binary_payloads(store, settings):
    key, value = b"\xff\xfe", bytes(range(256))
    data = encode(Command.SET, key, value) + encode(Command.GET, key)
    assert run_handler(data, store, settings)[1] == value


def test_miss_with_non_utf8_key_is_rendered(store, settings):
    responses = run_handler(encode(Command.GET, b"\xff\x00"), store, settings)
    assert responses == [b"GET Error: Key not found: b'\\xff\\x00'"]


def test_invalid_command_reports_and_drains(store, settings):
    bad = bytes([3]) + (5).to_bytes(8, "big") + bytes(8) + b"apple"
    responses = run_handler(bad, store, settings)
    assert responses == [b"An error occurred: Unknown command 3"]
    assert len(store) == 0


def test_partial_header_is_fatal(store, settings):
    with pytest.raises(Truncated):
        run_handler(bytes(10), store, settings)


def test_short_key_is_fatal_and_store_untouched(store, settings):
    frame = encode(Command.SET, b"apple", b"orange")
    with pytest.raises(Truncated) as info:
        run_handler(frame[:17 + 3], store, settings)
    assert info.value.expected == 5
    assert info.value.partial == b"app"
    assert len(store) == 0


def test_short_value_is_fatal_and_store_untouched(store, settings):
    frame = encode(Command.SET, b"apple", b"orange")
    with pytest.raises(Truncated):
        run_handler(frame[:-1], store, settings)
    assert b"apple" not in store


def test_oversized_key_rejected_before_body(store, settings):
    header = bytes([0]) + (settings.MAX_KEY_SIZE + 1).to_bytes(8, "big") + (1).to_bytes(8, "big")
    writer = FakeWriter()
    with pytest.raises(FieldTooLarge):
        run_handler(header, store, settings, eof=False, writer=writer)
    assert writer.responses == [
        f"An error occurred: key size {settings.MAX_KEY_SIZE + 1} exceeds limit of "
        f"{settings.MAX_KEY_SIZE} bytes".encode()
    ]


def test_oversized_value_rejected(store, settings):
    header = bytes([0]) + (1).to_bytes(8, "big") + (2**63).to_bytes(8, "big")
    with pytest.raises(FieldTooLarge) as info:
        run_handler(header, store, settings, eof=False)
    assert info.value.field == "value"
    assert len(store) == 0


def test_size_limit_zero_disables_bound(store, settings):
    settings.MAX_VALUE_SIZE = 0
    value = b"x" * 10_000
    data = encode(Command.SET, b"big", value) + encode(Command.GET, b"big")
    assert run_handler(data, store, settings)[1] == value


def test_drain_is_bounded_while_frames_keep_arriving(store, settings):
    writer = FakeWriter()
    probes = 20

    async def feed(reader):
        reader.feed_data(bytes([9]) + bytes(16))
        for _ in range(probes):
            await asyncio.sleep(0.02)
            reader.feed_data(encode(Command.GET, b"missing"))
        await asyncio.sleep(0.02)
        reader.feed_data(encode(Command.SET, b"a", b"b"))
        reader.feed_eof()

    async def run():
        reader = asyncio.StreamReader()
        feeder = asyncio.ensure_future(feed(reader))
        await ConnectionHandler(store, reader, writer, settings).run()
        await feeder

    asyncio.run(run())
    assert writer.responses[0] == b"An error occurred: Unknown command 9"
    # Only frames inside the single drain window are discarded
    answered = writer.responses[1:-1]
    assert 0 < len(answered) <= probes
    assert set(answered) == {b"GET Error: Key not found: missing"}
    assert writer.responses[-1] == b"Insertion successful\n"
    assert store.get(b"a") == b"b"
