import asyncio
import socket

import pytest

from peerchat.network import PeerClient, PeerServer, port_for
from peerchat.protocol import create_text_msg, parse_multi_msg

USER = 1
FRIEND = 2


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


async def _collect_until(queue: asyncio.Queue, predicate, timeout=3.0) -> bytes:
    buffer = b""

    async def gather():
        nonlocal buffer
        while not predicate(buffer):
            buffer += await queue.get()
        return buffer

    return await asyncio.wait_for(gather(), timeout)


async def _server_for_friend(queue: asyncio.Queue):
    base = _free_port() - FRIEND
    server = PeerServer(
        FRIEND, host="127.0.0.1", base_port=base,
        on_message=lambda data, writer: queue.put_nowait(data),
    )
    assert await server.start() is True
    return server, base


def test_port_for_default_base():
    assert port_for(3) == 8003
    assert port_for(0, 100) == 100


@pytest.mark.asyncio
async def test_client_message_reaches_server():
    received: asyncio.Queue = asyncio.Queue()
    server, base = await _server_for_friend(received)
    client = PeerClient(USER, FRIEND, base_port=base, heartbeat_interval=60)
    try:
        await client.connect()
        assert client.is_connected()
        msg = create_text_msg(USER, FRIEND, "hello")
        assert await client.send(msg) is True
        data = await _collect_until(received, lambda b: msg in b)
        parsed = parse_multi_msg(data)
        assert parsed[0]["data"] == "hello"
        assert parsed[0]["sender"] == USER
    finally:
        await client.close()
        await server.close()


@pytest.mark.asyncio
async def test_heartbeat_is_sent():
    received: asyncio.Queue = asyncio.Queue()
    server, base = await _server_for_friend(received)
    client = PeerClient(USER, FRIEND, base_port=base, heartbeat_interval=0.05)
    try:
        await client.connect()
        data = await _collect_until(
            received, lambda b: any(m.get("type") == "heart" for m in parse_multi_msg(b))
        )
        heart = [m for m in parse_multi_msg(data) if m["type"] == "heart"][0]
        assert heart["sender"] == USER
        assert heart["receiver"] == FRIEND
    finally:
        await client.close()
        await server.close()


@pytest.mark.asyncio
async def test_server_reply_reaches_client():
    replies: asyncio.Queue = asyncio.Queue()

    def echo(data, writer):
        writer.write(data)

    base = _free_port() - FRIEND
    server = PeerServer(FRIEND, host="127.0.0.1", base_port=base, on_message=echo)
    assert await server.start()
    client = PeerClient(
        USER, FRIEND, base_port=base, heartbeat_interval=60,
        on_message=replies.put_nowait,
    )
    try:
        await client.connect()
        await client.send(b"ping")
        data = await _collect_until(replies, lambda b: b"ping" in b)
        assert data == b"ping"
        assert len(server.clients) == 1
    finally:
        await client.close()
        await server.close()


@pytest.mark.asyncio
async def test_send_when_not_connected_returns_false():
    client = PeerClient(USER, FRIEND, base_port=_free_port())
    assert client.is_connected() is False
    assert await client.send(b"data") is False


@pytest.mark.asyncio
async def test_connect_to_closed_port_raises():
    base = _free_port() - FRIEND
    client = PeerClient(USER, FRIEND, base_port=base)
    with pytest.raises(OSError):
        await client.connect()
    assert client.is_connected() is False


@pytest.mark.asyncio
async def test_start_fails_on_busy_port():
    received: asyncio.Queue = asyncio.Queue()
    server, base = await _server_for_friend(received)
    clash = PeerServer(FRIEND, host="127.0.0.1", base_port=base)
    try:
        assert await clash.start() is False
    finally:
        await server.close()


@pytest.mark.asyncio
async def test_connect_and_disconnect_callbacks():
    events: list[str] = []
    disconnected = asyncio.Event()
    received: asyncio.Queue = asyncio.Queue()
    server, base = await _server_for_friend(received)

    def on_disconnected():
        events.append("disconnected")
        disconnected.set()

    client = PeerClient(
        USER, FRIEND, base_port=base, heartbeat_interval=60,
        on_connected=lambda: events.append("connected"),
        on_disconnected=on_disconnected,
    )
    try:
        await client.connect()
        for _ in range(100):
            if server.clients:
                break
            await asyncio.sleep(0.01)
        await server.close()
        await asyncio.wait_for(disconnected.wait(), 3.0)
        assert events == ["connected", "disconnected"]
        assert client.is_connected() is False
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_close_marks_client_disconnected():
    received: asyncio.Queue = asyncio.Queue()
    server, base = await _server_for_friend(received)
    client = PeerClient(USER, FRIEND, base_port=base, heartbeat_interval=60)
    try:
        await client.connect()
        assert client.is_connected() is True
        await client.close()
        assert client.is_connected() is False
        assert await client.send(b"late") is False
    finally:
        await server.close()