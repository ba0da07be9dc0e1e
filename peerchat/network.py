"""Peer-to-peer TCP links between chat users.

Each logged-in user listens on its own port (a base port plus the user id).
To talk to a friend, a user connects to the friend's port as a client and
sends protocol messages; the client also sends a heartbeat at a fixed
interval while it is connected.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Callable, Optional

from .protocol import create_heart_msg

log = logging.getLogger(__name__)

BASE_PORT = 8000
HEARTBEAT_INTERVAL = 5.0
_READ_SIZE = 65536

ServerMessageHandler = Callable[[bytes, asyncio.StreamWriter], None]
ClientMessageHandler = Callable[[bytes], None]
Notify = Callable[[], None]


def port_for(user_id: int, base_port: int = BASE_PORT) -> int:
    """Return the port on which *user_id* listens."""
    return base_port + user_id


class PeerServer:
    """Listens for friends' connections on behalf of one user."""

    def __init__(
        self,
        cur_id: int,
        host: str = "0.0.0.0",
        base_port: int = BASE_PORT,
        on_message: Optional[ServerMessageHandler] = None,
    ) -> None:
        self.cur_id = cur_id
        self.host = host
        self.port = port_for(cur_id, base_port)
        self.on_message = on_message
        self._server: Optional[asyncio.base_events.Server] = None
        self._clients: list[asyncio.StreamWriter] = []

    @property
    def clients(self) -> list[asyncio.StreamWriter]:
        """The currently connected peers."""
        return list(self._clients)

    async def start(self) -> bool:
        """Begin listening; return ``False`` if the port cannot be bound."""
        try:
            self._server = await asyncio.start_server(self._handle, self.host, self.port)
        except OSError as exc:
            log.warning("user %s could not listen on port %s: %s", self.cur_id, self.port, exc)
            return False
        log.debug("user %s listening on port %s", self.cur_id, self.port)
        return True

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._clients.append(writer)
        try:
            while True:
                try:
                    data = await reader.read(_READ_SIZE)
                except ConnectionError:
                    break
                if not data:
                    break
                log.debug("user %s received %r", self.cur_id, data)
                if self.on_message is not None:
                    self.on_message(data, writer)
        finally:
            if writer in self._clients:
                self._clients.remove(writer)
            writer.close()

    async def close(self) -> None:
        """Stop listening and drop every connected peer."""
        for writer in self.clients:
            writer.close()
        if self._server is not None:
            self._server.close()
            with contextlib.suppress(Exception):
                await self._server.wait_closed()
            self._server = None


class PeerClient:
    """An outgoing link from one user to a friend's server."""

    def __init__(
        self,
        cur_id: int,
        friend_id: int,
        host: str = "127.0.0.1",
        base_port: int = BASE_PORT,
        heartbeat_interval: float = HEARTBEAT_INTERVAL,
        on_message: Optional[ClientMessageHandler] = None,
        on_connected: Optional[Notify] = None,
        on_disconnected: Optional[Notify] = None,
    ) -> None:
        self.cur_id = cur_id
        self.friend_id = friend_id
        self.host = host
        self.port = port_for(friend_id, base_port)
        self.heartbeat_interval = heartbeat_interval
        self.on_message = on_message
        self.on_connected = on_connected
        self.on_disconnected = on_disconnected
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._tasks: list[asyncio.Task] = []

    async def connect(self) -> None:
        """Connect to the friend's server; raises ``OSError`` on failure."""
        log.debug("user %s connecting to friend %s on port %s",
                  self.cur_id, self.friend_id, self.port)
        self._reader, self._writer = await asyncio.open_connection(self.host, self.port)
        self._tasks = [
            asyncio.create_task(self._read_loop()),
            asyncio.create_task(self._heartbeat_loop()),
        ]
        if self.on_connected is not None:
            self.on_connected()

    def is_connected(self) -> bool:
        """Whether the link is open."""
        return self._writer is not None and not self._writer.is_closing()

    async def send(self, data: bytes) -> bool:
        """Send *data* if connected; return whether anything was sent."""
        if not self.is_connected():
            return False
        assert self._writer is not None
        self._writer.write(data)
        await self._writer.drain()
        log.debug("user %s sent %r to friend %s", self.cur_id, data, self.friend_id)
        return True

    async def _read_loop(self) -> None:
        assert self._reader is not None
        while True:
            try:
                data = await self._reader.read(_READ_SIZE)
            except ConnectionError:
                data = b""
            if not data:
                break
            if self.on_message is not None:
                self.on_message(data)
        if self._writer is not None:
            self._writer.close()
        log.debug("user %s disconnected from friend %s", self.cur_id, self.friend_id)
        if self.on_disconnected is not None:
            self.on_disconnected()

    async def _heartbeat_loop(self) -> None:
        while True:
            await asyncio.sleep(self.heartbeat_interval)
            with contextlib.suppress(ConnectionError):
                await self.send(create_heart_msg(self.cur_id, self.friend_id))

    async def close(self) -> None:
        """Stop the heartbeat and close the link."""
        current = asyncio.current_task()
        for task in self._tasks:
            if task is not current:
                task.cancel()
        for task in self._tasks:
            if task is not current:
                with contextlib.suppress(asyncio.CancelledError, Exception):
                    await task
        self._tasks = []
        if self._writer is not None:
            self._writer.close()
            with contextlib.suppress(Exception):
                await self._writer.wait_closed()