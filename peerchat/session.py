"""One user's conversation with one friend.

A session keeps the message history shown in a chat window. It handles the
messages that arrive from the friend: text, images, window shakes,
heartbeats and file transfers. Messages are recorded through an optional
store, and the session tracks when each peer last sent a heartbeat.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Optional, Protocol, Union

from .protocol import MsgType, parse_msg
from .transfer import FileReceiver, file_content, parse_file_content

log = logging.getLogger(__name__)

SHAKE_TEXT = "[窗口抖动]"
HEARTBEAT_TIMEOUT_SECONDS = 20
RECEIVED_STATUS = 1


class ContentType(IntEnum):
    """Kinds of stored chat message content."""

    TEXT = 0
    IMAGE = 1
    SHAKE = 2
    FILE = 3


@dataclass
class ChatMessage:
    """One message as shown in the conversation."""

    sender_id: int
    receiver_id: int
    content_type: ContentType
    content: str
    time: Optional[datetime]
    is_mine: bool
    avatar: str = ""
    file_name: Optional[str] = None
    file_path: Optional[str] = None
    file_size: Optional[int] = None


class MessageStore(Protocol):
    """Where a session records the messages it receives."""

    def add_conversation(
        self,
        sender_id: int,
        receiver_id: int,
        content: str,
        content_type: int,
        send_time: datetime,
        status: int,
        is_recalled: bool,
    ) -> Any: ...

    def upsert_last_message_both(
        self,
        user_id: int,
        friend_id: int,
        last_message: str,
        last_message_time: datetime,
        unread_count: int,
        is_pinned: bool,
    ) -> Any: ...


def _to_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


@dataclass
class ChatSession:
    """The conversation between ``cur_id`` and ``friend_id``."""

    cur_id: int
    friend_id: int
    store: Optional[MessageStore] = None
    download_dir: Union[str, Path, None] = None
    cur_avatar: str = ""
    friend_avatar: str = ""
    clock: Callable[[], datetime] = datetime.now
    on_shake: Optional[Callable[[], None]] = None
    messages: list[ChatMessage] = field(default_factory=list)
    last_heartbeats: dict[int, datetime] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.receiver = FileReceiver(self.download_dir)
        self._loading = False

    def _avatar(self, is_mine: bool) -> str:
        return self.cur_avatar if is_mine else self.friend_avatar

    def _add(self, message: ChatMessage) -> Optional[ChatMessage]:
        if message.content_type is ContentType.SHAKE:
            # Shakes are not replayed from history.
            if self._loading:
                return None
            if self.on_shake is not None:
                self.on_shake()
        self.messages.append(message)
        return message

    def load_history(self, records: Iterable[Mapping[str, Any]]) -> list[ChatMessage]:
        """Add stored messages to the conversation; return those added.

        Shake messages, file messages not of the form ``name|path|size`` and
        unknown content types are skipped.
        """
        added: list[ChatMessage] = []
        self._loading = True
        try:
            for record in records:
                sender = _to_int(record.get("sender_id"))
                receiver = _to_int(record.get("receiver_id"))
                content = str(record.get("content", ""))
                type_code = _to_int(record.get("content_type"), -1)
                time = _to_datetime(record.get("send_time"))
                is_mine = sender == self.cur_id
                try:
                    content_type = ContentType(type_code)
                except ValueError:
                    log.warning("unknown content_type: %s", type_code)
                    continue
                message = ChatMessage(
                    sender, receiver, content_type, content, time, is_mine,
                    self._avatar(is_mine),
                )
                if content_type is ContentType.FILE:
                    try:
                        name, path, size = parse_file_content(content)
                    except ValueError:
                        log.warning("invalid file content format: %r", content)
                        continue
                    message.file_name, message.file_path, message.file_size = name, path, size
                if self._add(message) is not None:
                    added.append(message)
        finally:
            self._loading = False
        return added

    def _record(self, content: str, content_type: ContentType, time: datetime) -> None:
        if self.store is None:
            return
        self.store.add_conversation(
            self.friend_id, self.cur_id, content, int(content_type), time,
            RECEIVED_STATUS, False,
        )
        self.store.upsert_last_message_both(
            self.friend_id, self.cur_id, content, time, 0, False
        )

    def _receive(self, content_type: ContentType, content: str, **file_info: Any) -> Optional[ChatMessage]:
        now = self.clock()
        message = ChatMessage(
            self.friend_id, self.cur_id, content_type, content, now, False,
            self.friend_avatar, **file_info,
        )
        added = self._add(message)
        stored = file_content(file_info["file_name"], file_info["file_path"],
                              file_info["file_size"]) if file_info else content
        self._record(stored, content_type, now)
        return added

    def handle(self, data: Union[bytes, str]) -> Optional[ChatMessage]:
        """Handle one incoming protocol message.

        Returns the message added to the conversation, or ``None`` when the
        data is addressed elsewhere, is a heartbeat or file fragment, or is
        not understood.
        """
        obj = parse_msg(data)
        if _to_int(obj.get("receiver"), -1) != self.cur_id or \
                _to_int(obj.get("sender"), -1) != self.friend_id:
            return None
        kind = obj.get("type")
        if kind == MsgType.TEXT.wire_name:
            return self._receive(ContentType.TEXT, str(obj.get("data", "")))
        if kind == MsgType.IMAGE.wire_name:
            return self._receive(ContentType.IMAGE, str(obj.get("data", "")))
        if kind == MsgType.SHAKE.wire_name:
            return self._receive(ContentType.SHAKE, SHAKE_TEXT)
        if kind == MsgType.HEART.wire_name:
            self.last_heartbeats[self.friend_id] = self.clock()
            return None
        if kind == MsgType.FILE_HEADER.wire_name:
            name = str(obj.get("filename", ""))
            size = _to_int(obj.get("filesize"))
            try:
                self.receiver.begin(name, size)
            except OSError as exc:
                log.debug("could not save incoming file: %s", exc)
            return None
        if kind == MsgType.FILE_CHUNK.wire_name:
            self.receiver.write_chunk(str(obj.get("chunk", "")))
            return None
        if kind == MsgType.FILE_DONE.wire_name:
            done = self.receiver.finish()
            if done is None:
                return None
            return self._receive(
                ContentType.FILE, done.name,
                file_name=done.name, file_path=done.path, file_size=done.size,
            )
        log.debug("unknown message type %r ignored", kind)
        return None

    def check_heartbeats(self, now: Optional[datetime] = None) -> list[int]:
        """Return the peers whose last heartbeat is more than 20 seconds old."""
        if now is None:
            now = self.clock()
        stale = []
        for peer, last in self.last_heartbeats.items():
            if int((now - last).total_seconds()) > HEARTBEAT_TIMEOUT_SECONDS:
                log.debug("peer %s missed its heartbeat, treated as offline", peer)
                stale.append(peer)
        return stale