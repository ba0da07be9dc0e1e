"""JSON messages exchanged between chat peers.

Every message is a JSON object carrying ``type``, ``sender`` and ``receiver``
plus type-specific fields. Messages are serialised with sorted keys and
four-space indentation, one object per message, so several messages sent
back to back on a stream can be split apart again by :func:`parse_multi_msg`.
"""

from __future__ import annotations

import base64
import json
import logging
import re
from enum import IntEnum
from typing import Any

log = logging.getLogger(__name__)

_OBJECT_RE = re.compile(r"\{[^{}]*\}")


class MsgType(IntEnum):
    """Kinds of message understood by the protocol."""

    TEXT = 0
    IMAGE = 1
    SHAKE = 2
    HEART = 3
    FILE_HEADER = 4
    FILE_CHUNK = 5
    FILE_DONE = 6

    @property
    def wire_name(self) -> str:
        """The value used in the ``type`` field on the wire."""
        return _WIRE_NAMES[self]


_WIRE_NAMES = {
    MsgType.TEXT: "text",
    MsgType.IMAGE: "image",
    MsgType.SHAKE: "shake",
    MsgType.HEART: "heart",
    MsgType.FILE_HEADER: "fileHeader",
    MsgType.FILE_CHUNK: "fileChunk",
    MsgType.FILE_DONE: "fileDone",
}


def type_to_string(msg_type: MsgType | int) -> str:
    """Return the wire name of *msg_type*, or ``"unknown"``."""
    try:
        return MsgType(msg_type).wire_name
    except ValueError:
        return "unknown"


def _encode(msg_type: MsgType, sender: int, receiver: int, **fields: Any) -> bytes:
    obj: dict[str, Any] = {
        "type": msg_type.wire_name,
        "sender": sender,
        "receiver": receiver,
        **fields,
    }
    text = json.dumps(obj, indent=4, sort_keys=True, ensure_ascii=False)
    return (text + "\n").encode("utf-8")


def create_text_msg(sender: int, receiver: int, text: str) -> bytes:
    """Build a text message."""
    return _encode(MsgType.TEXT, sender, receiver, data=text)


def create_image_msg(sender: int, receiver: int, image_path: str) -> bytes:
    """Build an image message carrying the image's path."""
    return _encode(MsgType.IMAGE, sender, receiver, data=image_path)


def create_shake_msg(sender: int, receiver: int) -> bytes:
    """Build a window-shake message."""
    return _encode(MsgType.SHAKE, sender, receiver, data="shake")


def create_heart_msg(sender: int, receiver: int) -> bytes:
    """Build a heartbeat message."""
    return _encode(MsgType.HEART, sender, receiver, data="heart")


def create_file_header(sender: int, receiver: int, filename: str, filesize: int) -> bytes:
    """Build the header announcing a file transfer; the size travels as a string."""
    return _encode(
        MsgType.FILE_HEADER, sender, receiver, filename=filename, filesize=str(filesize)
    )


def create_file_chunk(sender: int, receiver: int, chunk: bytes) -> bytes:
    """Build a message carrying one base64-encoded block of file data."""
    encoded = base64.b64encode(bytes(chunk)).decode("ascii")
    return _encode(MsgType.FILE_CHUNK, sender, receiver, chunk=encoded)


def create_file_done(sender: int, receiver: int) -> bytes:
    """Build the message that ends a file transfer."""
    return _encode(MsgType.FILE_DONE, sender, receiver)


def parse_msg(raw: bytes | str) -> dict[str, Any]:
    """Parse a single JSON object.

    Returns an empty dict when *raw* is not valid JSON or not an object.
    """
    try:
        doc = json.loads(raw)
    except (ValueError, TypeError):
        return {}
    return doc if isinstance(doc, dict) else {}


def parse_multi_msg(raw: bytes | str) -> list[dict[str, Any]]:
    """Split *raw* into every flat JSON object it holds and parse each one.

    Objects that fail to parse are logged and skipped.
    """
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, (bytes, bytearray)) else raw
    result: list[dict[str, Any]] = []
    for match in _OBJECT_RE.finditer(text):
        fragment = match.group(0)
        try:
            doc = json.loads(fragment)
        except ValueError:
            log.debug("could not parse message fragment: %r", fragment)
            continue
        if isinstance(doc, dict):
            result.append(doc)
    return result