"""Routing of incoming peer data to the open conversations.

Data read from a user's server may hold several protocol messages back to
back. Each one is handed to the chat session registered for its receiver and
sender. Messages for a conversation that is not open are dropped.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Union

from .protocol import parse_multi_msg
from .registry import ChatRegistry, ResourceKind, default_registry

log = logging.getLogger(__name__)


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class Delivery:
    """What became of one routed message."""

    receiver: int
    sender: int
    type: str
    delivered: bool
    result: Any = None


class MessageRouter:
    """Hands each incoming message to the chat session it belongs to."""

    def __init__(self, registry: Optional[ChatRegistry] = None) -> None:
        self.registry = registry if registry is not None else default_registry()

    def route(self, data: Union[bytes, str]) -> list[Delivery]:
        """Split *data* into messages and deliver each one.

        A message goes to the chat page registered under
        ``(receiver, sender)``; its ``handle`` method is called with the
        message re-encoded as JSON. Returns one :class:`Delivery` per message
        found, in order.
        """
        deliveries: list[Delivery] = []
        for obj in parse_multi_msg(data):
            kind = str(obj.get("type", ""))
            sender = _to_int(obj.get("sender"))
            receiver = _to_int(obj.get("receiver"))
            log.debug(
                "routing message: sender %s, receiver %s, type %s, %s fields",
                sender, receiver, kind, len(obj),
            )
            page = self.registry.get(ResourceKind.CHAT_PAGE, (receiver, sender))
            if page is None:
                log.debug("no open chat for %s <- %s, message dropped", receiver, sender)
                deliveries.append(Delivery(receiver, sender, kind, False))
                continue
            payload = json.dumps(obj, ensure_ascii=False).encode("utf-8")
            result = page.handle(payload)
            deliveries.append(Delivery(receiver, sender, kind, True, result))
        return deliveries


def filter_by_nickname(
    infos: Iterable[Mapping[str, Any]], text: str
) -> list[Mapping[str, Any]]:
    """Return the friend records whose nickname contains *text*, ignoring case.

    An empty *text* keeps every record. Order is preserved.
    """
    records = list(infos)
    if not text:
        return records
    needle = text.casefold()
    return [
        info for info in records
        if needle in str(info.get("nickname") or "").casefold()
    ]