"""Registry of live per-user network and page resources.

Resources of some kinds belong to one user (keyed by the user id); others
belong to a conversation (keyed by ``(user_id, friend_id)``). Registering over
an existing entry disposes of the old resource. Removing an entry disposes of
it too, except chat pages, which close themselves and are only forgotten.
"""

from __future__ import annotations

import asyncio
import inspect
from enum import Enum
from functools import lru_cache
from typing import Any, Callable, Hashable, Optional

Disposer = Callable[[Any], None]


class ResourceKind(Enum):
    """The kinds of resource the registry tracks."""

    SERVER = "server"
    CLIENT = "client"
    CHAT_PAGE = "chat_page"
    ADD_PAGE = "add_page"
    MAIN_PAGE = "main_page"
    SOCKET = "socket"

    @property
    def per_conversation(self) -> bool:
        """Whether entries are keyed by ``(user_id, friend_id)``."""
        return self in _PAIR_KINDS


_PAIR_KINDS = frozenset({ResourceKind.CLIENT, ResourceKind.CHAT_PAGE, ResourceKind.SOCKET})


def _close_resource(resource: Any) -> None:
    close = getattr(resource, "close", None)
    if not callable(close):
        return
    result = close()
    if inspect.isawaitable(result):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(_await(result))
        else:
            loop.create_task(_await(result))


async def _await(awaitable: Any) -> None:
    await awaitable


class ChatRegistry:
    """Maps users and conversations to their live resources."""

    def __init__(self, disposer: Optional[Disposer] = None) -> None:
        self._dispose = disposer if disposer is not None else _close_resource
        self._entries: dict[ResourceKind, dict[Hashable, Any]] = {
            kind: {} for kind in ResourceKind
        }

    @staticmethod
    def _check_key(kind: ResourceKind, key: Any) -> Hashable:
        if kind.per_conversation:
            if not (isinstance(key, tuple) and len(key) == 2):
                raise TypeError(f"{kind.value} is keyed by (user_id, friend_id), got {key!r}")
        elif isinstance(key, tuple):
            raise TypeError(f"{kind.value} is keyed by a user id, got {key!r}")
        return key

    def register(self, kind: ResourceKind, key: Any, resource: Any) -> None:
        """Store *resource*, disposing of whatever it replaces."""
        key = self._check_key(kind, key)
        entries = self._entries[kind]
        previous = entries.get(key)
        entries[key] = resource
        if previous is not None and previous is not resource:
            self._dispose(previous)

    def get(self, kind: ResourceKind, key: Any) -> Optional[Any]:
        """Return the registered resource, or ``None``."""
        return self._entries[kind].get(self._check_key(kind, key))

    def remove(self, kind: ResourceKind, key: Any) -> Optional[Any]:
        """Forget the resource and return it; chat pages are not disposed of."""
        resource = self._entries[kind].pop(self._check_key(kind, key), None)
        if resource is not None and kind is not ResourceKind.CHAT_PAGE:
            self._dispose(resource)
        return resource


@lru_cache(maxsize=None)
def default_registry() -> ChatRegistry:
    """Return the process-wide registry."""
    return ChatRegistry()