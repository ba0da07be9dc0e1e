# peerchat

The core of a peer-to-peer chat client, as a library. Each user listens on a
TCP port of their own, which is a base port (8000 by default) plus the user
id. Friends connect to that port directly and exchange JSON messages: text,
image paths, window shakes, heartbeats and chunked file transfers.

## Installation

```
pip install .
```

The package has no runtime dependencies. To run the tests, install the
`test` extra:

```
pip install ".[test]"
pytest
```

## Modules

- `peerchat.protocol` builds and parses the wire messages.
  - Builders return UTF-8 JSON bytes: `create_text_msg`, `create_image_msg`,
    `create_shake_msg`, `create_heart_msg`, `create_file_header` (the size
    is sent as a string), `create_file_chunk` (the data is base64-encoded)
    and `create_file_done`.
  - `parse_msg` reads a single message and returns an empty dict when the
    input is not a JSON object.
  - `parse_multi_msg` splits a buffer of messages sent back to back. It finds
    flat `{...}` objects, so a brace inside a string value breaks a message
    apart. Fragments that do not parse are skipped.
  - `MsgType` lists the message kinds. `MsgType.wire_name` and
    `type_to_string` give the name used in the `type` field.
    `type_to_string` returns `"unknown"` for anything else.
- `peerchat.config` holds the settings.
  - `AppConfig` is a dataclass. It holds icon, avatar and chat-icon resource
    paths, `server_ip` (`127.0.0.1`), `server_port` (`8848`) and
    `download_path` (`~/Downloads`). `icon_path_by_id` and
    `avatar_path_by_id` return `""` for an index out of range.
  - `load_config()` returns the standard configuration, with 30 avatars.
  - `file_type_icon(file_name)` picks an icon resource path by extension and
    ignores anything after a `|`.
  - `default_avatar()` gives the placeholder avatar path.
- `peerchat.pool` holds `TaskPool`. `submit` runs work on a thread pool and
  returns a `concurrent.futures.Future`. The callback or error handler does
  not run on the worker: it is queued, and runs when the owning thread calls
  `process_pending()`. `shutdown` stops the pool, and the pool is also a
  context manager.
- `peerchat.gradient` holds the state of a looping colour gradient.
  - `Color` is an RGBA value with channels from 0 to 255.
  - `interpolate(a, b, t)` blends two colours.
  - `GradientAnimator` keeps a ring of colour pairs. `tick()` moves the blend
    on by 0.02, `switch()` moves to the next pair, and `current_colors()`
    returns the start and end colours to draw, or `None` when there are
    fewer than two pairs.
  - `rainbow_animator()` returns a started seven-colour loop.
- `peerchat.network` holds the asyncio TCP peers.
  - `port_for(user_id, base_port)` gives the port a user listens on.
  - `PeerServer` listens on that port and calls `on_message(data, writer)`
    for each read.
  - `PeerClient` connects to a friend's port. It calls `on_message`,
    `on_connected` and `on_disconnected`, and sends a heartbeat message
    every 5 seconds by default while it is connected.
- `peerchat.registry` holds `ChatRegistry`, which keeps the live resources of
  each `ResourceKind`. Servers, add pages and main pages are keyed by user
  id. Clients, chat pages and sockets are keyed by `(user_id, friend_id)`.
  - Registering over an entry disposes of the old one. The default disposer
    calls its `close()` method and awaits it if that returns an awaitable.
  - `remove` also disposes of the entry, except for chat pages, which are
    only forgotten.
  - `default_registry()` returns the one registry the whole process shares.
- `peerchat.transfer` handles files.
  - `FileReceiver` writes an incoming file chunk by chunk into a download
    directory and returns a `ReceivedFile` when it finishes.
  - `format_file_size` formats a size, for example `"3 KB"` or `"1.5 MB"`.
  - `file_content` and `parse_file_content` write and read the stored
    `name|path|size` record of a file message.
  - `shake_keyframes` gives `(progress, offset)` keyframes for a window shake.
- `peerchat.session` holds `ChatSession`, the state of one conversation.
  - `load_history` turns stored records into `ChatMessage` entries. Shakes,
    malformed file records and unknown `ContentType` codes are skipped.
  - `handle` processes one incoming message. It adds text, image, shake and
    completed-file messages, records the time of each heartbeat and writes
    file chunks to disk. It records received messages through an optional
    `store` object, which provides `add_conversation` and
    `upsert_last_message_both`.
  - `check_heartbeats` lists the peers whose last heartbeat is more than 20
    seconds old.
- `peerchat.dispatcher` holds `MessageRouter`. It splits incoming data into
  messages and passes each one to the chat page registered under
  `(receiver, sender)`, calling that page's `handle` method. It returns one
  `Delivery` per message. `filter_by_nickname` searches friend records by
  nickname, ignoring case.

## Examples

Several messages sent back to back:

```python
from peerchat.protocol import create_heart_msg, create_text_msg, parse_multi_msg

packet = create_text_msg(1, 2, "hello") + create_heart_msg(1, 2)
for message in parse_multi_msg(packet):
    print(message["type"], message["sender"], message["receiver"])
```

Routing a message to an open conversation:

```python
from peerchat.dispatcher import MessageRouter
from peerchat.protocol import create_text_msg
from peerchat.registry import ChatRegistry, ResourceKind
from peerchat.session import ChatSession

registry = ChatRegistry()
session = ChatSession(cur_id=2, friend_id=1, download_dir="downloads")
registry.register(ResourceKind.CHAT_PAGE, (2, 1), session)

router = MessageRouter(registry)
delivery = router.route(create_text_msg(1, 2, "hello"))[0]
print(delivery.delivered, delivery.result.content)  # True hello
```

## What it does not do

There is no graphical interface and no command to run. It has no login or
user accounts and no database. Sessions record messages only through a
`store` object that you supply. Friend lists, nicknames and avatars come from
the caller. `peerchat` does not display or draw anything: the gradient,
shake and icon helpers only compute values and resource paths.