import base64
from pathlib import Path

import pytest

from peerchat.protocol import create_file_chunk, parse_msg
from peerchat.transfer import (
    FileReceiver,
    file_content,
    format_file_size,
    parse_file_content,
    shake_keyframes,
)


def test_format_small_sizes_in_bytes():
    assert format_file_size(0) == "0 B"
    assert format_file_size(512) == "512 B"
    assert format_file_size(1023) == "1023 B"


def test_format_kilobytes_pinned():
    assert format_file_size(1024) == "1 KB"


def test_format_kilobytes_truncate():
    assert format_file_size(1024 * 5 + 1000) == format_file_size(1024 * 5)


def test_format_megabytes_and_gigabytes():
    assert format_file_size(1024 * 1024) == "1.0 MB"
    assert format_file_size(1024 * 1024 * 1024) == "1.0 GB"
    assert format_file_size(5 * 1024 * 1024 * 1024).endswith(" GB")
    assert format_file_size(1024 * 1024 - 1).endswith(" KB")


def test_file_content_round_trip():
    content = file_content("report.pdf", "/tmp/report.pdf", 4096)
    assert parse_file_content(content) == ("report.pdf", "/tmp/report.pdf", 4096)


def test_file_content_joins_with_bar():
    assert file_content("a.txt", "/d/a.txt", 7).split("|") == ["a.txt", "/d/a.txt", "7"]


@pytest.mark.parametrize("content", ["only-name", "a|b", "a|b|c|d", ""])
def test_parse_file_content_rejects_bad_format(content):
    with pytest.raises(ValueError):
        parse_file_content(content)


def test_parse_file_content_bad_size_is_zero():
    assert parse_file_content("a|b|xyz")[2] == 0


def test_shake_keyframes_shape():
    frames = shake_keyframes(10, 6)
    assert len(frames) == 7
    assert frames[0] == (0.0, 10)
    assert frames[1][1] == -10
    assert frames[-1] == (1.0, 0)
    progresses = [p for p, _ in frames]
    assert progresses == sorted(progresses)


def test_shake_keyframes_alternate():
    frames = shake_keyframes(4, 4)
    offsets = [o for _, o in frames[:-1]]
    assert offsets == [4, -4, 4, -4]


@pytest.mark.parametrize("count", [0, -2])
def test_shake_keyframes_rejects_non_positive_count(count):
    with pytest.raises(ValueError):
        shake_keyframes(10, count)


def test_receiver_writes_file(tmp_path):
    data = b"hello world, this is a file" * 10
    receiver = FileReceiver(tmp_path)
    path = receiver.begin("note.txt", len(data))
    assert receiver.active
    for start in range(0, len(data), 50):
        chunk = data[start:start + 50]
        assert receiver.write_chunk(base64.b64encode(chunk).decode()) == len(chunk)
    result = receiver.finish()
    assert not receiver.active
    assert Path(path).read_bytes() == data
    assert result.name == "note.txt"
    assert result.size == len(data)
    assert result.received == len(data)
    assert Path(result.path) == tmp_path / "note.txt"
    assert parse_file_content(result.content) == (result.name, result.path, result.size)


def test_receiver_with_protocol_chunks(tmp_path):
    data = bytes(range(256))
    receiver = FileReceiver(tmp_path)
    receiver.begin("bin.dat", len(data))
    msg = parse_msg(create_file_chunk(1, 2, data))
    receiver.write_chunk(msg["chunk"])
    result = receiver.finish()
    assert (tmp_path / "bin.dat").read_bytes() == data
    assert result.received == len(data)


def test_chunk_without_begin_is_ignored(tmp_path):
    receiver = FileReceiver(tmp_path)
    assert receiver.write_chunk(base64.b64encode(b"abc").decode()) == 0
    assert receiver.finish() is None
    assert list(tmp_path.iterdir()) == []


def test_begin_in_missing_directory_raises(tmp_path):
    receiver = FileReceiver(tmp_path / "missing")
    with pytest.raises(OSError):
        receiver.begin("x.txt", 3)
    assert not receiver.active


def test_new_begin_replaces_unfinished_transfer(tmp_path):
    receiver = FileReceiver(tmp_path)
    receiver.begin("first.txt", 10)
    receiver.write_chunk(base64.b64encode(b"part").decode())
    receiver.begin("second.txt", 2)
    assert receiver.received == 0
    receiver.write_chunk(base64.b64encode(b"ok").decode())
    result = receiver.finish()
    assert result.name == "second.txt"
    assert (tmp_path / "second.txt").read_bytes() == b"ok"


def test_context_manager_aborts(tmp_path):
    with FileReceiver(tmp_path) as receiver:
        receiver.begin("tmp.txt", 1)
        assert receiver.active
    assert not receiver.active
    assert receiver.finish() is None