"""Tests for StreamEditorAdapter — JSON-lines editor notifications."""

from __future__ import annotations

import io
import json

import pytest

from imorch.core.states import EditorSnapshot
from imorch.editor.base import IEditorAdapter
from imorch.editor.stream import StreamEditorAdapter


@pytest.fixture
def adapter():
    a = StreamEditorAdapter(io.StringIO(""))
    a.modes, a.docs, a.focus = [], [], []
    a.subscribe_to_mode_changes(a.modes.append)
    a.subscribe_to_document_changes(a.docs.append)
    a.subscribe_to_focus_changes(lambda: a.focus.append(True))
    return a


def _line(**kw) -> str:
    return json.dumps(kw) + "\n"


def test_implements_interface(adapter):
    assert isinstance(adapter, IEditorAdapter)


def test_mode_line(adapter):
    adapter.feed_line(_line(type="mode", mode="insert"))
    assert adapter.modes == ["insert"]


def test_document_line_updates_snapshot(adapter):
    adapter.feed_line(_line(type="document", text="a $x$ b", caret=3))
    assert adapter.docs == [EditorSnapshot("a $x$ b", 3)]
    assert adapter.get_snapshot() == EditorSnapshot("a $x$ b", 3)


def test_document_without_caret_keeps_previous_caret(adapter):
    adapter.feed_line(_line(type="document", text="hello world", caret=8))
    adapter.feed_line(_line(type="document", text="hi"))
    assert adapter.get_snapshot() == EditorSnapshot("hi", 2)


def test_caret_line_reuses_text(adapter):
    adapter.feed_line(_line(type="document", text="a $x$ b", caret=0))
    adapter.feed_line(_line(type="caret", caret=4))
    assert adapter.docs[-1] == EditorSnapshot("a $x$ b", 4)


def test_caret_before_document_is_ignored(adapter):
    adapter.feed_line(_line(type="caret", caret=4))
    assert adapter.docs == []
    assert adapter.get_snapshot() is None


def test_focus_line(adapter):
    adapter.feed_line(_line(type="focus"))
    assert adapter.focus == [True]


@pytest.mark.parametrize("line", [
    "not json",
    "[1, 2]",
    '{"type": "document", "caret": 1}',
    '{"type": "document", "text": "abc", "caret": -1}',
    '{"type": "caret", "caret": "x"}',
    '{"type": "teleport"}',
    "   ",
])
def test_malformed_lines_are_skipped(adapter, line):
    adapter.feed_line(_line(type="document", text="abc", caret=1))
    adapter.docs.clear()
    adapter.feed_line(line)
    assert adapter.docs == []
    assert adapter.modes == []


def test_unsubscribe_stops_notifications():
    a = StreamEditorAdapter(io.StringIO(""))
    modes = []
    sub = a.subscribe_to_mode_changes(modes.append)
    sub.unsubscribe()
    sub.unsubscribe()  # idempotent
    a.feed_line(_line(type="mode", mode="insert"))
    assert modes == []
    assert sub.active is False
    assert a.listener_count == 0


def test_listener_error_does_not_stop_others():
    a = StreamEditorAdapter(io.StringIO(""))
    seen = []

    def bad(mode):
        raise RuntimeError("listener bug")

    a.subscribe_to_mode_changes(bad)
    a.subscribe_to_mode_changes(seen.append)
    a.feed_line(_line(type="mode", mode="normal"))
    assert seen == ["normal"]


def test_run_reads_until_eof():
    stream = io.StringIO(_line(type="mode", mode="insert") + _line(type="mode", mode="normal"))
    eof = []
    a = StreamEditorAdapter(stream, on_eof=lambda: eof.append(True))
    modes = []
    a.subscribe_to_mode_changes(modes.append)
    a.run()
    assert modes == ["insert", "normal"]
    assert eof == [True]
    assert a.is_running is False


@pytest.mark.timeout(10)
def test_start_runs_in_background_thread():
    stream = io.StringIO(_line(type="mode", mode="insert"))
    import threading
    done = threading.Event()
    a = StreamEditorAdapter(stream, on_eof=done.set)
    modes = []
    a.subscribe_to_mode_changes(modes.append)
    a.start()
    assert done.wait(timeout=5)
    assert modes == ["insert"]
