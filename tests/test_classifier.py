"""Tests for TransitionClassifier."""

from __future__ import annotations

from imorch.core.classifier import TransitionClassifier
from imorch.core.states import ClassifierState, EditorSnapshot, Intent, Mode

OUTSIDE = EditorSnapshot("text $x$ more", 2)
INSIDE = EditorSnapshot("text $x$ more", 6)


def _feed(clf: TransitionClassifier, events) -> list[Intent]:
    emitted = []
    for kind, arg in events:
        if kind == "mode":
            mode, snap = arg
            intent = clf.on_mode_change(mode, snap)
        else:
            intent = clf.on_caret_or_doc_changed(arg)
        if intent is not None:
            emitted.append(intent)
    return emitted


def test_initial_state():
    clf = TransitionClassifier()
    assert clf.state == ClassifierState(Mode.NORMAL, False)


def test_insert_enter_outside_math():
    clf = TransitionClassifier()
    assert _feed(clf, [("mode", (Mode.INSERT, OUTSIDE))]) == [Intent.INSERT_ENTER]


def test_repeated_insert_emits_once():
    clf = TransitionClassifier()
    events = [("mode", (Mode.INSERT, OUTSIDE)), ("mode", (Mode.INSERT, OUTSIDE))]
    assert _feed(clf, events) == [Intent.INSERT_ENTER]


def test_insert_inside_math_is_suppressed():
    clf = TransitionClassifier()
    assert _feed(clf, [("mode", (Mode.INSERT, INSIDE))]) == []
    assert clf.mode is Mode.INSERT
    assert clf.in_math is True


def test_leaving_math_after_suppressed_enter():
    clf = TransitionClassifier()
    clf.on_mode_change(Mode.INSERT, INSIDE)
    assert _feed(clf, [("doc", OUTSIDE)]) == [Intent.MATH_LEAVE]


def test_insert_leave_resets_math():
    clf = TransitionClassifier()
    clf.on_mode_change(Mode.INSERT, OUTSIDE)
    clf.on_caret_or_doc_changed(INSIDE)
    assert clf.in_math is True
    assert _feed(clf, [("mode", (Mode.NORMAL, None))]) == [Intent.INSERT_LEAVE]
    assert clf.in_math is False
    assert clf.mode is Mode.NORMAL


def test_normal_reports_in_normal_are_ignored():
    clf = TransitionClassifier()
    assert _feed(clf, [("mode", (Mode.NORMAL, None)), ("mode", (Mode.NORMAL, None))]) == []


def test_caret_moves_ignored_outside_insert():
    clf = TransitionClassifier()
    assert _feed(clf, [("doc", INSIDE), ("doc", OUTSIDE)]) == []
    assert clf.in_math is False


def test_caret_moves_within_same_region_emit_nothing():
    clf = TransitionClassifier()
    clf.on_mode_change(Mode.INSERT, OUTSIDE)
    events = [("doc", INSIDE), ("doc", EditorSnapshot("text $x$ more", 7)), ("doc", OUTSIDE), ("doc", OUTSIDE)]
    assert _feed(clf, events) == [Intent.MATH_ENTER, Intent.MATH_LEAVE]


def test_none_inputs_are_ignored():
    clf = TransitionClassifier()
    assert clf.on_mode_change(None) is None
    assert clf.on_caret_or_doc_changed(None) is None
    assert clf.state == ClassifierState()


def test_custom_detector_is_used():
    seen = []

    def detector(text, caret):
        seen.append((text, caret))
        return True

    clf = TransitionClassifier(detector=detector)
    assert clf.on_mode_change(Mode.INSERT, EditorSnapshot("abc", 1)) is None
    assert seen == [("abc", 1)]


def test_reset():
    clf = TransitionClassifier()
    clf.on_mode_change(Mode.INSERT, INSIDE)
    clf.reset()
    assert clf.state == ClassifierState()
