"""Transition rules as pure functions of (state, event) -> (state, intent)."""

from __future__ import annotations

from typing import Callable

from imorch.core.states import ClassifierState, EditorSnapshot, Intent, Mode

MathPredicate = Callable[[str, int], bool]

# Real mode transitions: {from_mode: {to_mode: intent}}. A pair missing here
# is a redundant report and changes nothing.
MODE_TRANSITIONS: dict[Mode, dict[Mode, Intent]] = {
    Mode.NORMAL: {
        Mode.INSERT: Intent.INSERT_ENTER,
    },
    Mode.INSERT: {
        Mode.NORMAL: Intent.INSERT_LEAVE,
    },
}


def is_transition(from_mode: Mode, to_mode: Mode) -> bool:
    return to_mode in MODE_TRANSITIONS.get(from_mode, {})


def on_mode(
    state: ClassifierState,
    new_mode: Mode,
    snapshot: EditorSnapshot | None,
    in_math: MathPredicate,
) -> tuple[ClassifierState, Intent | None]:
    """Apply a mode report.

    Entering insert with the caret already in math records ``in_math`` and
    emits nothing: the math command owns that switch, so the same frame never
    switches twice. Leaving insert drops the math flag without MATH_LEAVE.
    """
    if not is_transition(state.mode, new_mode):
        return state, None

    if new_mode is Mode.INSERT:
        if snapshot is not None and in_math(snapshot.text, snapshot.caret):
            return ClassifierState(Mode.INSERT, in_math=True), None
        return ClassifierState(Mode.INSERT, in_math=False), Intent.INSERT_ENTER

    return ClassifierState(Mode.NORMAL, in_math=False), MODE_TRANSITIONS[state.mode][new_mode]


def on_snapshot(
    state: ClassifierState,
    snapshot: EditorSnapshot,
    in_math: MathPredicate,
) -> tuple[ClassifierState, Intent | None]:
    """Apply a caret/document change; only insert mode tracks math regions."""
    if state.mode is not Mode.INSERT:
        return state, None

    now_in_math = in_math(snapshot.text, snapshot.caret)
    if now_in_math == state.in_math:
        return state, None

    intent = Intent.MATH_ENTER if now_in_math else Intent.MATH_LEAVE
    return ClassifierState(Mode.INSERT, in_math=now_in_math), intent
