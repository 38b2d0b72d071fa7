"""Math region detection for ``$...$`` and ``$$...$$`` markup.

``is_in_math(text, caret)`` is a pure function: the answer depends only on
the document text and caret offset, so it can be re-derived from any
snapshot.

Rules:
    * a ``$`` preceded by an odd number of backslashes is escaped and is
      never a delimiter;
    * an unescaped ``$$`` opens block math, closed by the next unescaped
      ``$$``;
    * a lone unescaped ``$`` opens inline math, closed by the next lone
      unescaped ``$`` (a ``$$`` met inside inline math is skipped as a unit);
    * the caret is inside when ``start < caret <= end`` (``end`` is the last
      character of the closing token);
    * an unterminated opening contains every caret after it.
"""

from __future__ import annotations

import logging

import imorch.log  # registers TRACE level and logger.trace()

logger = logging.getLogger(__name__)

DOLLAR = "$"
BACKSLASH = "\\"


def _is_escaped(text: str, index: int) -> bool:
    """True if the character at *index* is preceded by an odd run of backslashes."""
    count = 0
    j = index - 1
    while j >= 0 and text[j] == BACKSLASH:
        count += 1
        j -= 1
    return count % 2 == 1


def _is_delimiter(text: str, index: int) -> bool:
    return text[index] == DOLLAR and not _is_escaped(text, index)


def _is_block_token(text: str, index: int) -> bool:
    return (
        index + 1 < len(text)
        and text[index + 1] == DOLLAR
        and _is_delimiter(text, index)
    )


def _find_block_close(text: str, index: int) -> int | None:
    """Index of the last ``$`` of the next unescaped ``$$`` at or after *index*."""
    while index + 1 < len(text):
        if _is_block_token(text, index):
            return index + 1
        index += 1
    return None


def _find_inline_close(text: str, index: int) -> int | None:
    """Index of the next lone unescaped ``$`` at or after *index*."""
    while index < len(text):
        if _is_delimiter(text, index):
            if _is_block_token(text, index):
                index += 2
                continue
            return index
        index += 1
    return None


def _scan_spans(text: str, caret: int) -> bool:
    i = 0
    while i < len(text):
        if not _is_delimiter(text, i):
            i += 1
            continue

        start = i
        if caret <= start:
            # Spans are consecutive; nothing further can contain the caret
            return False

        if _is_block_token(text, i):
            end = _find_block_close(text, i + 2)
        else:
            end = _find_inline_close(text, i + 1)

        if end is None:
            return True
        if caret <= end:
            return True
        i = end + 1
    return False


def _parity_scan(text: str, caret: int) -> bool:
    """Structural fallback: odd number of openings before the caret means inside."""
    block = 0
    inline = 0
    i = 0
    limit = min(caret, len(text))
    while i < limit:
        if text[i] == DOLLAR and not _is_escaped(text, i):
            if i + 1 < len(text) and text[i + 1] == DOLLAR:
                block += 1
                i += 2
                continue
            if block % 2 == 0:
                inline += 1
        i += 1
    return block % 2 == 1 or inline % 2 == 1


def is_in_math(text: str | None, caret: int) -> bool:
    """Return True if *caret* lies inside inline or block math in *text*."""
    if not text:
        return False
    try:
        caret = int(caret)
    except (TypeError, ValueError):
        logger.trace("is_in_math: bad caret %r", caret)  # type: ignore[attr-defined]
        return False
    caret = max(0, min(caret, len(text)))

    try:
        return _scan_spans(text, caret)
    except (IndexError, ValueError) as exc:
        logger.debug("Math span scan failed (%s), using parity scan", exc)
        return _parity_scan(text, caret)
