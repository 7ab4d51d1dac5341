"""Text shaping helpers for list rows, thread bodies and code excerpts."""

from __future__ import annotations

import re
from datetime import datetime, timedelta

from mrdeck.styles import DIFF_CONTEXT, DIM, SELECTED

ELLIPSIS = "…"
_SEPARATORS = re.compile(r"[.\-_ ]+")
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def truncate(s: str, max_len: int) -> str:
    """Shorten ``s`` to ``max_len`` characters, ending with an ellipsis if cut."""
    if len(s) <= max_len:
        return s
    if max_len < 1:
        raise ValueError(f"cannot truncate to {max_len} characters")
    return s[: max_len - 1] + ELLIPSIS


def _upper(ch: str) -> str:
    up = ch.upper()
    return up if len(up) == 1 else ch


def initials(username: str) -> str:
    """Up to two upper-case initials of ``username``, or ``"?"``.

    Segments are split on ``.``, ``-``, ``_`` and spaces; if there are none,
    the leading letters are used instead.
    """
    if not username:
        return "?"
    parts = [p for p in _SEPARATORS.split(username) if p]
    out = [_upper(p[0]) for p in parts[:2]]
    if not out:
        out = [_upper(ch) for ch in username if ch.isalpha()][:2]
    return "".join(out) or "?"


def format_reviewer_cell(reviewers: list[str], visible_width: int) -> str:
    """The reviewer column of a row, padded to ``visible_width`` columns.

    No reviewers shows a dim dash; otherwise the first reviewer's initials,
    with a dim ``+N`` for any further reviewers.
    """
    if not reviewers:
        raw = "—"
        styled = DIM.render(raw)
    elif len(reviewers) == 1:
        raw = styled = initials(reviewers[0])
    else:
        ini = initials(reviewers[0])
        suffix = f" +{len(reviewers) - 1}"
        raw = ini + suffix
        styled = ini + DIM.render(suffix)
    return styled + " " * max(visible_width - len(raw), 0)


def word_wrap(s: str, max_width: int) -> list[str]:
    """Break ``s`` at word boundaries into lines of at most ``max_width``.

    Single words longer than the width are kept whole.
    """
    if len(s) <= max_width:
        return [s]
    words = s.split()
    if not words:
        return [""]
    lines: list[str] = []
    current = words[0]
    for word in words[1:]:
        if len(current) + 1 + len(word) > max_width:
            lines.append(current)
            current = word
        else:
            current += " " + word
    lines.append(current)
    return lines


def time_ago(t: datetime, now: datetime | None = None) -> str:
    """A short relative description of how long ago ``t`` was."""
    if now is None:
        now = datetime.now(t.tzinfo)
    delta = now - t
    if delta < timedelta(minutes=1):
        return "just now"
    if delta < timedelta(hours=1):
        return f"{int(delta.total_seconds() // 60)}m ago"
    hours = delta.total_seconds() / 3600
    if delta < timedelta(hours=24):
        return f"{int(hours)}h ago"
    return f"{int(hours / 24)}d ago"


def _line_number(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def format_diff_hunk(hunk: str, target_line: int, max_width: int) -> list[str]:
    """Style a code excerpt of ``number<TAB>content`` lines for display.

    The line whose number equals ``target_line`` is highlighted.
    """
    lines: list[str] = []
    for line in hunk.rstrip("\n").split("\n"):
        if not line:
            continue
        number, _, content = line.partition("\t")
        display = f" {number:>4} │ {content}"
        if len(display) > max_width:
            display = display[: max(max_width, 0)]
        style = SELECTED if _line_number(number) == target_line else DIFF_CONTEXT
        lines.append(style.render(display))
    return lines