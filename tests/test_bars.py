import re

import pytest

from mrdeck.bars import (
    approval_indicator,
    filter_box_lines,
    pipeline_indicator,
    render_mr_row,
)
from mrdeck.styles import visible_width
from mrdeck.types import MergeRequest

_ANSI = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")


def plain(text):
    return _ANSI.sub("", text)


@pytest.mark.parametrize("width", [14, 20, 33])
def test_filter_box_lines_have_box_width(width):
    lines = filter_box_lines("Repo", "All repos", "r", width, False)
    assert len(lines) == 3
    assert all(visible_width(line) == width for line in lines)


def test_filter_box_title_and_value_shown():
    top, mid, bottom = filter_box_lines("Author", "alice", "a", 24, False)
    assert " Author (a) " in plain(top)
    assert plain(mid).strip("│ ") == "alice"
    assert plain(top).startswith("╭─")
    assert plain(bottom).startswith("╰")


def test_filter_box_long_value_truncated():
    _, mid, _ = filter_box_lines("Labels", "x" * 60, "L", 14, False)
    assert "…" in plain(mid)
    assert visible_width(mid) == 14


def test_filter_box_active_uses_highlight_colour():
    active = filter_box_lines("Draft", "All", "d", 14, True)
    idle = filter_box_lines("Draft", "All", "d", 14, False)
    assert all("38;5;170" in line for line in active)
    assert all("38;5;246" in line for line in idle)
    assert [plain(line) for line in active] == [plain(line) for line in idle]


def test_approval_indicator():
    assert plain(approval_indicator(True)) == "✓"
    assert plain(approval_indicator(False)) == "—"


@pytest.mark.parametrize(
    "status, mark",
    [
        ("success", "✓"),
        ("failed", "✗"),
        ("running", "⟳"),
        ("pending", "⟳"),
        ("canceled", "—"),
        (None, "—"),
    ],
)
def test_pipeline_indicator(status, mark):
    assert plain(pipeline_indicator(status)) == mark


def _mr(**kwargs):
    base = dict(iid=12, title="Add sync", author="alice", approved=False)
    base.update(kwargs)
    return MergeRequest(**base)


def test_mr_row_contains_fields():
    row = plain(render_mr_row("backend", _mr(), ["bob"], 0, 0, 20))
    assert "backend" in row
    assert "!12" in row
    assert "@alice" in row
    assert "Add sync" in row
    assert "→" in row
    assert "●" not in row
    assert "↩" not in row


def test_mr_row_marks_unread_and_unresolved():
    row = plain(render_mr_row("backend", _mr(), [], 3, 2, 20))
    assert "●" in row
    assert "↩" in row


def test_mr_row_width_is_stable():
    short = render_mr_row("r", _mr(title="x"), [], 0, 0, 25)
    long = render_mr_row(
        "a-very-long-repository-name",
        _mr(title="t" * 80, author="someone-with-a-long-name", approved=True,
            pipeline_status="failed"),
        ["a.b", "c", "d"],
        7,
        1,
        25,
    )
    assert visible_width(short) == visible_width(long)


def test_mr_row_title_truncated_to_width():
    row = plain(render_mr_row("r", _mr(title="t" * 80), [], 0, 0, 20))
    assert "t" * 19 + "…" in row
    assert "t" * 20 not in row