"""Filter boxes, status indicators and merge request rows of the list view."""

from __future__ import annotations

from mrdeck.styles import (
    ACTIVE_COLOR,
    APPROVAL_APPROVED,
    BORDER_COLOR,
    DIM,
    PIPELINE_FAILED,
    PIPELINE_RUNNING,
    PIPELINE_SUCCESS,
    ROUNDED,
    UNREAD,
    UNRESOLVED,
    Style,
    visible_width,
)
from mrdeck.text import format_reviewer_cell, truncate
from mrdeck.types import MergeRequest


def filter_box_lines(
    title: str, value: str, hotkey: str, width: int, active: bool
) -> tuple[str, str, str]:
    """The three lines of a filter box: titled top border, value, bottom border."""
    color = ACTIVE_COLOR if active else BORDER_COLOR
    border = Style(foreground=color)
    title_style = Style(foreground=color, bold=True)
    b = ROUNDED

    inner_w = max(width - 2, 1)

    title_text = f" {title} ({hotkey}) "
    remaining = max(inner_w - 1 - visible_width(title_text), 0)
    top = (
        border.render(b.top_left + b.top)
        + title_style.render(title_text)
        + border.render(b.top * remaining + b.top_right)
    )

    shown = truncate(value, inner_w - 1)
    pad = max(inner_w - (visible_width(shown) + 1), 0)
    mid = border.render(b.left) + " " + shown + " " * pad + border.render(b.right)

    bottom = border.render(b.bottom_left + b.bottom * inner_w + b.bottom_right)
    return top, mid, bottom


def approval_indicator(approved: bool) -> str:
    """A styled approval mark."""
    if approved:
        return APPROVAL_APPROVED.render("✓")
    return DIM.render("—")


def pipeline_indicator(status: str | None) -> str:
    """A styled pipeline status mark."""
    if status == "success":
        return PIPELINE_SUCCESS.render("✓")
    if status == "failed":
        return PIPELINE_FAILED.render("✗")
    if status in ("running", "pending"):
        return PIPELINE_RUNNING.render("⟳")
    return DIM.render("—")


def render_mr_row(
    repo_name: str,
    mr: MergeRequest,
    reviewers: list[str],
    unresolved_count: int,
    unread_count: int,
    title_width: int,
) -> str:
    """One row of the merge request list, unselected."""
    unread = UNREAD.render("●") if unread_count > 0 else " "
    approval = approval_indicator(mr.approved)
    pipeline = pipeline_indicator(mr.pipeline_status)
    unresolved = (
        UNRESOLVED.render(f"{unresolved_count:2d}↩") if unresolved_count > 0 else "   "
    )

    title = truncate(mr.title, title_width)
    prefix = f" {truncate(repo_name, 12):<12} !{mr.iid:<4} "
    title_author = f"{title:<{title_width}} @{truncate(mr.author, 12):<12} → "
    reviewer_cell = format_reviewer_cell(reviewers, 5)

    return (
        prefix
        + unread
        + " "
        + approval
        + " "
        + pipeline
        + "  "
        + title_author
        + reviewer_cell
        + " "
        + unresolved
    )