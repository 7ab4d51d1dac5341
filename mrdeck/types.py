"""Plain data records shared by the sync engine, the store and the views."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Reviewer:
    """A reviewer as reported by GitLab, with the review state if known."""

    username: str = ""
    review_state: str = ""


@dataclass
class MRListItem:
    """One entry of the open merge request listing."""

    id: int = 0
    iid: int = 0
    project_id: int = 0
    title: str = ""
    state: str = ""
    draft: bool = False
    source_branch: str = ""
    target_branch: str = ""
    web_url: str = ""
    updated_at: datetime | None = None
    author: str = ""
    labels: list[str] = field(default_factory=list)
    reviewers: list[Reviewer] = field(default_factory=list)


@dataclass
class MRDetail:
    """Details fetched for a single merge request."""

    state: str = ""
    pipeline_status: str = ""
    approved: bool = False
    reviewers: list[Reviewer] = field(default_factory=list)


@dataclass
class Position:
    """Where a diff note is anchored in the changed files."""

    new_path: str = ""
    old_path: str = ""
    old_line: int | None = None
    new_line: int | None = None
    head_sha: str = ""


@dataclass
class Note:
    """A single note inside a discussion."""

    id: int = 0
    type: str | None = None
    body: str = ""
    author: str = ""
    created_at: datetime | None = None
    system: bool = False
    resolvable: bool = False
    resolved: bool = False
    position: Position | None = None


@dataclass
class Discussion:
    """A discussion thread with its notes."""

    id: str = ""
    individual_note: bool = False
    notes: list[Note] = field(default_factory=list)


@dataclass
class Repo:
    """A tracked local repository and its GitLab project."""

    id: int = 0
    path: str = ""
    gitlab_url: str = ""
    name: str = ""
    project_id: int = 0
    last_synced_at: datetime | None = None


@dataclass
class MergeRequest:
    """A merge request as stored locally."""

    id: int = 0
    repo_id: int = 0
    iid: int = 0
    title: str = ""
    author: str = ""
    state: str = ""
    draft: bool = False
    source_branch: str = ""
    target_branch: str = ""
    web_url: str = ""
    pipeline_status: str | None = None
    approved: bool = False
    updated_at: datetime | None = None


@dataclass
class Comment:
    """A stored, non-system note of a merge request."""

    id: int = 0
    mr_id: int = 0
    discussion_id: str = ""
    note_id: int = 0
    author: str = ""
    body: str = ""
    file_path: str | None = None
    old_line: int | None = None
    new_line: int | None = None
    diff_hunk: str = ""
    resolved: bool = False
    created_at: datetime | None = None


@dataclass
class Thread:
    """Comments of one discussion grouped together for display."""

    discussion_id: str = ""
    file_path: str | None = None
    old_line: int | None = None
    new_line: int | None = None
    diff_hunk: str = ""
    resolved: bool = False
    unread: bool = False
    comments: list[Comment] = field(default_factory=list)


@dataclass
class StoredReviewer:
    """A reviewer stored against a merge request."""

    username: str = ""
    state: str = ""


@dataclass
class MRFilter:
    """Criteria for listing merge requests; ``None`` means no constraint.

    A ``reviewer`` of ``""`` selects merge requests without any reviewer.
    """

    repo_id: int | None = None
    author: str | None = None
    author_negate: bool = False
    reviewer: str | None = None
    labels: list[str] = field(default_factory=list)
    draft: bool | None = None
    approved: bool | None = None


@dataclass
class Notifications:
    """Which notification triggers are enabled; all are on by default."""

    new_comment: bool = True
    pipeline_failed: bool = True
    approved: bool = True
    new_review_request: bool = True
    rereview_request: bool = True
    mr_merged: bool = True