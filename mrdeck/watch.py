"""Detect merge request changes between syncs that warrant a notification."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol

from mrdeck.types import MRDetail, MRFilter, Notifications

_PIPELINE_FAIL_STATES = frozenset({"failed", "canceled"})
_REVIEWED_STATES = frozenset({"reviewed", "approved", "requested_changes", "unapproved"})


class MRDetailFetcher(Protocol):
    def get_mr_detail(self, repo_url: str, project_id: int, mr_iid: int) -> MRDetail: ...


@dataclass
class MRSnapshot:
    """State of one merge request used to detect changes across syncs."""

    repo_id: int = 0
    repo_url: str = ""
    project_id: int = 0
    iid: int = 0
    title: str = ""
    web_url: str = ""
    author: str = ""
    state: str = ""
    pipeline_status: str = ""
    approved: bool = False
    note_ids: set[int] = field(default_factory=set)
    reviewers: dict[str, str] = field(default_factory=dict)


@dataclass
class Update:
    """A change that warrants a notification; ``kind`` names the trigger."""

    title: str
    message: str
    web_url: str
    kind: str


def snapshot_all(database: Any) -> dict[int, MRSnapshot]:
    """Snapshot every stored merge request, keyed by its local id."""
    repos = {repo.id: repo for repo in database.list_repos()}
    out: dict[int, MRSnapshot] = {}
    for mr in database.list_mrs(MRFilter()):
        note_ids = {c.note_id for c in database.list_comments(mr.id)}
        reviewers = {r.username: r.state for r in database.get_mr_reviewers(mr.id)}
        snap = MRSnapshot(
            repo_id=mr.repo_id,
            iid=mr.iid,
            title=mr.title,
            web_url=mr.web_url,
            author=mr.author,
            state=mr.state,
            pipeline_status=mr.pipeline_status or "",
            approved=mr.approved,
            note_ids=note_ids,
            reviewers=reviewers,
        )
        repo = repos.get(mr.repo_id)
        if repo is not None:
            snap.repo_url = repo.gitlab_url
            snap.project_id = repo.project_id
        out[mr.id] = snap
    return out


def _review_request(snap: MRSnapshot) -> Update:
    return Update(
        kind="new_review_request",
        title="lab: review requested",
        message=f"!{snap.iid} {snap.title} — you were added as a reviewer",
        web_url=snap.web_url,
    )


def diff_snapshots(
    pre: Mapping[int, MRSnapshot],
    post: Mapping[int, MRSnapshot],
    username: str,
    cfg: Notifications,
    fetcher: MRDetailFetcher | None,
) -> list[Update]:
    """Return the updates between two snapshots enabled by ``cfg`` for ``username``.

    With no fetcher, merge detection for vanished merge requests is skipped.
    """
    if not username:
        return []
    updates: list[Update] = []

    for mr_id, after in post.items():
        before = pre.get(mr_id)
        if before is None:
            if (
                cfg.new_review_request
                and after.reviewers.get(username, "")
                and after.author != username
            ):
                updates.append(_review_request(after))
            continue
        updates.extend(diff_existing_mr(before, after, username, cfg))

    if cfg.mr_merged and fetcher is not None:
        for mr_id, before in pre.items():
            if before.author != username or mr_id in post:
                continue
            if not before.repo_url or before.project_id == 0:
                continue
            try:
                detail = fetcher.get_mr_detail(before.repo_url, before.project_id, before.iid)
            except Exception:
                continue
            if detail.state == "merged":
                updates.append(
                    Update(
                        kind="mr_merged",
                        title="lab: MR merged",
                        message=f"!{before.iid} {before.title} — merged",
                        web_url=before.web_url,
                    )
                )

    return updates


def diff_existing_mr(
    before: MRSnapshot, after: MRSnapshot, username: str, cfg: Notifications
) -> list[Update]:
    """Updates for a merge request present in both snapshots."""
    updates: list[Update] = []
    own = after.author == username

    if cfg.new_comment and own:
        new_comments = len(after.note_ids - before.note_ids)
        if new_comments:
            updates.append(
                Update(
                    kind="new_comment",
                    title="lab: MR updated",
                    message=f"!{after.iid} {after.title} — {plural_comments(new_comments)}",
                    web_url=after.web_url,
                )
            )

    if (
        cfg.pipeline_failed
        and own
        and before.pipeline_status != after.pipeline_status
        and after.pipeline_status in _PIPELINE_FAIL_STATES
    ):
        updates.append(
            Update(
                kind="pipeline_failed",
                title="lab: pipeline " + after.pipeline_status,
                message=f"!{after.iid} {after.title}",
                web_url=after.web_url,
            )
        )

    if cfg.approved and own and not before.approved and after.approved:
        updates.append(
            Update(
                kind="approved",
                title="lab: MR approved",
                message=f"!{after.iid} {after.title}",
                web_url=after.web_url,
            )
        )

    was_reviewer = username in before.reviewers
    is_reviewer = username in after.reviewers

    if cfg.new_review_request and not own and not was_reviewer and is_reviewer:
        updates.append(_review_request(after))

    if (
        cfg.rereview_request
        and not own
        and was_reviewer
        and is_reviewer
        and is_reviewed(before.reviewers[username])
        and after.reviewers[username] == "unreviewed"
    ):
        updates.append(
            Update(
                kind="rereview_request",
                title="lab: re-review requested",
                message=f"!{after.iid} {after.title}",
                web_url=after.web_url,
            )
        )

    return updates


def is_reviewed(state: str) -> bool:
    """Whether a reviewer state means the review has already been given."""
    return state.lower() in _REVIEWED_STATES


def plural_comments(n: int) -> str:
    """Describe a count of new comments."""
    if n == 1:
        return "1 new comment"
    return f"{n} new comments"