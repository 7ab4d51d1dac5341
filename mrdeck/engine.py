"""Sync merge requests and their discussions from GitLab into the local store."""

from __future__ import annotations

import logging
import os
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator, Protocol, TextIO

from mrdeck.types import (
    Comment,
    Discussion,
    MergeRequest,
    MRDetail,
    MRFilter,
    MRListItem,
    Notifications,
    Repo,
    Reviewer,
    StoredReviewer,
)
from mrdeck.watch import diff_snapshots, snapshot_all

log = logging.getLogger(__name__)

MAX_CONCURRENCY = 4
SNIPPET_CONTEXT = 3

SnippetExtractor = Callable[[str, int, int], str]


class SyncError(Exception):
    """Raised when syncing a repository or merge request fails."""


class GitLabClient(Protocol):
    def list_mrs(self, repo_url: str) -> list[MRListItem]: ...

    def list_discussions(self, repo_url: str, project_id: int, mr_iid: int) -> list[Discussion]: ...

    def get_mr_detail(self, repo_url: str, project_id: int, mr_iid: int) -> MRDetail: ...

    def get_file_content(self, repo_url: str, project_id: int, file_path: str, ref: str) -> str: ...


class Notifier(Protocol):
    def notify(self, title: str, message: str, url: str) -> None: ...


def merge_reviewers(
    listed: Iterable[Reviewer], detail: Iterable[Reviewer]
) -> list[StoredReviewer]:
    """Prefer the detail reviewers, which carry review states, over the listed ones."""
    source = list(detail) or list(listed)
    return [StoredReviewer(username=r.username, state=r.review_state) for r in source]


class SyncEngine:
    """Pulls GitLab data through a client and writes it to the database.

    ``snippet`` turns a file's content, a target line and a context size into
    the code excerpt stored with diff notes; without it no excerpt is stored.
    ``out`` receives progress lines and defaults to standard output.
    """

    def __init__(
        self,
        database: Any,
        client: GitLabClient,
        snippet: SnippetExtractor | None = None,
        out: TextIO | None = None,
    ) -> None:
        self.database = database
        self.client = client
        self.snippet = snippet
        self.out = out
        self._out_lock = threading.Lock()

    def _say(self, line: str) -> None:
        stream = self.out if self.out is not None else sys.stdout
        with self._out_lock:
            stream.write(line + "\n")

    @contextmanager
    def _writing_to(self, writer: TextIO) -> Iterator[None]:
        old = self.out
        self.out = writer
        try:
            yield
        finally:
            self.out = old

    def sync_all_with_writer(self, writer: TextIO) -> None:
        """Sync every repository, writing progress to ``writer``."""
        with self._writing_to(writer):
            self.sync_all()

    def sync_all_with_notifications(
        self, username: str, cfg: Notifications, notifier: Notifier | None
    ) -> None:
        """Sync every repository and notify about changes enabled in ``cfg``.

        Without a notifier or a username this is plain :meth:`sync_all`.
        """
        if notifier is None or not username:
            self.sync_all()
            return

        try:
            pre = snapshot_all(self.database)
        except Exception as exc:
            log.warning("snapshot (pre): %s", exc)
            pre = {}

        sync_error: Exception | None = None
        try:
            self.sync_all()
        except Exception as exc:
            sync_error = exc

        try:
            post = snapshot_all(self.database)
        except Exception as exc:
            log.warning("snapshot (post): %s", exc)
        else:
            for update in diff_snapshots(pre, post, username, cfg, self.client):
                try:
                    notifier.notify(update.title, update.message, update.web_url)
                except Exception as exc:
                    log.warning("notify: %s", exc)

        if sync_error is not None:
            raise sync_error

    def sync_all(self) -> None:
        """Sync every repository; raise the first failure after trying them all."""
        try:
            repos = self.database.list_repos()
        except Exception as exc:
            raise SyncError(f"list repos: {exc}") from exc

        first_error: Exception | None = None
        for number, repo in enumerate(repos, start=1):
            self._say(f"Syncing {number}/{len(repos)} {repo.name}")
            try:
                self.sync_repo(repo)
            except Exception as exc:
                log.warning("sync repo %r: %s", repo.path, exc)
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error

    def sync_repo(self, repo: Repo) -> None:
        """Sync all open merge requests and their discussions for ``repo``.

        Repositories whose path is missing on disk are skipped.
        """
        if not os.path.exists(repo.path):
            log.warning("path %r does not exist on disk, skipping", repo.path)
            return

        try:
            items = self.client.list_mrs(repo.gitlab_url)
        except Exception as exc:
            raise SyncError(f"list MRs: {exc}") from exc

        if repo.project_id == 0 and items:
            repo.project_id = items[0].project_id
            try:
                self.database.update_repo_project_id(repo.id, repo.project_id)
            except Exception as exc:
                raise SyncError(f"update project_id: {exc}") from exc

        try:
            self.database.delete_stale_mrs(repo.id, [item.iid for item in items])
        except Exception as exc:
            raise SyncError(f"delete stale MRs: {exc}") from exc

        total = len(items)

        def work(number: int, item: MRListItem) -> None:
            self._say(f"  MR !{item.iid} ({number}/{total}): {item.title}")
            self._sync_mr_item(repo, item)

        with ThreadPoolExecutor(max_workers=MAX_CONCURRENCY) as pool:
            futures = [
                pool.submit(work, number, item) for number, item in enumerate(items, start=1)
            ]
        errors = [f.exception() for f in futures if f.exception() is not None]
        if errors:
            raise errors[0]

        try:
            self.database.update_repo_sync_time(repo.id)
        except Exception as exc:
            raise SyncError(f"update sync time: {exc}") from exc

    def _sync_mr_item(self, repo: Repo, item: MRListItem) -> None:
        try:
            detail = self.client.get_mr_detail(repo.gitlab_url, repo.project_id, item.iid)
        except Exception as exc:
            log.warning("get detail for MR !%d: %s", item.iid, exc)
            detail = MRDetail()

        mr = MergeRequest(
            repo_id=repo.id,
            iid=item.iid,
            title=item.title,
            author=item.author,
            state=item.state,
            draft=item.draft,
            source_branch=item.source_branch,
            target_branch=item.target_branch,
            web_url=item.web_url,
            pipeline_status=detail.pipeline_status or None,
            approved=detail.approved,
            updated_at=item.updated_at,
        )

        try:
            self.database.upsert_mr(mr)
        except Exception as exc:
            raise SyncError(f"upsert MR !{item.iid}: {exc}") from exc
        try:
            self.database.set_mr_labels(mr.id, list(item.labels))
        except Exception as exc:
            raise SyncError(f"set labels for MR !{item.iid}: {exc}") from exc
        try:
            self.database.set_mr_reviewers(mr.id, merge_reviewers(item.reviewers, detail.reviewers))
        except Exception as exc:
            raise SyncError(f"set reviewers for MR !{item.iid}: {exc}") from exc

        try:
            self._sync_discussions(repo, mr, item.iid)
        except Exception as exc:
            log.warning("sync discussions for MR !%d: %s", item.iid, exc)

    def sync_mr(self, repo: Repo, mr_iid: int) -> None:
        """Sync the discussions of the stored merge request ``mr_iid`` of ``repo``."""
        try:
            mrs = self.database.list_mrs(MRFilter(repo_id=repo.id))
        except Exception as exc:
            raise SyncError(f"list MRs: {exc}") from exc
        target = next((mr for mr in mrs if mr.iid == mr_iid), None)
        if target is None:
            raise SyncError(f"MR !{mr_iid} not found in repo {repo.path!r}")
        self._sync_discussions(repo, target, mr_iid)

    def _code_excerpt(
        self, repo: Repo, file_path: str, head_sha: str, line: int, cache: dict[str, str]
    ) -> str:
        key = f"{head_sha}:{file_path}"
        if key not in cache:
            try:
                cache[key] = self.client.get_file_content(
                    repo.gitlab_url, repo.project_id, file_path, head_sha
                )
            except Exception as exc:
                log.warning("fetch file snippet for %s@%s: %s", file_path, head_sha[:8], exc)
                cache[key] = ""
        content = cache[key]
        if not content or self.snippet is None:
            return ""
        return self.snippet(content, line, SNIPPET_CONTEXT)

    def _sync_discussions(self, repo: Repo, mr: MergeRequest, mr_iid: int) -> None:
        try:
            discussions = self.client.list_discussions(repo.gitlab_url, repo.project_id, mr_iid)
        except Exception as exc:
            raise SyncError(f"list discussions: {exc}") from exc

        file_cache: dict[str, str] = {}
        keep_note_ids: list[int] = []

        for disc in discussions:
            for note in disc.notes:
                if note.system:
                    continue
                keep_note_ids.append(note.id)

                file_path: str | None = None
                old_line: int | None = None
                new_line: int | None = None
                diff_hunk = ""

                pos = note.position
                if pos is not None:
                    file_path = pos.new_path or pos.old_path or None
                    old_line = pos.old_line
                    new_line = pos.new_line
                    if file_path is not None and pos.head_sha:
                        target = new_line if new_line is not None else (old_line or 0)
                        if target > 0:
                            diff_hunk = self._code_excerpt(
                                repo, file_path, pos.head_sha, target, file_cache
                            )

                comment = Comment(
                    mr_id=mr.id,
                    discussion_id=disc.id,
                    note_id=note.id,
                    author=note.author,
                    body=note.body,
                    file_path=file_path,
                    old_line=old_line,
                    new_line=new_line,
                    diff_hunk=diff_hunk,
                    resolved=note.resolved,
                    created_at=note.created_at,
                )
                try:
                    self.database.upsert_comment(comment)
                except Exception as exc:
                    raise SyncError(f"upsert note {note.id}: {exc}") from exc

        try:
            self.database.delete_stale_comments(mr.id, keep_note_ids)
        except Exception as exc:
            raise SyncError(f"delete stale comments: {exc}") from exc