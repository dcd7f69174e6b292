"""Read a local repository's history as timeline entries using GitPython."""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

import git
from git import Repo

from repo_evolution.errors import GitHistoryError
from repo_evolution.models.change import ChangeRecord, ChangeStatus, TimelineEntry

logger = logging.getLogger(__name__)

# git diff change types mapped onto change record statuses; C (copy) adds a file
_STATUS_BY_CHANGE_TYPE = {
    "A": ChangeStatus.ADDED,
    "C": ChangeStatus.ADDED,
    "D": ChangeStatus.REMOVED,
    "M": ChangeStatus.MODIFIED,
    "T": ChangeStatus.MODIFIED,
    "R": ChangeStatus.RENAMED,
}


def open_repo(repo_path: Union[str, Path]) -> Repo:
    """Open a git repository or raise GitHistoryError."""
    try:
        return Repo(repo_path)
    except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
        raise GitHistoryError(f"Not a git repository: {repo_path}") from e


def _record(
    status: ChangeStatus,
    path: str,
    stats: Dict[str, Dict[str, int]],
) -> ChangeRecord:
    counts = stats.get(path, {})
    return ChangeRecord(
        path=path,
        status=status,
        additions=counts.get("insertions", 0),
        deletions=counts.get("deletions", 0),
    )


def _blob_lines(blob: git.Blob) -> int:
    data = blob.data_stream.read()
    lines = data.count(b"\n")
    if data and not data.endswith(b"\n"):
        lines += 1
    return lines


def _renamed(item: git.Diff) -> ChangeRecord:
    # commit.stats counts a rename as a full delete plus add, so compare blobs
    delta = _blob_lines(item.b_blob) - _blob_lines(item.a_blob)
    return ChangeRecord(
        path=item.rename_to,
        status=ChangeStatus.RENAMED,
        additions=max(delta, 0),
        deletions=max(-delta, 0),
        previous_path=item.rename_from,
    )


def changes_for_commit(commit: git.Commit) -> List[ChangeRecord]:
    """Derive change records for a commit against its first parent."""
    stats = commit.stats.files

    if not commit.parents:
        # Root commit - every blob in the tree is new
        return [
            _record(ChangeStatus.ADDED, item.path, stats)
            for item in commit.tree.traverse()
            if item.type == "blob"
        ]

    records = []
    for item in commit.parents[0].diff(commit, M=True):
        status = _STATUS_BY_CHANGE_TYPE.get(item.change_type)
        if status is None:
            logger.debug("Ignoring %s change to %s", item.change_type, item.b_path)
            continue
        if status == ChangeStatus.REMOVED:
            records.append(_record(status, item.a_path, stats))
        elif status == ChangeStatus.RENAMED:
            records.append(_renamed(item))
        else:
            records.append(_record(status, item.b_path, stats))
    return records


def read_git_history(
    repo_path: Union[str, Path],
    rev: str = "HEAD",
    max_count: Optional[int] = None,
) -> List[TimelineEntry]:
    """Read the first-parent history of ``rev`` as timeline entries, oldest first.

    With ``max_count`` only the most recent commits are read; the earliest of
    them is then treated like any other commit, so files it does not touch
    are unknown to the timeline.
    """
    repo = open_repo(repo_path)

    kwargs = {"first_parent": True}
    if max_count is not None:
        kwargs["max_count"] = max_count

    try:
        commits = list(repo.iter_commits(rev, **kwargs))
    except (git.exc.GitCommandError, git.exc.BadName, ValueError) as e:
        raise GitHistoryError(f"Cannot read history of {rev}: {e}") from e

    entries = []
    for commit in reversed(commits):
        entries.append(
            TimelineEntry(
                id=commit.hexsha,
                message=commit.summary,
                author=commit.author.name or "",
                timestamp=commit.committed_datetime,
                changes=changes_for_commit(commit),
            )
        )

    logger.info("Read %d commits from %s", len(entries), repo_path)
    return entries
