"""Serialise a repository's issues and pull requests into one text file each.

Each file is named after the zero-padded issue number and holds a metadata
block, the description and the full comment thread::

    * Issue #7: Crash on start
    * Created at: 2021-03-04T05:06:07+00:00
    * Author: bob

    ## Description

    ...

    ## Comment #1

    * By carol
    * At 2021-03-05T00:00:00+00:00
    ...

GitHub's issue listing includes pull requests, so both end up here. Attachments
are kept as the links that appear in the text; nothing is downloaded.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from .models import Comment, Issue, Repository

LOG = logging.getLogger(__name__)

CRLF = "\r\n"
ISSUE_FILE_SUFFIX = ".md"
NUMBER_WIDTH = 6


class IssueSource(Protocol):
    def list_issues(self, owner: str, repo: str) -> List[Issue]:
        ...

    def list_issue_comments(self, owner: str, repo: str, issue_number: int) -> List[Comment]:
        ...


def issues_dir(repo: Repository, dest_dir: Path) -> Path:
    return dest_dir / f"{repo.name}__issues"


def issue_filename(number: int) -> str:
    """Return the file name for an issue number, e.g. ``000042.md``.

    Numbers of 10**6 and above are written in full, so they no longer sort
    lexically after the padded ones.
    """
    if number >= 10**NUMBER_WIDTH:
        LOG.warning("Issue #%d exceeds %d digits; file name will not sort in order", number, NUMBER_WIDTH)
    return f"{number:0{NUMBER_WIDTH}d}{ISSUE_FILE_SUFFIX}"


def _format_timestamp(value: Optional[datetime]) -> str:
    return value.isoformat() if value else "unknown"


def render_issue(issue: Issue, comments: Sequence[Comment]) -> str:
    lines = [
        f"* Issue #{issue.number}: {issue.title}",
        f"* Created at: {_format_timestamp(issue.created_at)}",
        f"* Author: {issue.author}",
    ]
    if issue.labels is not None:
        lines.append(f"* Labels: {', '.join(issue.labels)}")
    if issue.closure is not None:
        lines.append(f"* Closed at: {_format_timestamp(issue.closure.closed_at)}")
        lines.append(f"* Closed by: {issue.closure.closed_by}")
    lines.append("")

    if issue.body is not None:
        lines.extend(["## Description", "", issue.body, ""])

    for index, comment in enumerate(comments, start=1):
        lines.extend(
            [
                f"## Comment #{index}",
                "",
                f"* By {comment.author}",
                f"* At {_format_timestamp(comment.created_at)}",
                comment.body,
                "",
            ]
        )

    return "".join(line + CRLF for line in lines)


def archive_issues_and_prs(source: IssueSource, repo: Repository, dest_dir: Path) -> int:
    target_dir = issues_dir(repo, dest_dir)
    target_dir.mkdir(parents=True, exist_ok=True)

    issues = source.list_issues(repo.owner, repo.name)
    LOG.info("Backing up %d issues for %s to %s", len(issues), repo.name, target_dir)

    for issue in issues:
        issue_path = target_dir / issue_filename(issue.number)
        comments = source.list_issue_comments(repo.owner, repo.name, issue.number)
        LOG.debug("Backing up issue #%d with %d comments to %s", issue.number, len(comments), issue_path)
        # newline="" keeps CRLF untranslated; lone surrogates from the API become "?"
        with issue_path.open("w", encoding="utf-8", errors="replace", newline="") as fh:
            fh.write(render_issue(issue, comments))

    return len(issues)
