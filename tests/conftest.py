"""Test configuration and fixtures."""

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pytest

from org_backup.mirror import CommandResult
from org_backup.models import Comment, Issue, Repository


def repo_payload(name: str = "widget", owner: str = "acme") -> Dict[str, Any]:
    return {
        "name": name,
        "full_name": f"{owner}/{name}",
        "owner": {"login": owner},
        "ssh_url": f"git@github.com:{owner}/{name}.git",
    }


def issue_payload(number: int = 7, **overrides: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "number": number,
        "title": "Crash on start",
        "created_at": "2021-03-04T05:06:07Z",
        "user": {"login": "bob"},
        "state": "open",
        "labels": [],
        "closed_by": None,
        "closed_at": None,
        "body": None,
    }
    payload.update(overrides)
    return payload


def comment_payload(author: str = "carol", body: str = "Same here") -> Dict[str, Any]:
    return {
        "user": {"login": author},
        "created_at": "2021-03-05T00:00:00Z",
        "body": body,
    }


class RecordingGitRunner:
    """Git runner double that records calls instead of spawning git."""

    def __init__(self, returncode: int = 0, output: str = "", create_destination: bool = True) -> None:
        self.calls: List[List[str]] = []
        self.envs: List[Optional[Dict[str, str]]] = []
        self._returncode = returncode
        self._output = output
        self._create_destination = create_destination

    def run(self, args: Sequence[str], env: Optional[Dict[str, str]] = None) -> CommandResult:
        self.calls.append(list(args))
        self.envs.append(env)
        if self._create_destination and self._returncode == 0:
            Path(args[-1]).mkdir(parents=True)
        return CommandResult(returncode=self._returncode, output=self._output)


class FakeClient:
    """In-memory remote client keyed by repository name."""

    def __init__(
        self,
        repositories: Sequence[Repository] = (),
        issues: Optional[Dict[str, List[Issue]]] = None,
        comments: Optional[Dict[tuple, List[Comment]]] = None,
        list_error: Optional[Exception] = None,
        comment_error: Optional[Exception] = None,
    ) -> None:
        self.repositories = list(repositories)
        self.issues = issues or {}
        self.comments = comments or {}
        self.list_error = list_error
        self.comment_error = comment_error
        self.comment_requests: List[tuple] = []

    def list_org_repositories(self, organization: str) -> List[Repository]:
        if self.list_error:
            raise self.list_error
        return self.repositories

    def list_issues(self, owner: str, repo: str) -> List[Issue]:
        return self.issues.get(repo, [])

    def list_issue_comments(self, owner: str, repo: str, issue_number: int) -> List[Comment]:
        self.comment_requests.append((repo, issue_number))
        if self.comment_error:
            raise self.comment_error
        return self.comments.get((repo, issue_number), [])


@pytest.fixture
def widget_repo() -> Repository:
    return Repository.from_api(repo_payload(), organization="acme")


@pytest.fixture
def git_runner() -> RecordingGitRunner:
    return RecordingGitRunner()
