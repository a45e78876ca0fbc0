from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar

import requests
from pydantic import ValidationError

from .config import DEFAULT_API_URL
from .errors import BackupError
from .models import Comment, Issue, Repository

DEFAULT_ACCEPT_HEADER = "application/vnd.github+json"
# GitHub caps page size at 100; iterate() follows Link headers for the rest.
MAX_PER_PAGE = 100
REQUEST_TIMEOUT = 30

T = TypeVar("T")


class RemoteError(BackupError):
    """Raised when a GitHub API call fails."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthError(BackupError):
    """Raised when the access token is missing or rejected."""


class GitHubAPI:
    def __init__(self, token: Optional[str], base_url: str = DEFAULT_API_URL) -> None:
        if not token:
            raise AuthError("GitHub access token must not be empty")
        self._session = requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": DEFAULT_ACCEPT_HEADER,
                "User-Agent": "org-backup",
            }
        )
        self._base_url = base_url.rstrip("/")
        self._log = logging.getLogger(self.__class__.__name__)

    # Listing ---------------------------------------------------------------
    def list_org_repositories(self, organization: str) -> List[Repository]:
        payloads = self.iterate(f"orgs/{organization}/repos", {"type": "all"})
        return self._parse(payloads, lambda item: Repository.from_api(item, organization))

    def list_issues(self, owner: str, repo: str) -> List[Issue]:
        payloads = self.iterate(f"repos/{owner}/{repo}/issues", {"state": "all"})
        return self._parse(payloads, Issue.from_api)

    def list_issue_comments(self, owner: str, repo: str, issue_number: int) -> List[Comment]:
        payloads = self.iterate(f"repos/{owner}/{repo}/issues/{issue_number}/comments")
        return self._parse(payloads, Comment.from_api)

    # Transport -------------------------------------------------------------
    def iterate(self, path: str, params: Optional[Dict[str, Any]] = None) -> Iterable[Dict[str, Any]]:
        url: Optional[str] = f"{self._base_url}/{path.lstrip('/')}"
        request_params = params.copy() if params else {}
        request_params.setdefault("per_page", MAX_PER_PAGE)

        while url:
            response = self._request(url, request_params)
            try:
                page = response.json()
            except ValueError as exc:
                raise RemoteError(f"GitHub API returned invalid JSON for {url}") from exc
            if not isinstance(page, list):
                raise RemoteError(f"GitHub API returned an unexpected payload for {url}")

            yield from page

            # the next link already carries the query string
            url = response.links.get("next", {}).get("url")
            request_params = {}

    def _request(self, url: str, params: Dict[str, Any]) -> requests.Response:
        try:
            response = self._session.get(url, params=params, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as exc:
            raise RemoteError(f"GitHub API request to {url} failed: {exc}") from exc

        if response.status_code == 401:
            raise AuthError("GitHub rejected the access token (401 Unauthorized)")
        if response.status_code >= 400:
            self._log.error("GitHub API request failed: %s %s", response.status_code, response.text)
            raise RemoteError(
                f"GitHub API request to {url} failed with status {response.status_code}",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _parse(payloads: Iterable[Dict[str, Any]], build: Callable[[Dict[str, Any]], T]) -> List[T]:
        items: List[T] = []
        for payload in payloads:
            try:
                items.append(build(payload))
            except (KeyError, TypeError, ValidationError) as exc:
                raise RemoteError(f"Malformed GitHub API payload: {exc}") from exc
        return items
