"""GitHub API utilities for posting coverage comments on pull requests."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any

import requests

logger = logging.getLogger(__name__)

# GitHub API constants
GITHUB_API_BASE = "https://api.github.com"
_GITHUB_AUTH_ENV_KEY = "GITHUB_" + "TOKEN"
_REQUEST_TIMEOUT = 30
_COMMENTS_PER_PAGE = 100

# Expected number of parts when splitting "owner/repo"
_OWNER_REPO_PARTS = 2


@dataclass
class GitHubPRInfo:
    """Information about a GitHub pull request."""

    owner: str
    """Repository owner (username or organization)."""

    repo: str
    """Repository name."""

    pr_number: int
    """Pull request number."""


class GitHubAPIError(Exception):
    """Exception raised when GitHub API operations fail."""


class GitHubAPI:
    """Client for the GitHub issue-comment endpoints.

    Handles authentication, API requests, and PR comment management.
    """

    def __init__(self, token: str | None = None, *, api_base: str | None = None) -> None:
        """Initialize the GitHub API client.

        Args:
            token: GitHub access token. If not provided, will try to read
                from GITHUB_TOKEN environment variable.
            api_base: API root (defaults to GITHUB_API_URL or api.github.com).

        Raises:
            GitHubAPIError: If no token is available.
        """
        self._token = token or os.environ.get(_GITHUB_AUTH_ENV_KEY)
        if not self._token:
            raise GitHubAPIError(
                f"GitHub token required. Set {_GITHUB_AUTH_ENV_KEY} environment variable "
                "or pass token to constructor."
            )

        base = api_base or os.environ.get("GITHUB_API_URL") or GITHUB_API_BASE
        self._api_base = base.rstrip("/")
        self._session_headers = {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _comments_url(self, pr_info: GitHubPRInfo) -> str:
        return (
            f"{self._api_base}/repos/{pr_info.owner}/{pr_info.repo}/"
            f"issues/{pr_info.pr_number}/comments"
        )

    def create_comment(self, pr_info: GitHubPRInfo, body: str) -> dict[str, Any]:
        """Create a new comment on a pull request.

        Raises:
            GitHubAPIError: If the API request fails.
        """
        result: dict[str, Any] = self._post(self._comments_url(pr_info), {"body": body})
        return result

    def update_comment(self, pr_info: GitHubPRInfo, comment_id: int, body: str) -> dict[str, Any]:
        """Replace the body of an existing comment.

        Raises:
            GitHubAPIError: If the API request fails.
        """
        url = (
            f"{self._api_base}/repos/{pr_info.owner}/{pr_info.repo}/"
            f"issues/comments/{comment_id}"
        )

        result: dict[str, Any] = self._patch(url, {"body": body})
        return result

    def list_comments(self, pr_info: GitHubPRInfo) -> list[dict[str, Any]]:
        """Return all comments on a pull request, following pagination.

        Raises:
            GitHubAPIError: If the API request fails.
        """
        comments: list[dict[str, Any]] = []
        page = 1
        while True:
            url = f"{self._comments_url(pr_info)}?per_page={_COMMENTS_PER_PAGE}&page={page}"
            batch = self._get(url)
            if not isinstance(batch, list):
                raise GitHubAPIError(f"Unexpected response listing comments: {batch!r}")
            comments.extend(batch)
            if len(batch) < _COMMENTS_PER_PAGE:
                return comments
            page += 1

    def find_comment_by_marker(self, pr_info: GitHubPRInfo, marker: str) -> dict[str, Any] | None:
        """Find the first comment on a PR whose body starts with *marker*.

        Raises:
            GitHubAPIError: If the API request fails.
        """
        for comment in self.list_comments(pr_info):
            if (comment.get("body") or "").startswith(marker):
                return comment
        return None

    def upsert_comment(self, pr_info: GitHubPRInfo, body: str, marker: str) -> dict[str, Any]:
        """Create or update a comment on a PR.

        If a comment starting with the given marker exists, it will be updated.
        Otherwise, a new comment will be created.

        Raises:
            GitHubAPIError: If the API request fails.
        """
        if not body.startswith(marker):
            logger.warning("Marker '%s' not found at start of comment body. Adding it.", marker)
            body = f"{marker}\n{body}"

        existing = self.find_comment_by_marker(pr_info, marker)

        if existing:
            logger.info("Updating existing comment %d", existing["id"])
            return self.update_comment(pr_info, existing["id"], body)

        logger.info("Creating new comment")
        return self.create_comment(pr_info, body)

    def _get(self, url: str) -> Any:
        try:
            response = requests.get(url, headers=self._session_headers, timeout=_REQUEST_TIMEOUT)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as exc:
            raise GitHubAPIError(f"GET request failed: {exc}") from exc

    def _post(self, url: str, data: dict[str, Any]) -> Any:
        try:
            response = requests.post(
                url, json=data, headers=self._session_headers, timeout=_REQUEST_TIMEOUT
            )
            response.raise_for_status()
            return response.json()
        except requests.RequestException as exc:
            raise GitHubAPIError(f"POST request failed: {exc}") from exc

    def _patch(self, url: str, data: dict[str, Any]) -> Any:
        try:
            response = requests.patch(
                url, json=data, headers=self._session_headers, timeout=_REQUEST_TIMEOUT
            )
            response.raise_for_status()
            return response.json()
        except requests.RequestException as exc:
            raise GitHubAPIError(f"PATCH request failed: {exc}") from exc


def get_pr_info_from_env() -> GitHubPRInfo | None:
    """Get PR information from GitHub Actions environment variables.

    Returns:
        GitHubPRInfo if running in a PR context, None otherwise.
    """
    github_repository = os.environ.get("GITHUB_REPOSITORY")
    github_event_name = os.environ.get("GITHUB_EVENT_NAME")
    github_ref = os.environ.get("GITHUB_REF")

    if not github_repository or github_event_name not in {"pull_request", "pull_request_target"}:
        return None

    parts = github_repository.split("/")
    if len(parts) != _OWNER_REPO_PARTS:
        return None

    owner, repo = parts

    # GITHUB_REF format: refs/pull/<number>/merge
    if not github_ref or not github_ref.startswith("refs/pull/"):
        return None

    try:
        pr_number = int(github_ref.split("/")[2])
    except (IndexError, ValueError):
        return None

    return GitHubPRInfo(owner=owner, repo=repo, pr_number=pr_number)
