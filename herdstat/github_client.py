"""
GitHub API client for fetching repository activity.
"""

import logging
from datetime import datetime, timezone

import requests

logger = logging.getLogger(__name__)


class GitHubClientError(Exception):
    """Base exception for GitHub client errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def _isoformat(value: datetime) -> str:
    """Format a timestamp the way the API expects it (UTC, ISO 8601)."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


class GitHubClient:
    """Client for interacting with the GitHub API."""

    BASE_URL = "https://api.github.com"
    PER_PAGE = 100

    def __init__(self, token: str | None = None, timeout: float = 30.0):
        """
        Initialize the GitHub client.

        Args:
            token: GitHub personal access token. Requests are anonymous
                (and heavily rate limited) without one.
            timeout: Timeout for each request in seconds
        """
        self.token = token
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            }
        )
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def _get(self, url: str, params: dict | None = None) -> requests.Response:
        """
        Perform a GET request and map error statuses to GitHubClientError.
        """
        response = self.session.get(url, params=params, timeout=self.timeout)

        if response.status_code == 401:
            raise GitHubClientError(
                "Authentication failed. Check your GITHUB_TOKEN is valid.",
                status_code=401,
            )
        elif response.status_code == 404:
            raise GitHubClientError(f"Not found on GitHub: {url}", status_code=404)
        elif response.status_code == 403:
            # Check for rate limiting
            remaining = response.headers.get("X-RateLimit-Remaining", "unknown")
            raise GitHubClientError(
                f"API rate limit exceeded or access forbidden. "
                f"Remaining requests: {remaining}",
                status_code=403,
            )
        elif not response.ok:
            raise GitHubClientError(
                f"GitHub API error: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )

        return response

    def _get_all_pages(self, url: str, params: dict | None = None) -> list[dict]:
        """
        Fetch every page of a list endpoint by following the `next` links.
        """
        params = {**(params or {}), "per_page": self.PER_PAGE}
        items: list[dict] = []
        next_url: str | None = url
        while next_url:
            response = self._get(next_url, params=params)
            items.extend(response.json())
            next_url = response.links.get("next", {}).get("url")
            # The next link already carries the query string
            params = None
        logger.debug("Fetched %d items from %s", len(items), url)
        return items

    def get_repository(self, owner: str, repo: str) -> dict:
        """
        Fetch a single repository.

        Raises:
            GitHubClientError: If the API request fails
        """
        return self._get(f"{self.BASE_URL}/repos/{owner}/{repo}").json()

    def list_owner_repositories(self, owner: str) -> list[dict]:
        """
        Fetch the public repositories of an organization or user.

        Organizations are tried first, users second.

        Raises:
            GitHubClientError: If the API request fails
        """
        try:
            return self._get_all_pages(
                f"{self.BASE_URL}/orgs/{owner}/repos", params={"type": "public"}
            )
        except GitHubClientError as e:
            if e.status_code != 404:
                raise
        logger.debug("'%s' is not an organization, listing user repositories", owner)
        return self._get_all_pages(
            f"{self.BASE_URL}/users/{owner}/repos", params={"type": "owner"}
        )

    def list_commits(
        self,
        owner: str,
        repo: str,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> list[dict]:
        """
        Fetch the commits of the default branch.

        Args:
            owner: Repository owner
            repo: Repository name
            since: Only commits after this time
            until: Only commits before this time

        Returns:
            List of commit dictionaries, empty for an empty repository

        Raises:
            GitHubClientError: If the API request fails
        """
        params = {}
        if since is not None:
            params["since"] = _isoformat(since)
        if until is not None:
            params["until"] = _isoformat(until)
        try:
            return self._get_all_pages(
                f"{self.BASE_URL}/repos/{owner}/{repo}/commits", params=params
            )
        except GitHubClientError as e:
            # GitHub answers 409 for repositories without any commit
            if e.status_code == 409:
                return []
            raise

    def list_issues(self, owner: str, repo: str, since: datetime | None = None) -> list[dict]:
        """
        Fetch issues and pull requests in any state.

        Args:
            owner: Repository owner
            repo: Repository name
            since: Only issues updated after this time

        Raises:
            GitHubClientError: If the API request fails
        """
        params = {"state": "all"}
        if since is not None:
            params["since"] = _isoformat(since)
        return self._get_all_pages(f"{self.BASE_URL}/repos/{owner}/{repo}/issues", params=params)

    def list_pull_reviews(self, owner: str, repo: str, number: int) -> list[dict]:
        """
        Fetch the reviews of a pull request.

        Raises:
            GitHubClientError: If the API request fails
        """
        return self._get_all_pages(
            f"{self.BASE_URL}/repos/{owner}/{repo}/pulls/{number}/reviews"
        )
