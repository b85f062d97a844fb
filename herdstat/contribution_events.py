"""
Turn GitHub activity into contribution events.

Parses commits, issues, pull requests and pull request reviews from GitHub
API responses into (timestamp, weight) events and aggregates them into a
contribution calendar.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, time, timezone
from typing import Iterable

from dateutil import parser as date_parser

from herdstat.contribution_calendar import Calendar, ContributionEvent, aggregate
from herdstat.github_client import GitHubClient

logger = logging.getLogger(__name__)

# Owner or owner/repository, see https://github.com/dead-claudia/github-limits
REPOSITORY_ID_PATTERN = re.compile(r"^([A-Za-z0-9-]+)(?:/([A-Za-z0-9_.-]+))?$")


@dataclass(frozen=True)
class RepositoryId:
    """A GitHub owner, optionally narrowed down to a single repository."""

    owner: str
    name: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}" if self.name else self.owner


def parse_repository_id(value: str) -> RepositoryId:
    """
    Parse an 'owner' or 'owner/repository' identifier.

    Raises:
        ValueError: If the identifier is malformed
    """
    match = REPOSITORY_ID_PATTERN.match(value.strip())
    if not match:
        raise ValueError(
            f"'{value}' is not a valid GitHub organization/user or repository identifier"
        )
    return RepositoryId(owner=match.group(1), name=match.group(2))


def collect_repositories(client: GitHubClient, identifiers: Iterable[str]) -> list[dict]:
    """
    Resolve identifiers into repositories.

    Owners are expanded into all their public repositories, duplicates are
    dropped.

    Args:
        client: GitHub client
        identifiers: 'owner' or 'owner/repository' strings

    Returns:
        List of repository dictionaries from the GitHub API

    Raises:
        ValueError: If an identifier is malformed or no repository was found
        GitHubClientError: If an API request fails
    """
    repositories: dict[str, dict] = {}
    for identifier in identifiers:
        repository_id = parse_repository_id(identifier)
        if repository_id.name:
            found = [client.get_repository(repository_id.owner, repository_id.name)]
        else:
            found = client.list_owner_repositories(repository_id.owner)
            logger.info(
                "Fetched %d repositories from owner %s", len(found), repository_id.owner
            )

        for repository in found:
            key = repository.get("full_name", "").lower()
            if key in repositories:
                logger.warning("Repository %s is a duplicate - ignoring", key)
                continue
            repositories[key] = repository

    if not repositories:
        raise ValueError("Resolving repositories resulted in an empty set")
    return list(repositories.values())


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp as returned by the GitHub API."""
    return date_parser.isoparse(value)


def _is_filtered(commit: dict, filters: list[re.Pattern]) -> bool:
    author = commit.get("commit", {}).get("author") or {}
    account = commit.get("author") or {}
    identities = [author.get("name"), author.get("email"), account.get("login")]
    return any(
        pattern.search(identity)
        for pattern in filters
        for identity in identities
        if identity
    )


def commit_events(
    commits: list[dict], filters: Iterable[str | re.Pattern] = ()
) -> list[ContributionEvent]:
    """
    Parse commits into contribution events.

    Args:
        commits: Commit dictionaries from the commits API
        filters: Regular expressions; commits whose author name, email or
            login matches any of them are skipped (e.g. bots)

    Returns:
        One event of weight 1 per remaining commit, at its author date.
        Merge commits are not counted.
    """
    patterns = [re.compile(f) if isinstance(f, str) else f for f in filters]
    events = []
    for commit in commits:
        author = commit.get("commit", {}).get("author") or {}
        authored_at = author.get("date")
        if not authored_at:
            continue
        if len(commit.get("parents") or []) > 1:
            logger.debug("Merge commit %s skipped", commit.get("sha", "")[:7])
            continue
        if _is_filtered(commit, patterns):
            logger.debug("Commit %s filtered out", commit.get("sha", "")[:7])
            continue
        events.append(ContributionEvent(parse_timestamp(authored_at), 1))
    return events


def issue_events(issues: list[dict]) -> list[ContributionEvent]:
    """
    Parse issues and pull requests into contribution events.

    Returns:
        One event of weight 1 per issue or pull request, at its creation time
    """
    return [
        ContributionEvent(parse_timestamp(issue["created_at"]), 1)
        for issue in issues
        if issue.get("created_at")
    ]


def review_events(reviews: list[dict]) -> list[ContributionEvent]:
    """
    Parse pull request reviews into contribution events.

    Pending reviews have no submission time and are skipped.
    """
    return [
        ContributionEvent(parse_timestamp(review["submitted_at"]), 1)
        for review in reviews
        if review.get("submitted_at")
    ]


@dataclass
class ContributionSummary:
    """Number of contributions found per kind."""

    repositories: int = 0
    commits: int = 0
    issues: int = 0
    pull_requests: int = 0
    reviews: int = 0
    dropped: int = 0

    @property
    def total(self) -> int:
        return self.commits + self.issues + self.pull_requests + self.reviews


def _add_events(
    calendar: Calendar, events: list[ContributionEvent], summary: ContributionSummary
) -> int:
    """Aggregate events, returning how many landed in the calendar."""
    dropped = aggregate(calendar, events)
    summary.dropped += dropped
    return len(events) - dropped


def collect_contributions(
    client: GitHubClient,
    repositories: list[dict],
    calendar: Calendar,
    filters: Iterable[str | re.Pattern] = (),
) -> ContributionSummary:
    """
    Fetch the activity of all repositories and add it to the calendar.

    Repositories are processed one after the other, so the calendar only
    ever has a single writer.

    Args:
        client: GitHub client
        repositories: Repository dictionaries from collect_repositories()
        calendar: Calendar to update in place
        filters: Commit author filters, see commit_events()

    Returns:
        Summary of the contributions found

    Raises:
        GitHubClientError: If an API request fails
    """
    filters = list(filters)
    since = datetime.combine(calendar.first_date, time.min, tzinfo=timezone.utc)
    until = datetime.combine(calendar.last_date, time.max, tzinfo=timezone.utc)
    summary = ContributionSummary(repositories=len(repositories))

    for repository in repositories:
        owner = repository["owner"]["login"]
        name = repository["name"]
        logger.info("Collecting contributions for %s/%s", owner, name)

        commits = commit_events(client.list_commits(owner, name, since=since, until=until), filters)
        summary.commits += _add_events(calendar, commits, summary)

        # "since" filters by last update, older issues are dropped by the calendar
        issues = client.list_issues(owner, name, since=since)
        pulls = [issue for issue in issues if "pull_request" in issue]
        plain_issues = [issue for issue in issues if "pull_request" not in issue]
        summary.issues += _add_events(calendar, issue_events(plain_issues), summary)
        summary.pull_requests += _add_events(calendar, issue_events(pulls), summary)

        for pull in pulls:
            reviews = review_events(client.list_pull_reviews(owner, name, pull["number"]))
            summary.reviews += _add_events(calendar, reviews, summary)

    logger.info(
        "Collected %d contributions, %d outside the calendar window",
        summary.total,
        summary.dropped,
    )
    return summary
