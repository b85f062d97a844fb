"""
CLI display functions for herdstat.
"""

from herdstat.contribution_calendar import Calendar
from herdstat.contribution_events import ContributionSummary


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """Format a count with the matching singular or plural noun."""
    if plural is None:
        plural = singular + "s"
    return f"{count} {singular if count == 1 else plural}"


def display_repositories(repositories: list[dict]) -> None:
    """
    Display the repositories about to be analyzed.

    Args:
        repositories: Repository dictionaries from the GitHub API
    """
    print(f"Processing {pluralize(len(repositories), 'repository', 'repositories')}:")
    for repository in repositories:
        print(f"   {repository.get('full_name', 'unknown')}")
    print()


def display_summary(summary: ContributionSummary, calendar: Calendar) -> None:
    """
    Display the contributions found and the calendar window.

    Args:
        summary: Summary from collect_contributions()
        calendar: The aggregated calendar
    """
    print(f"📊 Contributions from {calendar.first_date} to {calendar.last_date}:")
    print(f"   Commits:       {summary.commits}")
    print(f"   Issues:        {summary.issues}")
    print(f"   Pull requests: {summary.pull_requests}")
    print(f"   Reviews:       {summary.reviews}")
    if summary.dropped:
        print(f"   ({pluralize(summary.dropped, 'contribution')} outside the last year ignored)")
    print(f"   Total:         {pluralize(calendar.total_count(), 'contribution')}")
    print()
