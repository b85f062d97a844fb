"""
Contribution calendar for the heatmap.

Aggregates dated contribution events into a fixed window of day buckets
(52 weeks) anchored at the last day shown in the contribution graph.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Iterator, NamedTuple

# 52 full weeks
WINDOW_DAYS = 52 * 7


@dataclass
class DayRecord:
    """Contribution count for a single day."""

    date: date
    count: int = 0


class ContributionEvent(NamedTuple):
    """A single contribution at a point in time, weighted by `weight`."""

    timestamp: date | datetime
    weight: int = 1


def to_date(value: date | datetime) -> date:
    """
    Reduce a timestamp to its calendar date.

    Timezone-aware datetimes are converted to UTC first so that events from
    different sources land in the same bucket.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def utc_today() -> date:
    """Today's date in UTC, the zone event timestamps are bucketed in."""
    return datetime.now(timezone.utc).date()


def days_between(a: date | datetime, b: date | datetime) -> int:
    """
    Number of whole days from `a` to `b`.

    Truncates toward zero, so 23 hours count as 0 days.
    """
    return int((b - a).total_seconds() / 3600 / 24)


class Calendar:
    """
    Fixed window of day records ending at `last_date`.

    Records are ordered oldest first and cover every day of the window. The
    calendar has a single writer: event sources are aggregated one after the
    other, never concurrently.
    """

    def __init__(self, last_date: date | datetime, window_days: int = WINDOW_DAYS):
        """
        Create a calendar with all counts set to zero.

        Args:
            last_date: The last day of the window (inclusive)
            window_days: Number of days in the window (default 364 = 52 weeks)
        """
        self.last_date = to_date(last_date)
        self.window_days = window_days
        first_date = self.last_date - timedelta(days=window_days - 1)
        self._records = [
            DayRecord(first_date + timedelta(days=i)) for i in range(window_days)
        ]

    @property
    def first_date(self) -> date:
        return self._records[0].date

    @property
    def records(self) -> tuple[DayRecord, ...]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[DayRecord]:
        return iter(self._records)

    def __getitem__(self, index: int) -> DayRecord:
        return self._records[index]

    def index_of(self, day: date | datetime) -> int | None:
        """
        Get the index of the record for the given day.

        Args:
            day: A date or datetime

        Returns:
            Index into the records, or None if the day is outside the window
        """
        day = to_date(day)
        if day > self.last_date:
            return None
        index = self.window_days - 1 - days_between(day, self.last_date)
        if 0 <= index < self.window_days:
            return index
        return None

    def increment(self, day: date | datetime, weight: int = 1) -> bool:
        """
        Add `weight` contributions to the record for the given day.

        Returns:
            True if the day is inside the window, False if it was ignored
        """
        if weight < 0:
            raise ValueError(f"Contribution weight must not be negative, was {weight}")
        index = self.index_of(day)
        if index is None:
            return False
        self._records[index].count += weight
        return True

    def total_count(self) -> int:
        return sum(record.count for record in self._records)

    def max_count(self) -> int:
        return max(record.count for record in self._records)


def aggregate(calendar: Calendar, events: Iterable[ContributionEvent]) -> int:
    """
    Add a batch of contribution events to the calendar.

    Events outside the calendar window are skipped rather than failing the
    whole batch.

    Args:
        calendar: Calendar to update in place
        events: (timestamp, weight) pairs

    Returns:
        Number of events dropped because they fell outside the window
    """
    dropped = 0
    for timestamp, weight in events:
        if not calendar.increment(timestamp, weight):
            dropped += 1
    return dropped
