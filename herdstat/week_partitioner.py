"""
Split a contribution calendar into week slices.

Each slice is one column of the contribution graph and covers a calendar
week from Sunday to Saturday. The first and last slices may be partial,
depending on the weekday of the calendar's last date.
"""

from dataclasses import dataclass
from datetime import date, timedelta

from herdstat.contribution_calendar import WINDOW_DAYS, Calendar, DayRecord

# Weekdays as used by the graph rows, Sunday first
SUNDAY = 0
SATURDAY = 6

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


class GraphDefectError(RuntimeError):
    """Raised when the contribution graph violates one of its own invariants."""


class WeekSliceError(GraphDefectError):
    """Raised when a week slice is constructed with inconsistent arguments."""


def sunday_weekday(day: date) -> int:
    """Weekday of the given date with Sunday = 0 and Saturday = 6."""
    return (day.weekday() + 1) % 7


def previous_sunday(day: date) -> date:
    """The last Sunday on or before the given date."""
    return day - timedelta(days=sunday_weekday(day))


def slice_count(last_date: date) -> int:
    """
    Number of week slices needed for a calendar ending at `last_date`.

    A window ending on a Saturday consists of exactly 52 full weeks, every
    other window needs a partial week at both ends.
    """
    return 52 if sunday_weekday(last_date) == SATURDAY else 53


@dataclass(frozen=True)
class WeekSlice:
    """
    One (possibly partial) week of day records.

    Attributes:
        reference_date: The Sunday the week starts on
        first: Weekday of the first record
        last: Weekday of the last record
        records: Day records of the week, length last - first + 1
        index: Position among all slices of the graph
    """

    reference_date: date
    first: int
    last: int
    records: tuple[DayRecord, ...]
    index: int

    def __post_init__(self):
        if sunday_weekday(self.reference_date) != SUNDAY:
            raise WeekSliceError(
                f"Reference date {self.reference_date} of week {self.index} is not a Sunday"
            )
        if self.first != SUNDAY and self.last != SATURDAY:
            raise WeekSliceError(
                f"Week {self.index} must either start on Sunday or end on Saturday, "
                f"was {self.first}-{self.last}"
            )
        expected = self.last - self.first + 1
        if len(self.records) != expected:
            raise WeekSliceError(
                f"Week {self.index} has {len(self.records)} records but must have {expected}"
            )

    @property
    def is_first_week_of_month(self) -> bool:
        return 1 <= self.reference_date.day <= 7

    @property
    def month_label(self) -> str:
        return MONTH_ABBREVIATIONS[self.reference_date.month - 1]


def partition(calendar: Calendar) -> list[WeekSlice]:
    """
    Partition the calendar into week slices, oldest week first.

    Every record of the calendar ends up in exactly one slice, in order.

    Raises:
        ValueError: If the calendar does not span 52 weeks
        GraphDefectError: If the slices do not line up with the records
    """
    if len(calendar) != WINDOW_DAYS:
        raise ValueError(
            f"Calendar must span {WINDOW_DAYS} days to be partitioned, was {len(calendar)}"
        )

    last_date = calendar.last_date
    last_weekday = sunday_weekday(last_date)
    count = slice_count(last_date)

    slices = []
    remaining = calendar.records
    for i in range(count):
        first = SUNDAY
        last = SATURDAY
        if i == 0:
            first = (last_weekday + 1) % 7
        elif i == count - 1:
            last = last_weekday
        size = last - first + 1
        taken, remaining = remaining[:size], remaining[size:]
        reference_date = previous_sunday(last_date - timedelta(weeks=count - i - 1))
        slices.append(WeekSlice(reference_date, first, last, taken, i))

    if remaining:
        raise GraphDefectError(
            f"{len(remaining)} records left over after partitioning into {count} weeks"
        )
    return slices
