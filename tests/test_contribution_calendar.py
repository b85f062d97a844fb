"""
Tests for the contribution calendar module.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from herdstat.contribution_calendar import (
    WINDOW_DAYS,
    Calendar,
    ContributionEvent,
    aggregate,
    days_between,
    to_date,
)


class TestDaysBetween:
    """Tests for the days_between function."""

    def test_same_date_is_zero(self):
        day = date(2023, 1, 15)
        assert days_between(day, day) == 0

    def test_same_day_different_hour_is_zero(self):
        """23 hours are truncated to 0 days."""
        a = datetime(2023, 1, 15)
        b = a + timedelta(hours=23)
        assert days_between(a, b) == 0

    def test_different_days(self):
        a = date(2023, 1, 15)
        b = date(2023, 2, 17)
        assert days_between(a, b) == 33

    def test_across_leap_day(self):
        assert days_between(date(2024, 2, 28), date(2024, 3, 1)) == 2

    def test_negative_difference_truncates_toward_zero(self):
        a = datetime(2023, 1, 15, 12)
        b = datetime(2023, 1, 15)
        assert days_between(a, b) == 0


class TestToDate:
    """Tests for the to_date function."""

    def test_date_is_unchanged(self):
        assert to_date(date(2023, 1, 15)) == date(2023, 1, 15)

    def test_naive_datetime_keeps_its_date(self):
        assert to_date(datetime(2023, 1, 15, 23, 59)) == date(2023, 1, 15)

    def test_aware_datetime_is_converted_to_utc(self):
        """22:00 at UTC-5 is already the next day in UTC."""
        tz = timezone(timedelta(hours=-5))
        assert to_date(datetime(2023, 1, 15, 22, 0, tzinfo=tz)) == date(2023, 1, 16)


class TestCalendarConstruction:
    """Tests for creating a Calendar."""

    def test_has_364_records(self):
        calendar = Calendar(date(2023, 10, 30))
        assert len(calendar) == WINDOW_DAYS == 364

    def test_records_are_contiguous_and_end_at_last_date(self):
        """Records should be an ascending run of days ending at last_date."""
        for last_date in [date(2023, 10, 30), date(2024, 3, 1), date(2024, 2, 29), date(2021, 1, 1)]:
            calendar = Calendar(last_date)
            records = calendar.records

            assert records[-1].date == last_date
            assert records[0].date == last_date - timedelta(days=363)
            for previous, current in zip(records, records[1:]):
                assert current.date - previous.date == timedelta(days=1)

    def test_all_counts_start_at_zero(self):
        calendar = Calendar(date(2023, 10, 30))
        assert all(record.count == 0 for record in calendar)
        assert calendar.total_count() == 0
        assert calendar.max_count() == 0

    def test_first_date(self):
        calendar = Calendar(date(2023, 12, 30))
        assert calendar.first_date == date(2023, 1, 1)

    def test_datetime_last_date_is_reduced_to_date(self):
        calendar = Calendar(datetime(2013, 4, 22, 23, 59))
        assert calendar.last_date == date(2013, 4, 22)

    def test_custom_window(self):
        calendar = Calendar(date(2026, 1, 26), window_days=7)
        assert len(calendar) == 7
        assert calendar.first_date == date(2026, 1, 20)

    def test_records_are_read_only_view(self):
        calendar = Calendar(date(2023, 10, 30))
        assert isinstance(calendar.records, tuple)


class TestIndexOf:
    """Tests for Calendar.index_of."""

    def test_last_date_is_last_index(self):
        last_date = date(2023, 10, 30)
        calendar = Calendar(last_date)
        assert calendar.index_of(last_date) == 363

    def test_first_date_is_index_zero(self):
        last_date = date(2023, 10, 30)
        calendar = Calendar(last_date)
        assert calendar.index_of(last_date - timedelta(days=363)) == 0

    def test_day_after_last_date_is_out_of_range(self):
        last_date = date(2023, 10, 30)
        calendar = Calendar(last_date)
        assert calendar.index_of(last_date + timedelta(days=1)) is None

    def test_day_before_window_is_out_of_range(self):
        last_date = date(2023, 10, 30)
        calendar = Calendar(last_date)
        assert calendar.index_of(last_date - timedelta(days=364)) is None

    def test_index_matches_record_date(self):
        """The record at the computed index should carry the looked up date."""
        calendar = Calendar(date(2024, 3, 1))
        for offset in range(0, 364, 17):
            day = date(2024, 3, 1) - timedelta(days=offset)
            assert calendar[calendar.index_of(day)].date == day

    def test_datetime_late_on_last_date(self):
        calendar = Calendar(date(2013, 4, 22))
        assert calendar.index_of(datetime(2013, 4, 22, 23, 0)) == 363


class TestIncrement:
    """Tests for Calendar.increment."""

    def test_increment_in_window(self):
        calendar = Calendar(date(2023, 10, 30))
        assert calendar.increment(date(2023, 10, 29)) is True
        assert calendar[362].count == 1

    def test_increment_out_of_window_is_ignored(self):
        calendar = Calendar(date(2023, 10, 30))
        assert calendar.increment(date(2023, 10, 31), 5) is False
        assert calendar.increment(date(2020, 1, 1), 5) is False
        assert calendar.total_count() == 0

    def test_increments_accumulate(self):
        """Two increments with w1, w2 equal one increment with w1 + w2."""
        day = date(2023, 6, 1)
        twice = Calendar(date(2023, 10, 30))
        twice.increment(day, 2)
        twice.increment(day, 3)

        once = Calendar(date(2023, 10, 30))
        once.increment(day, 5)

        assert [r.count for r in twice] == [r.count for r in once]

    def test_negative_weight_rejected(self):
        calendar = Calendar(date(2023, 10, 30))
        with pytest.raises(ValueError):
            calendar.increment(date(2023, 10, 30), -1)

    def test_max_and_total(self):
        calendar = Calendar(date(2023, 10, 30))
        calendar.increment(date(2023, 10, 30), 4)
        calendar.increment(date(2023, 10, 1), 7)
        assert calendar.max_count() == 7
        assert calendar.total_count() == 11


class TestAggregate:
    """Tests for the aggregate function."""

    def test_single_event_on_last_day(self):
        """A single event on the last day only touches the last record."""
        calendar = Calendar(date(2013, 4, 22))
        dropped = aggregate(calendar, [ContributionEvent(date(2013, 4, 22), 1)])

        assert dropped == 0
        assert calendar[363].count == 1
        assert all(record.count == 0 for record in calendar.records[:363])

    def test_out_of_window_events_are_dropped_and_counted(self):
        calendar = Calendar(date(2023, 10, 30))
        events = [
            ContributionEvent(date(2023, 10, 30), 1),
            ContributionEvent(date(2023, 11, 1), 1),
            ContributionEvent(date(2021, 1, 1), 1),
            ContributionEvent(date(2023, 1, 1), 2),
        ]

        dropped = aggregate(calendar, events)

        assert dropped == 2
        assert calendar.total_count() == 3

    def test_accepts_plain_tuples_and_aware_datetimes(self):
        calendar = Calendar(date(2013, 4, 22))
        events = [
            (datetime(2013, 4, 22, 23, 0, tzinfo=timezone.utc), 1),
            (datetime(2013, 4, 21, 10, 0), 2),
        ]

        aggregate(calendar, events)

        assert calendar[363].count == 1
        assert calendar[362].count == 2

    def test_event_source_batches_are_sequenced(self):
        """Aggregating several batches adds up all their weights."""
        calendar = Calendar(date(2023, 10, 30))
        aggregate(calendar, [(date(2023, 10, 30), 1)])
        aggregate(calendar, [(date(2023, 10, 30), 2)])
        assert calendar[363].count == 3
