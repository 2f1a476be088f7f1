"""
Tests for domain models.
"""

import pytest

from slotbook.domain.models import (
    BreakSet,
    BusinessType,
    Interval,
    WeeklySchedule,
    format_clock,
    merge_intervals,
    normalize_clock,
    parse_clock,
    parse_iso_date,
)


class TestClockHelpers:
    """Tests for clock string conversion."""

    def test_parse_clock(self):
        """Test single and double digit hours."""
        assert parse_clock("9:05") == 545
        assert parse_clock("18:00") == 1080
        assert parse_clock("24:00") == 1440

    @pytest.mark.parametrize("value", ["", "18", "18:7", "ab:cd", "18:60", "24:01", "25:00"])
    def test_parse_clock_rejects_invalid(self, value):
        """Test that malformed or out-of-range times raise ValueError."""
        with pytest.raises(ValueError):
            parse_clock(value)

    def test_format_and_normalize(self):
        """Test zero padding of the canonical form."""
        assert format_clock(545) == "09:05"
        assert normalize_clock("9:00") == "09:00"

    def test_normalize_refuses_end_of_day(self):
        """Test that 24:00 is an interval end but never a start time."""
        assert parse_clock("24:00") == 1440
        with pytest.raises(ValueError):
            normalize_clock("24:00")

    def test_parse_iso_date(self):
        """Test ISO date parsing."""
        day = parse_iso_date("2024-05-01")
        assert (day.year, day.month, day.day) == (2024, 5, 1)
        with pytest.raises(ValueError):
            parse_iso_date("01.05.2024")


class TestInterval:
    """Tests for Interval model."""

    def test_create_valid_interval(self):
        """Test creating a valid interval."""
        interval = Interval.from_clock("12:00", "13:30")

        assert interval.start == 720
        assert interval.end == 810
        assert interval.duration_minutes() == 90
        assert str(interval) == "12:00-13:30"

    def test_invalid_interval_raises_error(self):
        """Test that start >= end raises ValueError."""
        with pytest.raises(ValueError, match="Invalid interval"):
            Interval(start=810, end=720)
        with pytest.raises(ValueError):
            Interval(start=600, end=600)
        with pytest.raises(ValueError):
            Interval(start=0, end=1441)

    def test_contains_is_half_open(self):
        """Test that the end minute is excluded."""
        interval = Interval(start=780, end=825)

        assert interval.contains(780)
        assert interval.contains(824)
        assert not interval.contains(825)
        assert not interval.contains(779)


class TestMergeIntervals:
    """Tests for interval merging."""

    def test_merge_overlapping_and_touching(self):
        """Test that touching and overlapping intervals collapse."""
        merged = merge_intervals([
            Interval.from_clock("14:00", "18:00"),
            Interval.from_clock("12:00", "15:00"),
            Interval.from_clock("18:00", "19:00"),
        ])

        assert merged == [Interval.from_clock("12:00", "19:00")]

    def test_merge_keeps_gaps(self):
        """Test that separate intervals stay separate and sorted."""
        merged = merge_intervals([
            Interval.from_clock("17:30", "22:00"),
            Interval.from_clock("11:30", "14:30"),
        ])

        assert [str(i) for i in merged] == ["11:30-14:30", "17:30-22:00"]


class TestWeeklySchedule:
    """Tests for WeeklySchedule model."""

    def test_from_mapping_merges_each_day(self):
        """Test that construction from a mapping normalises every day."""
        schedule = WeeklySchedule.from_mapping({
            0: [Interval(900, 1000), Interval(600, 920)],
        })

        assert schedule[0] == (Interval(600, 1000),)
        assert schedule.open_weekdays() == [0]
        assert not schedule.is_empty()

    def test_unmerged_days_are_rejected(self):
        """Test that the sorted/merged invariant is enforced."""
        days = [()] * 7
        days[2] = (Interval(600, 700), Interval(700, 800))
        with pytest.raises(ValueError, match="not sorted and merged"):
            WeeklySchedule(days=tuple(days))

    def test_empty_schedule(self):
        """Test the default schedule has no open days."""
        assert WeeklySchedule().is_empty()


class TestBreakSet:
    """Tests for BreakSet model."""

    def test_overlapping_breaks_are_checked_independently(self):
        """Test that duplicates and overlaps are tolerated."""
        breaks = BreakSet(intervals=(Interval(780, 825), Interval(800, 900), Interval(780, 825)))

        assert len(breaks) == 3
        assert breaks.covers(780)
        assert breaks.covers(850)
        assert not breaks.covers(900)


class TestBusinessType:
    """Tests for business type mapping."""

    def test_from_raw(self):
        """Test that unknown values default to restaurant."""
        assert BusinessType.from_raw("friseur") is BusinessType.SALON
        assert BusinessType.from_raw(" Restaurant ") is BusinessType.RESTAURANT
        assert BusinessType.from_raw(None) is BusinessType.RESTAURANT
        assert BusinessType.from_raw("bäckerei") is BusinessType.RESTAURANT
