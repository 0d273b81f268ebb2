"""Tests for grouped trip aggregates and the rider summary."""

from datetime import datetime

import polars as pl
import pytest

from processing.aggregate import aggregate_trips, count_rides, mean_duration, summarize_riders
from processing.cleaning import clean_trip_table
from tests.fixtures import build_trips, create_trip, year_of_rides
from tripdata_canon.codebook.trips import RiderCategory
from tripdata_canon.core.dataclass import CanonicalData


@pytest.fixture
def trips():
    """Five cleaned trips over two months and both rider categories."""
    return build_trips(
        [
            create_trip("m1", datetime(2024, 1, 1, 8), 10.0, RiderCategory.MEMBER),
            create_trip("m2", datetime(2024, 1, 2, 8), 20.0, RiderCategory.MEMBER),
            create_trip("c1", datetime(2024, 1, 6, 17), 30.0, RiderCategory.CASUAL),
            create_trip("m3", datetime(2024, 3, 3, 17), 4.0, RiderCategory.MEMBER),
            create_trip("c2", datetime(2024, 3, 9, 8), 50.0, RiderCategory.CASUAL),
        ]
    )


def _as_dict(table: pl.DataFrame, dimension: str, value: str) -> dict:
    return {
        (row[dimension], row["member_casual"]): row[value]
        for row in table.iter_rows(named=True)
    }


class TestCountRides:
    """Test ride counts per (dimension, rider category)."""

    def test_monthly_counts(self, trips):
        counts = _as_dict(count_rides(trips, "month"), "month", "ride_count")
        assert counts == {
            ("Jan", "Member"): 2,
            ("Jan", "Casual"): 1,
            ("Mar", "Member"): 1,
            ("Mar", "Casual"): 1,
        }

    def test_empty_groups_are_absent(self, trips):
        counts = count_rides(trips, "month")
        assert "Feb" not in counts["month"].cast(pl.Utf8).to_list()
        assert (counts["ride_count"] > 0).all()

    def test_only_one_category_in_a_month(self, trips):
        only_members = trips.filter(
            (pl.col("month") == "Jan") | (pl.col("member_casual") == "Member")
        )
        counts = _as_dict(count_rides(only_members, "month"), "month", "ride_count")
        assert ("Mar", "Casual") not in counts
        assert counts[("Mar", "Member")] == 1

    def test_hourly_counts(self, trips):
        counts = _as_dict(count_rides(trips, "hour_of_day"), "hour_of_day", "ride_count")
        assert counts == {
            (8, "Member"): 2,
            (8, "Casual"): 1,
            (17, "Member"): 1,
            (17, "Casual"): 1,
        }

    def test_sorted_by_calendar_then_category(self, trips):
        counts = count_rides(trips, "week_day")
        days = counts["week_day"].to_list()
        # 2024-01-01 Mon, 01-02 Tue, 01-06 Sat, 03-03 Sun, 03-09 Sat
        assert days == ["Sunday", "Monday", "Tuesday", "Saturday"]
        assert counts["ride_count"].to_list() == [1, 1, 1, 2]


class TestMeanDuration:
    """Test mean ride duration per (dimension, rider category)."""

    def test_monthly_means(self, trips):
        means = _as_dict(mean_duration(trips, "month"), "month", "mean_ride_duration")
        assert means[("Jan", "Member")] == pytest.approx(15.0)
        assert means[("Jan", "Casual")] == pytest.approx(30.0)
        assert means[("Mar", "Member")] == pytest.approx(4.0)

    def test_weekday_means(self, trips):
        means = _as_dict(mean_duration(trips, "week_day"), "week_day", "mean_ride_duration")
        assert means[("Saturday", "Casual")] == pytest.approx(40.0)


class TestAggregateTripsStep:
    """Test the aggregate_trips step and count conservation."""

    def test_produces_six_tables(self, trips):
        result = aggregate_trips(trips=trips)
        assert set(result) == {
            "rides_by_month",
            "duration_by_month",
            "rides_by_weekday",
            "duration_by_weekday",
            "rides_by_hour",
            "duration_by_hour",
        }

    def test_counts_conserve_rows(self):
        cleaned, _ = clean_trip_table(year_of_rides())
        result = aggregate_trips(trips=cleaned)

        for name in ["rides_by_month", "rides_by_weekday", "rides_by_hour"]:
            assert result[name]["ride_count"].sum() == len(cleaned), name

    def test_updates_canonical_data(self, trips):
        data = CanonicalData(trips=trips)
        aggregate_trips(trips=trips, canonical_data=data)
        assert data.rides_by_hour is not None
        assert data.duration_by_weekday is not None

    def test_outputs_pass_validation(self, trips):
        result = aggregate_trips(trips=trips, validate_output=True)
        assert len(result["rides_by_month"]) == 4


class TestSummarizeRiders:
    """Test the per-category rider summary."""

    def test_summary_values(self, trips):
        summary = summarize_riders(trips=trips)["rider_summary"]
        rows = {row["member_casual"]: row for row in summary.iter_rows(named=True)}

        member = rows["Member"]
        assert member["ride_count"] == 3
        assert member["ride_share"] == pytest.approx(0.6)
        assert member["mean_ride_duration"] == pytest.approx(34 / 3)
        assert member["median_ride_duration"] == pytest.approx(10.0)
        assert member["min_ride_duration"] == pytest.approx(4.0)
        assert member["max_ride_duration"] == pytest.approx(20.0)
        assert member["common_hour_of_day"] == 8
        assert member["common_month"] == "Jan"

        casual = rows["Casual"]
        assert casual["ride_count"] == 2
        assert casual["common_week_day"] == "Saturday"

    def test_shares_sum_to_one(self):
        cleaned, _ = clean_trip_table(year_of_rides())
        summary = summarize_riders(trips=cleaned)["rider_summary"]
        assert summary["ride_share"].sum() == pytest.approx(1.0)
        assert summary["ride_count"].sum() == len(cleaned)

    def test_summary_passes_validation(self, trips):
        result = summarize_riders(trips=trips, validate_output=True)
        assert len(result["rider_summary"]) == 2
