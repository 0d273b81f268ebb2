"""Custom table-level checks for canonical trip data.

These run after row validation and work on whole columns at once, so they
stay fast on a year of trips. Each check takes the tables it needs by name
and returns a list of error messages (empty when the check passes).

To add a check, define the function here and list it under its table in
CUSTOM_VALIDATORS.
"""

from collections.abc import Callable

import polars as pl

from tripdata_canon.codebook.trips import RiderCategory
from tripdata_canon.models.trips import MAX_RIDE_MINUTES, MIN_RIDE_MINUTES


def check_duration_bounds(trips: pl.DataFrame) -> list[str]:
    """Check every cleaned ride lasts at least 1 and under 720 minutes."""
    out_of_bounds = trips.filter(
        pl.col("ride_duration").is_null()
        | (pl.col("ride_duration") < MIN_RIDE_MINUTES)
        | (pl.col("ride_duration") >= MAX_RIDE_MINUTES)
    )
    if len(out_of_bounds) == 0:
        return []
    sample = out_of_bounds["ride_id"].to_list()[:5]
    return [
        f"Found {len(out_of_bounds)} trips with ride_duration outside "
        f"[{MIN_RIDE_MINUTES}, {MAX_RIDE_MINUTES}). Sample ride IDs: {sample}"
    ]


def check_rider_categories(trips: pl.DataFrame) -> list[str]:
    """Check member_casual only holds the two rider category labels."""
    unexpected = (
        trips.select(pl.col("member_casual").cast(pl.Utf8))
        .filter(
            pl.col("member_casual").is_null()
            | ~pl.col("member_casual").is_in(RiderCategory.labels())
        )
        .unique()
    )
    if len(unexpected) == 0:
        return []
    return [
        "Unexpected member_casual values: "
        f"{unexpected['member_casual'].to_list()}"
    ]


def check_sorted_by_start(trips: pl.DataFrame) -> list[str]:
    """Check trips are ordered by started_at."""
    if trips["started_at"].is_sorted():
        return []
    return ["Trips are not sorted by started_at"]


# Registry of custom validators
# Format: {table_name: [check_function1, check_function2, ...]}
CUSTOM_VALIDATORS: dict[str, list[Callable]] = {
    "raw_trips": [],
    "trips": [
        check_duration_bounds,
        check_rider_categories,
        check_sorted_by_start,
    ],
}
