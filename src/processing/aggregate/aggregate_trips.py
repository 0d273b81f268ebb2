"""Grouped ride counts and mean durations by calendar dimension."""

import logging

import polars as pl

from pipeline.decoration import step

logger = logging.getLogger(__name__)

CATEGORY_COLUMN = "member_casual"

# Output table suffix -> calendar dimension column
DIMENSIONS = {
    "month": "month",
    "weekday": "week_day",
    "hour": "hour_of_day",
}


def count_rides(trips: pl.DataFrame, dimension: str) -> pl.DataFrame:
    """Count rides per (dimension, rider category).

    Groups without rides do not appear in the output.
    """
    return (
        trips.group_by([dimension, CATEGORY_COLUMN])
        .agg(pl.len().cast(pl.Int64).alias("ride_count"))
        .sort([dimension, CATEGORY_COLUMN])
    )


def mean_duration(trips: pl.DataFrame, dimension: str) -> pl.DataFrame:
    """Mean ride_duration per (dimension, rider category)."""
    return (
        trips.group_by([dimension, CATEGORY_COLUMN])
        .agg(pl.col("ride_duration").mean().alias("mean_ride_duration"))
        .sort([dimension, CATEGORY_COLUMN])
    )


@step()
def aggregate_trips(trips: pl.DataFrame) -> dict[str, pl.DataFrame]:
    """Build the six grouped summaries of the cleaned trips.

    Returns:
        rides_by_{month,weekday,hour} with ride_count and
        duration_by_{month,weekday,hour} with mean_ride_duration, each keyed
        by the dimension and member_casual.
    """
    result = {}
    for suffix, dimension in DIMENSIONS.items():
        logger.info("Aggregating trips by %s and %s", dimension, CATEGORY_COLUMN)
        result[f"rides_by_{suffix}"] = count_rides(trips, dimension)
        result[f"duration_by_{suffix}"] = mean_duration(trips, dimension)

    for name, table in result.items():
        logger.debug("%s: %d groups", name, len(table))
    return result
