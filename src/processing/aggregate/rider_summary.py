"""Descriptive profile of each rider category."""

import logging

import polars as pl

from pipeline.decoration import step

from .aggregate_trips import CATEGORY_COLUMN

logger = logging.getLogger(__name__)


def _most_common(col: str) -> pl.Expr:
    # Ties go to the earliest value in the column's sort order
    return pl.col(col).mode().sort().first().alias(f"common_{col}")


@step()
def summarize_riders(trips: pl.DataFrame) -> dict[str, pl.DataFrame]:
    """Summarize ride counts, durations and peak times per rider category.

    Returns:
        Dictionary with "rider_summary": one row per member_casual value
        with ride_count, ride_share, mean/median/min/max ride duration and
        the most common hour_of_day, week_day and month.
    """
    total = len(trips)
    rider_summary = (
        trips.group_by(CATEGORY_COLUMN)
        .agg(
            pl.len().cast(pl.Int64).alias("ride_count"),
            pl.col("ride_duration").mean().alias("mean_ride_duration"),
            pl.col("ride_duration").median().alias("median_ride_duration"),
            pl.col("ride_duration").min().alias("min_ride_duration"),
            pl.col("ride_duration").max().alias("max_ride_duration"),
            _most_common("hour_of_day"),
            _most_common("week_day"),
            _most_common("month"),
        )
        .with_columns((pl.col("ride_count") / total).alias("ride_share"))
        .sort(CATEGORY_COLUMN)
    )

    for row in rider_summary.iter_rows(named=True):
        logger.info(
            "%s: %s rides (%.1f%%), mean %.1f min, busiest hour %s, %s, %s",
            row[CATEGORY_COLUMN],
            f"{row['ride_count']:,}",
            row["ride_share"] * 100,
            row["mean_ride_duration"],
            row["common_hour_of_day"],
            row["common_week_day"],
            row["common_month"],
        )

    return {"rider_summary": rider_summary}
