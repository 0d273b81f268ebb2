"""Final validation step for the cleaned trips and their aggregates."""

import logging

import polars as pl

from pipeline import step
from tripdata_canon.core.exceptions import DataValidationError
from tripdata_canon.validation.custom import check_duration_bounds

logger = logging.getLogger(__name__)


def check_count_conservation(
    trips: pl.DataFrame,
    ride_counts: dict[str, pl.DataFrame],
) -> None:
    """Check each ride count table adds back up to the number of trips.

    Raises:
        DataValidationError: If a table's counts do not sum to len(trips)
    """
    for table_name, counts in ride_counts.items():
        total = int(counts["ride_count"].sum())
        if total != len(trips):
            raise DataValidationError(
                table=table_name,
                rule="count_conservation",
                column="ride_count",
                message=f"Counts sum to {total:,} but trips has {len(trips):,} rows",
            )


@step(validate_input=True, validate_output=True)
def final_check(
    trips: pl.DataFrame,
    rides_by_month: pl.DataFrame,
    rides_by_weekday: pl.DataFrame,
    rides_by_hour: pl.DataFrame,
) -> dict[str, pl.DataFrame]:
    """Validate the cleaned trips and confirm the ride counts cover them.

    Row-level validation of trips (row models, category closure, ordering)
    is run by the step decorator as input validation. The duration bounds
    and count conservation are checked on whole columns on every run.
    Only the ride count tables are returned, so output validation never
    walks the trips row by row.

    Raises:
        DataValidationError: If any check fails
    """
    logger.info("Starting final validation checks")

    errors = check_duration_bounds(trips)
    if errors:
        raise DataValidationError(
            table="trips",
            rule="check_duration_bounds",
            column="ride_duration",
            message="; ".join(errors),
        )

    ride_counts = {
        "rides_by_month": rides_by_month,
        "rides_by_weekday": rides_by_weekday,
        "rides_by_hour": rides_by_hour,
    }
    check_count_conservation(trips, ride_counts)

    logger.info("Final validation checks completed successfully")
    return ride_counts
