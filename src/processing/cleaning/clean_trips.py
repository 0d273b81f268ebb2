"""Row filter and feature deriver for bike-share trips.

The cleaning sequence is fixed; each transformation takes a DataFrame and
returns a new one:

1. add_ride_duration      ride_duration in fractional minutes
2. drop_short_rides       ride_duration < 1 (incl. negative) removed
3. drop_long_rides        ride_duration >= 720 removed
4. add_calendar_features  week_day, day_of_month, month, hour_of_day
5. sort_by_start          stable sort on started_at
6. relabel_categories     member_casual, week_day, month to labels

Timestamps are parsed first; rows that cannot be parsed, and rows with an
unknown rider category, are handled by CleaningConfig.invalid_rows.
"""

import logging

import polars as pl

from pipeline.decoration import step
from tripdata_canon.codebook.trips import Month, RiderCategory, Weekday
from tripdata_canon.core.exceptions import DataValidationError
from tripdata_canon.models.trips import MAX_RIDE_MINUTES, MIN_RIDE_MINUTES
from tripdata_canon.validation.column import report_duplicates

from .audit import CleaningAudit
from .cleaning_config import CleaningConfig

logger = logging.getLogger(__name__)

TIMESTAMP_COLUMNS = ["started_at", "ended_at"]

# Tried after the configured format; %.f also matches whole seconds
FALLBACK_DATETIME_FORMATS = [
    "%Y-%m-%d %H:%M:%S%.f",
    "%Y-%m-%dT%H:%M:%S%.f",
    "%Y-%m-%d %H:%M",
]

MICROSECONDS_PER_MINUTE = 60_000_000
MAX_SAMPLE = 5


# Timestamp parsing --------------------------------------------------------
def parse_timestamps(
    trips: pl.DataFrame,
    datetime_format: str = "%Y-%m-%d %H:%M:%S",
) -> pl.DataFrame:
    """Parse string started_at/ended_at columns into datetimes.

    Values matching none of the known formats become null, as does an
    all-empty column read with no type. Time zone aware datetimes keep
    their wall-clock time and lose the zone.
    """
    formats = [datetime_format] + [
        f for f in FALLBACK_DATETIME_FORMATS if f != datetime_format
    ]
    for col in TIMESTAMP_COLUMNS:
        dtype = trips.schema[col]
        if dtype == pl.Utf8:
            logger.info("Parsing %s from string...", col)
            trips = trips.with_columns(
                pl.coalesce(
                    [
                        pl.col(col).str.to_datetime(
                            format=fmt, time_unit="us", strict=False
                        )
                        for fmt in formats
                    ]
                ).alias(col)
            )
        elif dtype == pl.Null:
            logger.warning("Column %s holds no values", col)
            trips = trips.with_columns(pl.col(col).cast(pl.Datetime("us")))
        elif isinstance(dtype, pl.Datetime) and dtype.time_zone is not None:
            trips = trips.with_columns(pl.col(col).dt.replace_time_zone(None))
        elif not isinstance(dtype, pl.Datetime):
            msg = f"Column '{col}' has unsupported type {dtype}"
            raise TypeError(msg)
    return trips


def _handle_invalid_rows(
    trips: pl.DataFrame,
    invalid: pl.Expr,
    rule: str,
    column: str,
    policy: str,
) -> tuple[pl.DataFrame, int]:
    """Raise on, or drop, rows matching an invalid-row expression."""
    flagged = trips.with_row_index("_row").filter(invalid)
    n_invalid = len(flagged)
    if n_invalid == 0:
        return trips, 0

    sample = flagged["ride_id"].to_list()[:MAX_SAMPLE]
    if policy == "raise":
        raise DataValidationError(
            table="raw_trips",
            rule=rule,
            column=column,
            row_id=int(flagged["_row"][0]),
            message=(
                f"{n_invalid:,} rows failed this check. "
                f"Sample ride IDs: {sample}. "
                "Set invalid_rows='drop' to remove them instead."
            ),
        )

    logger.warning("Dropping %s rows (%s). Sample ride IDs: %s", f"{n_invalid:,}", rule, sample)
    return trips.filter(~invalid), n_invalid


# Ordered transformations --------------------------------------------------
def add_ride_duration(trips: pl.DataFrame) -> pl.DataFrame:
    """Add ride_duration: minutes from started_at to ended_at, may be negative."""
    return trips.with_columns(
        (
            (pl.col("ended_at") - pl.col("started_at")).dt.total_microseconds()
            / MICROSECONDS_PER_MINUTE
        ).alias("ride_duration")
    )


def drop_short_rides(
    trips: pl.DataFrame,
    min_minutes: float = MIN_RIDE_MINUTES,
) -> pl.DataFrame:
    """Drop rides shorter than min_minutes, including negative durations."""
    return trips.filter(pl.col("ride_duration") >= min_minutes)


def drop_long_rides(
    trips: pl.DataFrame,
    max_minutes: float = MAX_RIDE_MINUTES,
) -> pl.DataFrame:
    """Drop rides lasting max_minutes or longer."""
    return trips.filter(pl.col("ride_duration") < max_minutes)


def add_calendar_features(trips: pl.DataFrame) -> pl.DataFrame:
    """Add week_day (1 = Sunday), day_of_month, month and hour_of_day.

    All four come from started_at.
    """
    started = pl.col("started_at").dt
    return trips.with_columns(
        # Polars numbers Monday 1 through Sunday 7
        (started.weekday() % 7 + 1).cast(pl.Int32).alias("week_day"),
        started.day().cast(pl.Int32).alias("day_of_month"),
        started.month().cast(pl.Int32).alias("month"),
        started.hour().cast(pl.Int32).alias("hour_of_day"),
    )


def sort_by_start(trips: pl.DataFrame) -> pl.DataFrame:
    """Sort by started_at, keeping input order among equal timestamps."""
    return trips.sort("started_at", maintain_order=True)


def relabel_categories(trips: pl.DataFrame) -> pl.DataFrame:
    """Replace codes with labels for member_casual, week_day and month.

    The result columns are polars Enums ordered as in the codebook, so
    Sunday sorts before Monday and Jan before Feb.

    Raises:
        polars.exceptions.InvalidOperationError: If a column holds a code
            that is not in its codebook. clean_trips checks rider categories
            before calling this.
    """
    return trips.with_columns(
        [
            pl.col(enum_cls.get_field_name()).replace_strict(
                enum_cls.to_dict(),
                return_dtype=enum_cls.polars_dtype(),
            )
            for enum_cls in (RiderCategory, Weekday, Month)
        ]
    )


# Full cleaning ------------------------------------------------------------
def clean_trip_table(
    raw_trips: pl.DataFrame,
    config: CleaningConfig | None = None,
) -> tuple[pl.DataFrame, CleaningAudit]:
    """Apply the full cleaning sequence and count what each rule removed.

    Args:
        raw_trips: Table with ride_id, started_at, ended_at, member_casual
        config: Cleaning configuration. Defaults to CleaningConfig().

    Returns:
        The cleaned trips and the audit of removed rows.

    Raises:
        DataValidationError: For unparseable timestamps or unknown rider
            categories when config.invalid_rows is "raise".
    """
    config = config or CleaningConfig()
    audit = CleaningAudit(input_rows=len(raw_trips))

    trips = parse_timestamps(raw_trips, config.datetime_format)
    trips, audit.unparseable_timestamps = _handle_invalid_rows(
        trips,
        pl.col("started_at").is_null() | pl.col("ended_at").is_null(),
        rule="unparseable_timestamps",
        column="started_at",
        policy=config.invalid_rows,
    )

    trips = add_ride_duration(trips)

    n_rows = len(trips)
    trips = drop_short_rides(trips, config.min_ride_minutes)
    audit.too_short = n_rows - len(trips)

    n_rows = len(trips)
    trips = drop_long_rides(trips, config.max_ride_minutes)
    audit.too_long = n_rows - len(trips)

    trips = add_calendar_features(trips)
    trips = sort_by_start(trips)

    raw_codes = [str(code) for code in RiderCategory.to_dict()]
    trips, audit.unknown_category = _handle_invalid_rows(
        trips,
        pl.col("member_casual").is_null() | ~pl.col("member_casual").is_in(raw_codes),
        rule="unknown_category",
        column="member_casual",
        policy=config.invalid_rows,
    )
    trips = relabel_categories(trips)

    audit.output_rows = len(trips)
    audit.duplicate_ride_ids = report_duplicates("trips", trips, ["ride_id"]).get(
        "ride_id", 0
    )
    return trips, audit


@step()
def clean_trips(
    raw_trips: pl.DataFrame,
    min_ride_minutes: float = MIN_RIDE_MINUTES,
    max_ride_minutes: float = MAX_RIDE_MINUTES,
    invalid_rows: str = "raise",
    datetime_format: str = "%Y-%m-%d %H:%M:%S",
) -> dict[str, pl.DataFrame | CleaningAudit]:
    """Clean raw trips: derive duration, filter, add calendar features.

    Args:
        raw_trips: Normalized raw trip table from load_data
        min_ride_minutes: Shortest ride kept
        max_ride_minutes: Rides this long or longer are dropped
        invalid_rows: "raise" or "drop" for unparseable timestamps and
            unknown rider categories
        datetime_format: strftime format of the timestamp strings

    Returns:
        Dictionary with the cleaned "trips" table and the "cleaning_audit"
    """
    config = CleaningConfig(
        min_ride_minutes=min_ride_minutes,
        max_ride_minutes=max_ride_minutes,
        invalid_rows=invalid_rows,
        datetime_format=datetime_format,
    )
    logger.info("Cleaning %s raw trips", f"{len(raw_trips):,}")

    trips, audit = clean_trip_table(raw_trips, config)
    audit.log_summary()

    return {"trips": trips, "cleaning_audit": audit}
