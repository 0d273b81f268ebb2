"""Ingestion normalizer: merge per-source trip batches into one table."""

import logging
from collections.abc import Iterable

import polars as pl

from tripdata_canon.core.exceptions import DataValidationError

logger = logging.getLogger(__name__)

# The only columns kept from the monthly trip files
TRIP_COLUMNS = ["ride_id", "started_at", "ended_at", "member_casual"]


def select_trip_columns(source_name: str, batch: pl.DataFrame) -> pl.DataFrame:
    """Keep only the four trip columns of a batch, in canonical order.

    Raises:
        DataValidationError: If any trip column is absent from the batch
    """
    missing = [col for col in TRIP_COLUMNS if col not in batch.columns]
    if missing:
        raise DataValidationError(
            table=source_name,
            rule="schema_mismatch",
            column=missing[0],
            message=(
                f"Missing expected columns {missing}. "
                f"Found: {batch.columns}"
            ),
        )
    return batch.select(TRIP_COLUMNS)


def _as_text(batch: pl.DataFrame) -> pl.DataFrame:
    """Cast trip columns to strings.

    Time zone aware timestamps keep their wall-clock time in the stored zone,
    so they format like the naive timestamps of the CSV files.
    """
    exprs = []
    for col, dtype in batch.schema.items():
        expr = pl.col(col)
        if isinstance(dtype, pl.Datetime) and dtype.time_zone is not None:
            expr = expr.dt.replace_time_zone(None)
        exprs.append(expr.cast(pl.Utf8))
    return batch.with_columns(exprs)


def normalize_batches(
    batches: Iterable[tuple[str, pl.DataFrame]],
) -> pl.DataFrame:
    """Concatenate trip batches in source order, keeping the trip columns.

    No rows are filtered. Columns are cast to strings so batches whose
    timestamps were typed differently still line up.

    Args:
        batches: (source_name, DataFrame) pairs, in source order. May be a
            generator, in which case each batch is released after selection.

    Returns:
        One DataFrame with exactly TRIP_COLUMNS
    """
    selected = []
    for source_name, batch in batches:
        trips = _as_text(select_trip_columns(source_name, batch))
        logger.info("Kept %s rows from %s", f"{len(trips):,}", source_name)
        selected.append(trips)

    if not selected:
        logger.warning("No trip batches to normalize")
        return pl.DataFrame(schema={col: pl.Utf8 for col in TRIP_COLUMNS})

    return pl.concat(selected, how="vertical")
