"""Column-level validation functions for canonical trip data.

Two kinds of uniqueness are supported: fields marked ``unique`` fail
validation on duplicates, fields marked ``report_duplicates`` are only
counted and logged (ride ids are known to repeat across monthly files).
"""

import logging

import polars as pl
from pydantic import BaseModel

from tripdata_canon.core.exceptions import DataValidationError

logger = logging.getLogger(__name__)

MAX_SAMPLE = 10


def _fields_with_flag(model: type[BaseModel], flag: str) -> list[str]:
    return [
        field_name
        for field_name, field_info in model.model_fields.items()
        if (field_info.json_schema_extra or {}).get(flag, False)
    ]


def get_unique_fields(model: type[BaseModel]) -> list[str]:
    """Get list of fields marked as unique in the model."""
    return _fields_with_flag(model, "unique")


def get_reported_fields(model: type[BaseModel]) -> list[str]:
    """Get list of fields whose duplicates are reported but allowed."""
    return _fields_with_flag(model, "report_duplicates")


def find_duplicates(df: pl.DataFrame, col: str) -> pl.DataFrame:
    """Return the duplicated non-null values of a column with their counts.

    Args:
        df: DataFrame to inspect
        col: Column to check

    Returns:
        DataFrame with columns [col, "count"] for values seen more than once
    """
    return (
        df.filter(pl.col(col).is_not_null())
        .group_by(col)
        .agg(pl.len().alias("count"))
        .filter(pl.col("count") > 1)
        .sort(col)
    )


def check_unique_constraints(
    table_name: str,
    df: pl.DataFrame,
    unique_columns: list[str],
) -> None:
    """Check uniqueness constraints on specified columns.

    Raises:
        DataValidationError: If a column is missing or has duplicates
    """
    for col in unique_columns:
        if col not in df.columns:
            raise DataValidationError(
                table=table_name,
                rule="unique_constraint",
                column=col,
                message=f"Column '{col}' not found in table",
            )

        duplicates = find_duplicates(df, col)
        if len(duplicates) > 0:
            dup_values = duplicates[col].to_list()
            raise DataValidationError(
                table=table_name,
                rule="unique_constraint",
                column=col,
                message=(
                    f"Duplicate values found: {dup_values[:MAX_SAMPLE]}"
                    f"{' ...' if len(dup_values) > MAX_SAMPLE else ''}"
                ),
            )


def report_duplicates(
    table_name: str,
    df: pl.DataFrame,
    columns: list[str],
) -> dict[str, int]:
    """Log a warning for duplicated values without failing.

    Returns:
        Mapping of column name to the number of rows sharing a value with
        at least one other row. Missing columns are skipped.
    """
    counts = {}
    for col in columns:
        if col not in df.columns:
            logger.warning(
                "Skipping duplicate report: column '%s' not in '%s'",
                col,
                table_name,
            )
            continue

        duplicates = find_duplicates(df, col)
        n_rows = int(duplicates["count"].sum()) if len(duplicates) else 0
        counts[col] = n_rows
        if n_rows:
            sample = duplicates[col].to_list()[:MAX_SAMPLE]
            logger.warning(
                "Table '%s' column '%s': %s rows share %s duplicated values "
                "(kept). Sample: %s",
                table_name,
                col,
                f"{n_rows:,}",
                f"{len(duplicates):,}",
                sample,
            )
    return counts


__all__ = [
    "check_unique_constraints",
    "find_duplicates",
    "get_reported_fields",
    "get_unique_fields",
    "report_duplicates",
]
