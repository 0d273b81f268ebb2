"""Row-level validation framework for canonical trip data.

Rows are validated against Pydantic models. Validation is step-aware: a
field can be declared required only in certain pipeline steps, so a table
can be checked before all of its derived columns exist.
"""

import logging
import time
from typing import Any

import polars as pl
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from tripdata_canon.core.exceptions import DataValidationError

logger = logging.getLogger(__name__)

BATCH_SIZE = 10_000
MAX_ERRORS = 10
PROGRESS_THRESHOLD = 100_000
PROGRESS_INTERVAL_SECONDS = 5


def get_required_fields_for_step(
    model: type[BaseModel],
    step_name: str,
) -> set[str]:
    """Get field names that are required for a specific step."""
    required_fields = set()

    for field_name, field_info in model.model_fields.items():
        extra = field_info.json_schema_extra or {}
        if extra.get("required_in_all_steps", False) or step_name in extra.get(
            "required_in_steps", []
        ):
            required_fields.add(field_name)

    return required_fields


def validate_row_for_step(
    row_dict: dict[str, Any],
    model: type[BaseModel],
    step_name: str | None = None,
) -> None:
    """Validate a single row for a specific pipeline step.

    Fields required for the step must be present and valid. Other fields are
    type-checked when present and ignored when missing.

    Args:
        row_dict: Dictionary representing a single row
        model: Pydantic model class to validate against
        step_name: Name of the pipeline step. If None, validates all fields.

    Raises:
        PydanticValidationError: If validation fails
        ValueError: If required fields are missing
    """
    if step_name is None:
        model.model_validate(row_dict)
        return

    required_fields = get_required_fields_for_step(model, step_name)
    missing_fields = sorted(
        field_name for field_name in required_fields if row_dict.get(field_name) is None
    )
    if missing_fields:
        msg = f"Missing required fields for step '{step_name}': {', '.join(missing_fields)}"
        raise ValueError(msg)

    present = {k: v for k, v in row_dict.items() if v is not None}

    try:
        model.model_validate(present, strict=False)
    except PydanticValidationError as e:
        # Model-level errors have an empty loc and are always relevant
        relevant_errors = [
            err
            for err in e.errors()
            if not err.get("loc")
            or err["loc"][0] in present
            or err["loc"][0] in required_fields
        ]
        if relevant_errors:
            raise PydanticValidationError.from_exception_data(
                model.__name__,
                relevant_errors,
            ) from e


def validate_dataframe_rows(
    table_name: str,
    df: pl.DataFrame,
    model: type[BaseModel],
    step: str | None = None,
) -> None:
    """Validate all rows in a DataFrame using step-aware validation.

    Collects up to MAX_ERRORS failing rows before raising.

    Raises:
        DataValidationError: If any row fails validation
    """
    total_rows = len(df)
    if total_rows == 0:
        return

    last_update_time = time.time()
    errors: list[tuple[int, str]] = []

    for batch_start in range(0, total_rows, BATCH_SIZE):
        batch = df.slice(batch_start, BATCH_SIZE).to_dicts()

        for i, row in enumerate(batch):
            try:
                validate_row_for_step(row, model, step)
            except (PydanticValidationError, ValueError) as e:
                errors.append((batch_start + i, str(e)))
                if len(errors) >= MAX_ERRORS:
                    break

        if len(errors) >= MAX_ERRORS:
            break

        if total_rows > PROGRESS_THRESHOLD:
            now = time.time()
            if now - last_update_time >= PROGRESS_INTERVAL_SECONDS:
                done = min(batch_start + BATCH_SIZE, total_rows)
                logger.info(
                    "Row validation progress for '%s': %.1f%% (%s/%s rows)",
                    table_name,
                    done / total_rows * 100,
                    f"{done:,}",
                    f"{total_rows:,}",
                )
                last_update_time = now

    if not errors:
        return

    if len(errors) == 1:
        row_idx, msg = errors[0]
        raise DataValidationError(
            table=table_name,
            rule="row_validation",
            row_id=row_idx,
            message=msg,
        )

    error_summary = "\n".join(f"  Row {idx}: {msg}" for idx, msg in errors)
    raise DataValidationError(
        table=table_name,
        rule="row_validation",
        message=f"Found {len(errors)} validation errors:\n{error_summary}",
    )


__all__ = [
    "get_required_fields_for_step",
    "validate_dataframe_rows",
    "validate_row_for_step",
]
