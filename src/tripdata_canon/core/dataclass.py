"""Canonical container for bike-share trip tables, with validation."""

import inspect
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import polars as pl
from pydantic import BaseModel

from tripdata_canon.models import trips as trip_models
from tripdata_canon.validation.column import (
    check_unique_constraints,
    get_reported_fields,
    get_unique_fields,
    report_duplicates,
)
from tripdata_canon.validation.custom import CUSTOM_VALIDATORS
from tripdata_canon.validation.row import validate_dataframe_rows

from .exceptions import DataValidationError

logger = logging.getLogger(__name__)


@dataclass
class CanonicalData:
    """Canonical data structure for trip analysis with validation.

    Holds the raw and cleaned trip tables and every aggregate computed from
    them. Use the validate() method to validate specific tables.
    """

    raw_trips: pl.DataFrame | None = None
    trips: pl.DataFrame | None = None

    # Aggregates keyed by (dimension, member_casual)
    rides_by_month: pl.DataFrame | None = None
    duration_by_month: pl.DataFrame | None = None
    rides_by_weekday: pl.DataFrame | None = None
    duration_by_weekday: pl.DataFrame | None = None
    rides_by_hour: pl.DataFrame | None = None
    duration_by_hour: pl.DataFrame | None = None
    rider_summary: pl.DataFrame | None = None

    # Row-removal counts from the cleaning step
    cleaning_audit: Any = None

    # Model mapping for validation
    _models: dict[str, type[BaseModel]] = field(
        default_factory=lambda: {
            "raw_trips": trip_models.RawTripModel,
            "trips": trip_models.TripModel,
            "rides_by_month": trip_models.RideCountModel,
            "duration_by_month": trip_models.MeanDurationModel,
            "rides_by_weekday": trip_models.RideCountModel,
            "duration_by_weekday": trip_models.MeanDurationModel,
            "rides_by_hour": trip_models.RideCountModel,
            "duration_by_hour": trip_models.MeanDurationModel,
            "rider_summary": trip_models.RiderSummaryModel,
        }
    )

    # Custom validators: table_name -> list of validator functions
    _custom_validators: dict[str, list[Callable]] = field(
        default_factory=lambda: {
            table: list(validators)
            for table, validators in CUSTOM_VALIDATORS.items()
        }
    )

    @classmethod
    def table_names(cls) -> list[str]:
        """Names of the DataFrame tables this container can hold."""
        return [
            name
            for name, annotation in cls.__annotations__.items()
            if not name.startswith("_") and "DataFrame" in str(annotation)
        ]

    def validate(self, table_name: str, step: str | None = None) -> None:
        """Validate a table through all validation layers.

        Runs validation in this order:
        1. Column constraints (uniqueness, reported duplicates)
        2. Row-level Pydantic validation (step-aware if step provided)
        3. Custom registered validators

        Args:
            table_name: Name of the table to validate
            step: Pipeline step name for step-aware validation.
                 If None, validates all fields strictly.

        Raises:
            ValueError: If the table name is unknown
            DataValidationError: If any validation check fails
        """
        if table_name not in self._models:
            valid_tables = ", ".join(self._models.keys())
            msg = f"Invalid table name: {table_name}. Valid tables: {valid_tables}"
            raise ValueError(msg)

        df = getattr(self, table_name)
        if df is None:
            logger.warning("Table '%s' is None - skipping validation", table_name)
            return

        start_time = time.time()
        step_info = f" for step '{step}'" if step else ""
        logger.info(
            "Validating table '%s'%s (%s rows)",
            table_name,
            step_info,
            f"{len(df):,}",
        )

        model = self._models[table_name]

        unique_fields = get_unique_fields(model)
        if unique_fields:
            check_unique_constraints(table_name, df, unique_fields)

        reported_fields = get_reported_fields(model)
        if reported_fields:
            report_duplicates(table_name, df, reported_fields)

        validate_dataframe_rows(table_name, df, model, step)

        self._run_custom_validators(table_name)

        logger.info(
            "✓ Table '%s'%s validated successfully in %.2fs",
            table_name,
            step_info,
            time.time() - start_time,
        )

    def _run_custom_validators(self, table_name: str) -> None:
        """Run registered custom validators for a table.

        Validator arguments are matched to tables by parameter name.
        """
        for validator_func in self._custom_validators.get(table_name, []):
            kwargs = {}
            for param_name in inspect.signature(validator_func).parameters:
                if param_name not in self._models:
                    msg = (
                        f"Validator {validator_func.__name__} requires "
                        f"unknown table: {param_name}"
                    )
                    raise ValueError(msg)
                kwargs[param_name] = getattr(self, param_name)

            if any(value is None for value in kwargs.values()):
                logger.warning(
                    "Skipping validator %s: a required table is None",
                    validator_func.__name__,
                )
                continue

            errors = validator_func(**kwargs)
            if errors:
                raise DataValidationError(
                    table=table_name,
                    rule=validator_func.__name__,
                    message="; ".join(errors),
                )

    def register_validator(self, *table_names: str) -> Callable:
        """Register a custom validator on one or more tables.

        Example:
            >>> @data.register_validator("rides_by_month")
            ... def check_twelve_months(rides_by_month: pl.DataFrame) -> list[str]:
            ...     n = rides_by_month["month"].n_unique()
            ...     return [] if n == 12 else [f"Only {n} months present"]
        """
        if not table_names:
            msg = "Must specify at least one table name"
            raise ValueError(msg)

        def decorator(func: Callable) -> Callable:
            for table_name in table_names:
                if table_name not in self._models:
                    msg = f"Unknown table: {table_name}"
                    raise ValueError(msg)
                self._custom_validators.setdefault(table_name, []).append(func)
            return func

        return decorator
