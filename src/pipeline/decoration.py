"""Decorator for pipeline steps with automatic validation."""

import functools
import inspect
import logging
from collections.abc import Callable
from typing import Any

import polars as pl

from tripdata_canon.core.dataclass import CanonicalData

logger = logging.getLogger(__name__)

# Canonical table names that can be validated
CANONICAL_TABLES = set(CanonicalData.table_names())

# Keyword arguments the runner may pass that are not step parameters
RESERVED_KWARGS = {"canonical_data", "validate_input", "validate_output"}


def step(
    *,
    validate_input: bool = False,
    validate_output: bool = False,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator for pipeline steps with automatic validation.

    Parameters and returned dict entries whose names match canonical tables
    (raw_trips, trips, rides_by_month, ...) are validated against the
    Pydantic models registered in CanonicalData. Step-aware validation uses
    the decorated function's name as the step name.

    Returned dict entries are written back onto the CanonicalData instance
    passed as ``canonical_data``, so later steps can receive them by name.

    Both flags can be overridden per call with ``validate_input=`` and
    ``validate_output=`` keyword arguments, which is how the Pipeline runner
    applies per-step configuration.

    Args:
        validate_input: Whether to validate inputs. Defaults to False.
        validate_output: Whether to validate outputs. Defaults to False.

    Example:
        >>> @step(validate_input=True)
        ... def clean_trips(raw_trips: pl.DataFrame) -> dict[str, pl.DataFrame]:
        ...     trips = ...
        ...     return {"trips": trips}

    Returns:
        Decorated function with validation
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        sig = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:  # noqa: ANN401
            should_validate_input = kwargs.pop("validate_input", validate_input)
            should_validate_output = kwargs.pop("validate_output", validate_output)

            # Only pass canonical_data through if the function expects it
            if "canonical_data" in sig.parameters:
                canonical_data = kwargs.get("canonical_data")
            else:
                canonical_data = kwargs.pop("canonical_data", None)

            # Flags are also handed to steps that declare them
            for name, value in (
                ("validate_input", should_validate_input),
                ("validate_output", should_validate_output),
            ):
                if name in sig.parameters:
                    kwargs[name] = value

            if should_validate_input:
                _validate_inputs(func, sig, args, kwargs, canonical_data)

            result = func(*args, **kwargs)

            if canonical_data is not None and isinstance(result, dict):
                _update_canonical_data(canonical_data, result)

            if should_validate_output and isinstance(result, dict):
                _validate_outputs(result, func.__name__, canonical_data)

            return result

        return wrapper

    return decorator


def _update_canonical_data(
    canonical_data: CanonicalData,
    result: dict[str, Any],
) -> None:
    """Update canonical_data instance with step outputs."""
    for key, value in result.items():
        if _is_canonical_dataframe(key, value):
            logger.info("Updating canonical_data with output '%s'", key)
        elif hasattr(canonical_data, key):
            logger.info("Updating canonical_data with non-table output '%s'", key)
        else:
            logger.warning(
                "Output '%s' is not a canonical table. This cannot be validated automatically.",
                key,
            )
        setattr(canonical_data, key, value)


def _validate_inputs(
    func: Callable,
    sig: inspect.Signature,
    args: tuple,
    kwargs: dict,
    canonical_data: CanonicalData | None,
) -> None:
    """Validate input parameters that are canonical DataFrames."""
    bound = sig.bind(*args, **kwargs)
    bound.apply_defaults()

    validator = canonical_data if canonical_data is not None else CanonicalData()

    for param_name, param_value in bound.arguments.items():
        if not _is_canonical_dataframe(param_name, param_value):
            continue

        logger.info("Validating input '%s' for step '%s'", param_name, func.__name__)
        setattr(validator, param_name, param_value)
        validator.validate(param_name, step=func.__name__)


def _validate_outputs(
    result: dict,
    func_name: str,
    canonical_data: CanonicalData | None,
) -> None:
    """Validate outputs in dict format."""
    validator = canonical_data if canonical_data is not None else CanonicalData()

    for key, value in result.items():
        if not _is_canonical_dataframe(key, value):
            continue

        logger.info("Validating output '%s' from step '%s'", key, func_name)
        setattr(validator, key, value)
        validator.validate(key, step=func_name)


def _is_canonical_dataframe(name: str, value: Any) -> bool:  # noqa: ANN401
    """Check if a value is a DataFrame for a canonical table."""
    return name in CANONICAL_TABLES and isinstance(value, pl.DataFrame)
