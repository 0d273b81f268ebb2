"""Module for creating fields with step metadata."""

from typing import Any

from pydantic import Field


def step_field(
    *,
    required_in_steps: list[str] | str | None = None,
    unique: bool = False,
    report_duplicates: bool = False,
    **field_kwargs: Any,  # noqa: ANN401
) -> Any:  # noqa: ANN401
    """Create a Field with step metadata.

    Annotates a model field with the pipeline steps in which it must be
    present and with column-level constraints that the table validator
    reads back from ``json_schema_extra``.

    Args:
        required_in_steps: List of step names where this field is required,
                          or the string "all" to require in all steps.
                          If None/empty, field is NOT required in any step.
        unique: Duplicate values fail table validation.
        report_duplicates: Duplicate values are logged as a warning but do
                          not fail validation. Ignored when unique is set.
        **field_kwargs: All other Field parameters (ge, lt, default, etc.)

    Returns:
        Field instance with step metadata attached

    Example:
        >>> ride_id: str = step_field(
        ...     report_duplicates=True, required_in_steps="all"
        ... )

        >>> hour_of_day: int = step_field(
        ...     ge=0, le=23, required_in_steps=["aggregate_trips"]
        ... )
    """
    if "json_schema_extra" not in field_kwargs:
        field_kwargs["json_schema_extra"] = {}

    if isinstance(required_in_steps, str):
        required_in_steps = [required_in_steps]

    if required_in_steps is None:
        required_in_steps = []

    if unique:
        field_kwargs["json_schema_extra"]["unique"] = True
    elif report_duplicates:
        field_kwargs["json_schema_extra"]["report_duplicates"] = True

    if required_in_steps == ["all"]:
        field_kwargs["json_schema_extra"]["required_in_all_steps"] = True
    elif required_in_steps:
        field_kwargs["json_schema_extra"]["required_in_steps"] = required_in_steps

    return Field(**field_kwargs)
