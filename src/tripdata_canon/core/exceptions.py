"""Validation exceptions for canonical trip data."""

from dataclasses import dataclass


@dataclass
class DataValidationError(Exception):
    """Structured data-quality error with context.

    Raised for schema mismatches between a source and the expected trip
    columns, rows the cleaning policy refuses to keep, and failed table
    validation.

    Attributes:
        table: Name of the table (or source) being checked
        rule: Name of the rule that failed
        message: Human-readable error description
        row_id: Optional row index for row-level errors
        column: Optional column name for column-level errors
    """

    table: str
    rule: str
    message: str
    row_id: int | None = None
    column: str | None = None

    def __str__(self) -> str:
        """Format error message."""
        parts = [f"Table '{self.table}'"]
        if self.row_id is not None:
            parts.append(f"row {self.row_id}")
        if self.column:
            parts.append(f"column '{self.column}'")
        parts.append(f"- {self.rule}:")
        parts.append(self.message)
        return " ".join(parts)


__all__ = ["DataValidationError"]
