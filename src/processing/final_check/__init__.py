"""Final validation of the processed trip tables."""

from .final_check import final_check

__all__ = ["final_check"]
