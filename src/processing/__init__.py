"""Initialization of the steps module for bike-share trip analysis.

This module imports and exposes all step functions for easy access.
"""

from .aggregate import aggregate_trips, summarize_riders
from .cleaning import clean_trips
from .final_check import final_check
from .read_write import load_data, write_data

__all__ = [
    "aggregate_trips",
    "clean_trips",
    "final_check",
    "load_data",
    "summarize_riders",
    "write_data",
]
