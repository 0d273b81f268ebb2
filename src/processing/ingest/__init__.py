"""Ingestion of monthly trip files into a single raw trip table."""

from .normalize import TRIP_COLUMNS, normalize_batches, select_trip_columns

__all__ = ["TRIP_COLUMNS", "normalize_batches", "select_trip_columns"]
