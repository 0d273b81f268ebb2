"""Module for reading and writing data files."""

from .read_write import load_data, read_trip_source, write_data

__all__ = ["load_data", "read_trip_source", "write_data"]
