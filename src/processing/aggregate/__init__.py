"""Grouped aggregates and descriptive summaries of cleaned trips."""

from .aggregate_trips import aggregate_trips, count_rides, mean_duration
from .rider_summary import summarize_riders

__all__ = ["aggregate_trips", "count_rides", "mean_duration", "summarize_riders"]
