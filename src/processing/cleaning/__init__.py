"""Trip cleaning: duration filters and calendar features."""

from .audit import CleaningAudit
from .clean_trips import clean_trip_table, clean_trips
from .cleaning_config import CleaningConfig

__all__ = ["CleaningAudit", "CleaningConfig", "clean_trip_table", "clean_trips"]
