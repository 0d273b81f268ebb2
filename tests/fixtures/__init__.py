"""Test fixtures for bike-share trip processing tests.

Modules:
    - trip_records: create_raw_trip, build_raw_trips, create_trip, build_trips
    - scenarios: three_ride_scenario, year_of_rides
"""

from .scenarios import three_ride_scenario, year_of_rides
from .trip_records import (
    DEFAULT_START,
    build_raw_trips,
    build_trips,
    create_raw_trip,
    create_trip,
)

__all__ = [
    "DEFAULT_START",
    "build_raw_trips",
    "build_trips",
    "create_raw_trip",
    "create_trip",
    "three_ride_scenario",
    "year_of_rides",
]
