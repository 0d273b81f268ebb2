"""Data models for bike-share trips and their aggregates.

This module uses Pydantic for data validation.

Models represent individual records (rows) rather than entire DataFrames.
CanonicalData.validate() walks a Polars DataFrame and checks each row
against the model registered for its table.
"""

from datetime import datetime

from pydantic import BaseModel, model_validator

from tripdata_canon.codebook.trips import Month, RiderCategory, Weekday
from tripdata_canon.core.labeled_enum import labeled
from tripdata_canon.core.step_field import step_field

MIN_RIDE_MINUTES = 1.0
MAX_RIDE_MINUTES = 720.0

# Tolerance when comparing ride_duration against its timestamps
DURATION_TOLERANCE_MINUTES = 1e-6


# Trip Models ------------------------------------------------------------------
class RawTripModel(BaseModel):
    """One ride as read from a monthly trip file, before cleaning."""

    ride_id: str = step_field(required_in_steps=["clean_trips"])
    started_at: datetime | str = step_field(required_in_steps=["clean_trips"])
    ended_at: datetime | str = step_field(required_in_steps=["clean_trips"])
    member_casual: str = step_field(required_in_steps=["clean_trips"])


class TripModel(BaseModel):
    """One cleaned ride with derived duration and calendar features."""

    ride_id: str = step_field(report_duplicates=True, required_in_steps="all")
    started_at: datetime = step_field(required_in_steps="all")
    ended_at: datetime = step_field(required_in_steps="all")
    member_casual: labeled(RiderCategory) = step_field(required_in_steps="all")
    ride_duration: float = step_field(
        ge=MIN_RIDE_MINUTES,
        lt=MAX_RIDE_MINUTES,
        required_in_steps="all",
        description="Minutes between started_at and ended_at",
    )
    week_day: labeled(Weekday) = step_field(required_in_steps="all")
    day_of_month: int = step_field(ge=1, le=31, required_in_steps="all")
    month: labeled(Month) = step_field(required_in_steps="all")
    hour_of_day: int = step_field(ge=0, le=23, required_in_steps="all")

    @model_validator(mode="after")
    def duration_matches_timestamps(self) -> "TripModel":
        """Ensure ride_duration agrees with the timestamps it came from."""
        elapsed = (self.ended_at - self.started_at).total_seconds() / 60
        if abs(elapsed - self.ride_duration) > DURATION_TOLERANCE_MINUTES:
            msg = (
                f"ride_duration {self.ride_duration} does not match "
                f"ended_at - started_at ({elapsed} minutes)"
            )
            raise ValueError(msg)
        return self


# Aggregate Models -------------------------------------------------------------
class GroupedTripModel(BaseModel):
    """Grouping key shared by aggregate tables: one calendar dimension.

    Exactly one of month, week_day or hour_of_day is set per table.
    """

    member_casual: labeled(RiderCategory) = step_field(required_in_steps="all")
    month: labeled(Month) | None = step_field(default=None)
    week_day: labeled(Weekday) | None = step_field(default=None)
    hour_of_day: int | None = step_field(ge=0, le=23, default=None)

    @model_validator(mode="after")
    def single_dimension(self) -> "GroupedTripModel":
        """Ensure the row is keyed by exactly one calendar dimension."""
        dims = [self.month, self.week_day, self.hour_of_day]
        n_set = sum(d is not None for d in dims)
        if n_set != 1:
            msg = (
                "Aggregate rows must be keyed by exactly one of "
                f"month, week_day, hour_of_day (got {n_set})"
            )
            raise ValueError(msg)
        return self


class RideCountModel(GroupedTripModel):
    """Number of rides in a (dimension, rider category) group."""

    ride_count: int = step_field(ge=1, required_in_steps="all")


class MeanDurationModel(GroupedTripModel):
    """Mean ride duration of a (dimension, rider category) group."""

    mean_ride_duration: float = step_field(
        ge=MIN_RIDE_MINUTES,
        lt=MAX_RIDE_MINUTES,
        required_in_steps="all",
    )


class RiderSummaryModel(BaseModel):
    """Descriptive profile of one rider category."""

    member_casual: labeled(RiderCategory) = step_field(
        unique=True, required_in_steps="all"
    )
    ride_count: int = step_field(ge=1, required_in_steps="all")
    ride_share: float = step_field(gt=0, le=1, required_in_steps="all")
    mean_ride_duration: float = step_field(ge=MIN_RIDE_MINUTES, lt=MAX_RIDE_MINUTES)
    median_ride_duration: float = step_field(ge=MIN_RIDE_MINUTES, lt=MAX_RIDE_MINUTES)
    min_ride_duration: float = step_field(ge=MIN_RIDE_MINUTES, lt=MAX_RIDE_MINUTES)
    max_ride_duration: float = step_field(ge=MIN_RIDE_MINUTES, lt=MAX_RIDE_MINUTES)
    common_hour_of_day: int = step_field(ge=0, le=23)
    common_week_day: labeled(Weekday)
    common_month: labeled(Month)
