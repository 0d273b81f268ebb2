"""Configuration for the trip cleaning step."""

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from tripdata_canon.models.trips import MAX_RIDE_MINUTES, MIN_RIDE_MINUTES


class CleaningConfig(BaseModel):
    """Configuration for clean_trips.

    Attributes:
        min_ride_minutes: Rides shorter than this are false starts or
            re-docks and are dropped. Negative durations fall here too.
        max_ride_minutes: Rides at or above this are treated as failed
            returns and are dropped.
        invalid_rows: What to do with rows whose timestamps cannot be
            parsed or whose rider category is unknown. "raise" aborts the
            run, "drop" removes them and counts them in the audit.
        datetime_format: strftime format of the timestamp strings.
    """

    min_ride_minutes: float = Field(default=MIN_RIDE_MINUTES, ge=0)
    max_ride_minutes: float = Field(default=MAX_RIDE_MINUTES, gt=0)
    invalid_rows: Literal["raise", "drop"] = Field(default="raise")
    datetime_format: str = Field(default="%Y-%m-%d %H:%M:%S")

    @model_validator(mode="after")
    def validate_bounds(self) -> "CleaningConfig":
        """Ensure the duration window is not empty."""
        if self.min_ride_minutes >= self.max_ride_minutes:
            msg = (
                f"min_ride_minutes ({self.min_ride_minutes}) must be below "
                f"max_ride_minutes ({self.max_ride_minutes})"
            )
            raise ValueError(msg)
        return self
