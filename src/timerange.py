# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""The module for checking the upgrade maintenance window."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field, ValidationError, model_validator


class InvalidTimeRangeError(Exception):
    """Represents an invalid maintenance window."""


class Range(BaseModel):
    """Hours of the day during which Helm upgrades may roll the controller.

    Attributes:
        start: Hour to allow upgrades from in UTC time, in 24 hour format.
        end: Hour to allow upgrades until in UTC time, in 24 hour format.
    """

    start: int = Field(..., ge=0, lt=24)
    end: int = Field(..., ge=0, lt=24)

    @model_validator(mode="after")
    def validate_range(self) -> "Range":
        """Reject empty windows.

        Returns:
            The validated range.

        Raises:
            ValueError: if start and end hours are equal.
        """
        if self.start == self.end:
            raise ValueError("Time range cannot be equal. Minimum 1 hour range is required.")
        return self

    @classmethod
    def from_str(cls, time_range: str) -> "Range":
        """Instantiate the class from string time range.

        Args:
            time_range: The time range string in H(H)-H(H) format, in UTC.

        Raises:
            InvalidTimeRangeError: if invalid time range was given.

        Returns:
            The parsed maintenance window.
        """
        try:
            (start_hour, end_hour) = (int(hour) for hour in time_range.split("-"))
        except ValueError as exc:
            raise InvalidTimeRangeError(
                f"Invalid time range {time_range}, time range must be an integer."
            ) from exc
        try:
            return cls(start=start_hour, end=end_hour)
        except ValidationError as exc:
            raise InvalidTimeRangeError(
                f"Invalid time range {time_range}, time range must be between 0-23"
            ) from exc

    def contains(self, hour: int) -> bool:
        """Check whether the hour falls within [start, end).

        Args:
            hour: The hour of the day to check.

        Returns:
            True if within bounds, False otherwise.
        """
        if self.start > self.end:
            return hour >= self.start or hour < self.end
        return self.start <= hour < self.end

    def __str__(self) -> str:
        """Format the window the way it is written in the descriptor.

        Returns:
            The H-H representation of the window.
        """
        return f"{self.start:02d}-{self.end:02d}"


def check_now_within_bound_hours(start: int, end: int) -> bool:
    """Check whether the current UTC hour is within the defined bounds.

    Args:
        start: The starting bound hour (inclusive).
        end: The ending bound hour (exclusive).

    Returns:
        True if within bounds, False otherwise.
    """
    current_hour = datetime.now(tz=timezone.utc).hour
    return Range(start=start, end=end).contains(current_hour)
