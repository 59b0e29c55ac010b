"""
Time-of-day filtering for the station traffic map.

This module holds the active time filter value, selects the trips that
start or end near the selected minute of the day, and formats the time
label shown next to the slider.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import pandas as pd

from station_traffic.data.trips import minutes_since_midnight

logger = logging.getLogger(__name__)

UNFILTERED_VALUE = -1
MINUTES_PER_DAY = 1440
DEFAULT_WINDOW_MINUTES = 60
ANY_TIME_LABEL = "(any time)"


def format_time(minutes: int) -> str:
    """
    Format minutes since midnight as a short 12-hour clock time.

    Matches the ``en-US`` short time style, e.g. ``"8:00 AM"`` or ``"12:05 PM"``.
    """
    minutes = int(minutes) % MINUTES_PER_DAY
    hour, minute = divmod(minutes, 60)
    suffix = "AM" if hour < 12 else "PM"
    hour_12 = hour % 12 or 12
    return f"{hour_12}:{minute:02d} {suffix}"


@dataclass(frozen=True)
class TimeFilter:
    """Either unfiltered (``minute is None``) or a minute of the day in [0, 1439]."""
    minute: Optional[int] = None

    def __post_init__(self):
        if self.minute is not None and not 0 <= self.minute < MINUTES_PER_DAY:
            raise ValueError(f"Filter minute must be in [0, {MINUTES_PER_DAY - 1}], got {self.minute}")

    @classmethod
    def unfiltered(cls) -> 'TimeFilter':
        return cls(None)

    @classmethod
    def at_minute(cls, minute: int) -> 'TimeFilter':
        return cls(int(minute))

    @classmethod
    def from_slider_value(cls, value: Any) -> 'TimeFilter':
        """
        Interpret a raw slider value.

        ``-1`` means unfiltered. Missing or malformed values are treated as
        unfiltered rather than raising.

        Args:
            value: Slider value (int, numeric string or None)

        Returns:
            TimeFilter for the value
        """
        if value is None or isinstance(value, bool):
            return cls.unfiltered()

        try:
            numeric = float(value)
        except (TypeError, ValueError):
            logger.warning(f"Malformed time filter value {value!r}, showing all trips")
            return cls.unfiltered()

        if not numeric.is_integer():
            logger.warning(f"Non-integer time filter value {value!r}, showing all trips")
            return cls.unfiltered()

        minute = int(numeric)
        if minute == UNFILTERED_VALUE:
            return cls.unfiltered()
        if not 0 <= minute < MINUTES_PER_DAY:
            logger.warning(f"Time filter value {minute} out of range, showing all trips")
            return cls.unfiltered()

        return cls(minute)

    @property
    def is_active(self) -> bool:
        return self.minute is not None

    @property
    def slider_value(self) -> int:
        return UNFILTERED_VALUE if self.minute is None else self.minute

    def label(self) -> str:
        """Time label for display."""
        return ANY_TIME_LABEL if self.minute is None else format_time(self.minute)

    def describe(self) -> str:
        return "unfiltered" if self.minute is None else f"minute {self.minute} ({format_time(self.minute)})"


class TripTimeFilter:
    """Selects trips that start or end within a window around the filter minute."""

    def __init__(self, window_minutes: int = DEFAULT_WINDOW_MINUTES):
        if window_minutes < 0:
            raise ValueError("window_minutes must be non-negative")
        self.window_minutes = window_minutes

    def select_trips(self, trips: pd.DataFrame, time_filter: TimeFilter) -> pd.DataFrame:
        """
        Select trips for the given filter.

        A trip matches ``AtMinute(m)`` when its start or end minute of the day
        is within ``window_minutes`` of ``m`` (inclusive). Times do not wrap
        around midnight. Unfiltered returns ``trips`` itself.

        Args:
            trips: Trip DataFrame (``start_minute``/``end_minute`` used when present)
            time_filter: Active filter

        Returns:
            DataFrame of selected trips
        """
        if not time_filter.is_active:
            return trips

        start_minutes = self._minutes(trips, 'start_minute', 'started_at')
        end_minutes = self._minutes(trips, 'end_minute', 'ended_at')

        m = time_filter.minute
        mask = ((start_minutes - m).abs() <= self.window_minutes) | \
               ((end_minutes - m).abs() <= self.window_minutes)

        selected = trips[mask.to_numpy()]
        logger.debug(f"Selected {len(selected)} of {len(trips)} trips for {time_filter.describe()}")
        return selected

    def _minutes(self, trips: pd.DataFrame, minute_column: str, timestamp_column: str) -> pd.Series:
        if minute_column in trips.columns:
            return trips[minute_column]
        return minutes_since_midnight(trips[timestamp_column])


def select_trips(trips: pd.DataFrame, time_filter: TimeFilter,
                 window_minutes: int = DEFAULT_WINDOW_MINUTES) -> pd.DataFrame:
    """Convenience wrapper around :class:`TripTimeFilter`."""
    return TripTimeFilter(window_minutes).select_trips(trips, time_filter)
