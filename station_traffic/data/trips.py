"""
Trip dataset module for the station traffic map.

This module loads the trip log, parses timestamps into wall-clock
date-times and precomputes minute-of-day columns used by the time filter.
"""

import logging
from typing import Any, Dict, Iterable, List, Union

import pandas as pd

from .exceptions import DatasetLoadError

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ['start_station_id', 'end_station_id', 'started_at', 'ended_at']
ID_COLUMNS = ['start_station_id', 'end_station_id']
TIMESTAMP_COLUMNS = ['started_at', 'ended_at']

# Trailing UTC offset (or Z) after a clock time
UTC_OFFSET_PATTERN = r'^(.*\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?)\s*(?:Z|[+-]\d{2}:?\d{2})$'


def parse_timestamps(values: pd.Series) -> pd.Series:
    """
    Parse trip timestamps into naive wall-clock date-times.

    Each value is parsed on its own, so rows that differ in precision or
    layout (e.g. with or without fractional seconds) are all kept. UTC
    offsets are dropped and the local clock time is kept, which also
    covers logs spanning a daylight saving change. Unparsable values
    become NaT.
    """
    if pd.api.types.is_datetime64_any_dtype(values):
        if getattr(values.dt, 'tz', None) is not None:
            return values.dt.tz_localize(None)
        return values

    values = values.astype(object)
    text = values.where(values.isna(), values.astype(str))
    text = text.str.replace(UTC_OFFSET_PATTERN, r'\1', regex=True)
    parsed = pd.to_datetime(text, errors='coerce', format='ISO8601')

    # Non-ISO layouts fall back to per-value inference
    retry = parsed.isna() & text.notna()
    if retry.any():
        parsed.loc[retry] = pd.to_datetime(text[retry], errors='coerce', format='mixed')
    return parsed


def minutes_since_midnight(timestamps: pd.Series) -> pd.Series:
    """
    Convert timestamps to minutes since midnight (hour * 60 + minute).

    The date part is ignored. Missing timestamps (NaT) become NaN.
    """
    timestamps = parse_timestamps(timestamps)
    return (timestamps.dt.hour * 60 + timestamps.dt.minute).astype('float64')


def validate_trip_columns(df: pd.DataFrame) -> List[str]:
    """Return the required trip columns missing from ``df``."""
    return [column for column in REQUIRED_COLUMNS if column not in df.columns]


def prepare_trips(df: pd.DataFrame) -> pd.DataFrame:
    """
    Normalize a raw trip frame.

    Station ids become strings (missing ids stay missing), timestamps are
    parsed to wall-clock time with malformed values coerced to NaT, and ``start_minute`` /
    ``end_minute`` are added.

    Args:
        df: Raw trip records with the required columns

    Returns:
        New DataFrame ready for filtering and aggregation
    """
    trips = df.copy()

    for column in ID_COLUMNS:
        trips[column] = trips[column].where(trips[column].isna(), trips[column].astype(str))

    for column in TIMESTAMP_COLUMNS:
        trips[column] = parse_timestamps(trips[column])

    trips['start_minute'] = minutes_since_midnight(trips['started_at'])
    trips['end_minute'] = minutes_since_midnight(trips['ended_at'])

    malformed = trips['started_at'].isna() | trips['ended_at'].isna()
    if malformed.any():
        logger.warning(f"{int(malformed.sum())} trips have malformed timestamps")

    return trips


class TripDataLoader:
    """Handles loading of the trip CSV log."""

    def load_trips(self, source: Union[str, Any]) -> pd.DataFrame:
        """
        Load and parse trips from a CSV path, URL or file-like object.

        Args:
            source: Anything ``pandas.read_csv`` accepts

        Returns:
            Prepared trip DataFrame

        Raises:
            DatasetLoadError: If the CSV cannot be read, lacks required columns
                or its records cannot be parsed
        """
        label = source if isinstance(source, str) else getattr(source, 'name', type(source).__name__)

        try:
            df = pd.read_csv(source, dtype={column: str for column in ID_COLUMNS})
        except (OSError, ValueError, pd.errors.ParserError) as e:
            logger.error(f"Failed to load trips from {label}: {e}")
            raise DatasetLoadError(label, str(e)) from e

        missing = validate_trip_columns(df)
        if missing:
            logger.error(f"Trip data from {label} is missing columns: {missing}")
            raise DatasetLoadError(label, f"missing required columns {missing}")

        try:
            trips = prepare_trips(df)
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to parse trips from {label}: {e}")
            raise DatasetLoadError(label, f"unparsable trip records: {e}") from e

        logger.info(f"Successfully loaded {len(trips)} trips from {label}")
        return trips


class TripDataset:
    """Holds the parsed trip records for a session."""

    def __init__(self, trips: pd.DataFrame):
        missing = validate_trip_columns(trips)
        if missing:
            raise ValueError(f"Trip data is missing required columns: {missing}")

        if 'start_minute' in trips.columns and 'end_minute' in trips.columns:
            self._trips = trips.reset_index(drop=True)
        else:
            self._trips = prepare_trips(trips).reset_index(drop=True)

    @classmethod
    def from_source(cls, source: Union[str, Any]) -> 'TripDataset':
        """Load a dataset from a trip CSV source."""
        return cls(TripDataLoader().load_trips(source))

    @classmethod
    def from_records(cls, records: Iterable[Dict[str, Any]]) -> 'TripDataset':
        """Build a dataset from in-memory trip records."""
        df = pd.DataFrame.from_records(list(records))
        if df.empty:
            df = pd.DataFrame(columns=REQUIRED_COLUMNS)
        return cls(df)

    @property
    def frame(self) -> pd.DataFrame:
        """Trip DataFrame. Treat as read-only."""
        return self._trips

    def __len__(self) -> int:
        return len(self._trips)
