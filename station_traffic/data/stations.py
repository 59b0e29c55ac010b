"""
Station registry module for the station traffic map.

This module loads the bike-share station dataset and holds the immutable
station identities and positions used as the join key for trip aggregation.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Union

import geopandas as gpd
import pandas as pd
import requests

from .exceptions import DatasetLoadError

logger = logging.getLogger(__name__)

WGS84 = "EPSG:4326"


@dataclass(frozen=True)
class Station:
    """Immutable station identity and position."""
    id: str
    lon: float
    lat: float
    name: Optional[str] = None


class StationDataLoader:
    """Handles loading and validation of the station JSON dataset."""

    def __init__(self, timeout: float = 30.0):
        self.required_fields = ['short_name', 'lon', 'lat']
        self.optional_fields = ['name', 'capacity']
        self.timeout = timeout

    def load_stations(self, source: Union[str, Any]) -> pd.DataFrame:
        """
        Load station records from a path, URL or file-like object.

        Args:
            source: Local path, http(s) URL or object with a ``read`` method

        Returns:
            DataFrame with one validated row per station

        Raises:
            DatasetLoadError: If the source cannot be read or lacks required fields
        """
        label = self._describe_source(source)
        payload = self._read_payload(source, label)
        records = self._extract_records(payload, label)

        df = pd.DataFrame.from_records(records)
        missing = [field for field in self.required_fields if field not in df.columns]
        if missing and not df.empty:
            logger.error(f"Station data from {label} is missing fields: {missing}")
            raise DatasetLoadError(label, f"missing required fields {missing}")

        df = self.cleanup_invalid_stations(df)
        logger.info(f"Successfully loaded {len(df)} stations from {label}")
        return df

    def _describe_source(self, source: Union[str, Any]) -> str:
        if isinstance(source, str):
            return source
        return getattr(source, 'name', type(source).__name__)

    def _read_payload(self, source: Union[str, Any], label: str) -> Any:
        """Read and decode the raw JSON payload."""
        try:
            if hasattr(source, 'read'):
                raw = source.read()
                if isinstance(raw, bytes):
                    raw = raw.decode('utf-8')
                return json.loads(raw)

            if source.startswith(('http://', 'https://')):
                response = requests.get(source, timeout=self.timeout)
                response.raise_for_status()
                return response.json()

            with open(source, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, ValueError, requests.RequestException) as e:
            logger.error(f"Failed to load stations from {label}: {e}")
            raise DatasetLoadError(label, str(e)) from e

    def _extract_records(self, payload: Any, label: str) -> List[Dict[str, Any]]:
        """Accept either ``{"data": {"stations": [...]}}`` or a bare list."""
        if isinstance(payload, list):
            return payload

        if isinstance(payload, dict):
            stations = payload.get('data', {}).get('stations')
            if stations is None:
                stations = payload.get('stations')
            if isinstance(stations, list):
                return stations

        raise DatasetLoadError(label, "no station list found in payload")

    def cleanup_invalid_stations(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Drop stations with unusable coordinates or duplicate ids.

        Args:
            df: Raw station records

        Returns:
            Cleaned DataFrame with string ids and float coordinates
        """
        if df.empty:
            return pd.DataFrame({
                'short_name': pd.Series(dtype=object),
                'lon': pd.Series(dtype='float64'),
                'lat': pd.Series(dtype='float64')
            })

        initial_count = len(df)
        keep = [c for c in self.required_fields + self.optional_fields if c in df.columns]
        df = df[keep].copy()

        df['lon'] = pd.to_numeric(df['lon'], errors='coerce')
        df['lat'] = pd.to_numeric(df['lat'], errors='coerce')
        df = df.dropna(subset=['short_name', 'lon', 'lat'])
        df['short_name'] = df['short_name'].astype(str)

        duplicated = df['short_name'].duplicated(keep='first')
        if duplicated.any():
            logger.warning(f"Dropping {int(duplicated.sum())} stations with duplicate short_name")
            df = df[~duplicated]

        removed_count = initial_count - len(df)
        if removed_count > 0:
            logger.warning(f"Removed {removed_count} invalid stations, {len(df)} stations remaining")

        return df.reset_index(drop=True)


class StationRegistry:
    """Holds the immutable station identities and positions for a session."""

    def __init__(self, stations: pd.DataFrame):
        frame = stations.copy()
        frame['short_name'] = frame['short_name'].astype(str)
        if frame['short_name'].duplicated().any():
            raise ValueError("Station ids (short_name) must be unique")

        self._frame = gpd.GeoDataFrame(
            frame.reset_index(drop=True),
            geometry=gpd.points_from_xy(frame['lon'], frame['lat']),
            crs=WGS84
        )
        self._index = {sid: i for i, sid in enumerate(self._frame['short_name'])}

    @classmethod
    def from_source(cls, source: Union[str, Any],
                    loader: Optional[StationDataLoader] = None) -> 'StationRegistry':
        """Load a registry from a station JSON source."""
        loader = loader if loader is not None else StationDataLoader()
        return cls(loader.load_stations(source))

    @classmethod
    def from_records(cls, records: Iterable[Dict[str, Any]]) -> 'StationRegistry':
        """Build a registry from in-memory station records."""
        return cls(StationDataLoader().cleanup_invalid_stations(pd.DataFrame.from_records(list(records))))

    @property
    def frame(self) -> gpd.GeoDataFrame:
        """Station GeoDataFrame. Treat as read-only; aggregation works on copies."""
        return self._frame

    @property
    def ids(self) -> List[str]:
        return list(self._index)

    def get(self, station_id: str) -> Optional[Station]:
        position = self._index.get(str(station_id))
        if position is None:
            return None
        row = self._frame.iloc[position]
        name = row.get('name') if 'name' in self._frame.columns else None
        return Station(id=row['short_name'], lon=float(row['lon']),
                       lat=float(row['lat']), name=None if pd.isna(name) else name)

    def without(self, station_ids: Iterable[str]) -> 'StationRegistry':
        """Return a new registry with the given stations removed."""
        drop = {str(sid) for sid in station_ids}
        remaining = self._frame[~self._frame['short_name'].isin(drop)]
        return StationRegistry(pd.DataFrame(remaining.drop(columns='geometry')))

    def __contains__(self, station_id: object) -> bool:
        return str(station_id) in self._index

    def __len__(self) -> int:
        return len(self._frame)
