"""
Data Component - Station registry and trip dataset loading.

This component loads the bike-share station list and trip log and holds
them as immutable in-memory frames for the session.
"""

from .exceptions import DatasetLoadError
from .stations import Station, StationDataLoader, StationRegistry
from .trips import TripDataLoader, TripDataset, minutes_since_midnight

__all__ = [
    'DatasetLoadError',
    'Station',
    'StationDataLoader',
    'StationRegistry',
    'TripDataLoader',
    'TripDataset',
    'minutes_since_midnight'
]
