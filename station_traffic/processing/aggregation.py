"""
Station traffic aggregation.

Computes per-station departures, arrivals and total traffic from a trip
subset. Every pass produces a fresh snapshot; counts are never merged into
a previous result.
"""

import logging
from typing import Any, Dict

import pandas as pd

logger = logging.getLogger(__name__)

BALANCED_RATIO = 0.5


class TrafficAggregator:
    """Builds station traffic snapshots from trips."""

    def __init__(self, station_key: str = 'short_name'):
        self.station_key = station_key

    def compute_station_traffic(self, stations: pd.DataFrame, trips: pd.DataFrame) -> pd.DataFrame:
        """
        Count departures and arrivals for every station.

        Departures are keyed by ``start_station_id`` and arrivals by
        ``end_station_id``. Ids that match no station are ignored; stations
        with no trips get zero counts.

        Args:
            stations: Station frame with the station key column
            trips: Trip frame (any order, duplicates counted as given)

        Returns:
            Copy of ``stations`` with ``departures``, ``arrivals``,
            ``total_traffic`` and ``departure_ratio`` columns
        """
        departures = trips['start_station_id'].value_counts()
        arrivals = trips['end_station_id'].value_counts()

        snapshot = stations.copy()
        ids = snapshot[self.station_key].astype(str)

        snapshot['departures'] = ids.map(departures).fillna(0).astype('int64')
        snapshot['arrivals'] = ids.map(arrivals).fillna(0).astype('int64')
        snapshot['total_traffic'] = snapshot['arrivals'] + snapshot['departures']
        snapshot['departure_ratio'] = departure_ratios(snapshot['departures'], snapshot['total_traffic'])

        logger.debug(f"Aggregated {len(trips)} trips onto {len(snapshot)} stations")
        return snapshot

    def summarize(self, snapshot: pd.DataFrame) -> Dict[str, Any]:
        """
        Summary statistics for a traffic snapshot.

        Returns:
            Dictionary with station counts, totals and the busiest station
        """
        summary = {
            'stations': len(snapshot),
            'active_stations': int((snapshot['total_traffic'] > 0).sum()) if len(snapshot) else 0,
            'total_departures': int(snapshot['departures'].sum()) if len(snapshot) else 0,
            'total_arrivals': int(snapshot['arrivals'].sum()) if len(snapshot) else 0,
            'max_traffic': int(snapshot['total_traffic'].max()) if len(snapshot) else 0,
            'busiest_station': None
        }

        if summary['max_traffic'] > 0:
            busiest = snapshot.loc[snapshot['total_traffic'].idxmax()]
            summary['busiest_station'] = busiest[self.station_key]

        return summary


def departure_ratios(departures: pd.Series, totals: pd.Series) -> pd.Series:
    """Departures / total traffic, or 0.5 where a station has no traffic."""
    safe_totals = totals.where(totals > 0)
    return (departures / safe_totals).fillna(BALANCED_RATIO).astype('float64')


def compute_station_traffic(stations: pd.DataFrame, trips: pd.DataFrame) -> pd.DataFrame:
    """Convenience wrapper around :class:`TrafficAggregator`."""
    return TrafficAggregator().compute_station_traffic(stations, trips)
