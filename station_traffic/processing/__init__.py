"""
Processing Component - Trip selection and station traffic aggregation.

This component filters the trip log by time of day and recomputes the
per-station traffic counts on every filter change.
"""

from .aggregation import TrafficAggregator, compute_station_traffic, departure_ratios
from .time_filter import TimeFilter, TripTimeFilter, format_time, select_trips

__all__ = [
    'TrafficAggregator',
    'compute_station_traffic',
    'departure_ratios',
    'TimeFilter',
    'TripTimeFilter',
    'format_time',
    'select_trips'
]
