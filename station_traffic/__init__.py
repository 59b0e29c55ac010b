"""
Bike-share station traffic map.

Aggregates station arrivals and departures from a trip log, filters them
by time of day and renders the result as a reactive map overlay.
"""

__version__ = "1.0.0"
