"""
Pytest configuration and fixtures for station traffic tests.
"""

import json

import pytest
import pandas as pd
from datetime import datetime

from station_traffic.data.stations import StationRegistry
from station_traffic.data.trips import TripDataset
from station_traffic.maps.projection import WebMercatorProjection


@pytest.fixture
def station_records():
    """Three stations around Cambridge/Boston."""
    return [
        {'short_name': 'A', 'name': 'Kendall T', 'lon': -71.0862, 'lat': 42.3625},
        {'short_name': 'B', 'name': 'Central Square', 'lon': -71.1031, 'lat': 42.3655},
        {'short_name': 'C', 'name': 'MIT Stata', 'lon': -71.0907, 'lat': 42.3616},
    ]


@pytest.fixture
def two_station_records(station_records):
    return station_records[:2]


@pytest.fixture
def scenario_trip_records():
    """A→B at 08:00-08:10 and B→A at 08:05-08:20."""
    return [
        {
            'start_station_id': 'A',
            'end_station_id': 'B',
            'started_at': datetime(2024, 3, 1, 8, 0),
            'ended_at': datetime(2024, 3, 1, 8, 10)
        },
        {
            'start_station_id': 'B',
            'end_station_id': 'A',
            'started_at': datetime(2024, 3, 1, 8, 5),
            'ended_at': datetime(2024, 3, 1, 8, 20)
        },
    ]


@pytest.fixture
def registry(two_station_records):
    return StationRegistry.from_records(two_station_records)


@pytest.fixture
def three_station_registry(station_records):
    return StationRegistry.from_records(station_records)


@pytest.fixture
def scenario_trips(scenario_trip_records):
    return TripDataset.from_records(scenario_trip_records)


@pytest.fixture
def mixed_trips():
    """Trips spread over the day, including an unknown station and a malformed timestamp."""
    return TripDataset(pd.DataFrame({
        'start_station_id': ['A', 'A', 'B', 'C', 'ZZZ', 'B'],
        'end_station_id': ['B', 'C', 'A', 'A', 'A', 'C'],
        'started_at': ['2024-03-01 07:30:00', '2024-03-02 12:00:00', '2024-03-03 23:50:00',
                       '2024-03-01 17:45:00', '2024-03-01 08:15:00', 'not a time'],
        'ended_at': ['2024-03-01 07:50:00', '2024-03-02 12:30:00', '2024-03-04 00:05:00',
                     '2024-03-01 18:05:00', '2024-03-01 08:40:00', '2024-03-01 09:00:00'],
    }))


@pytest.fixture
def projection():
    return WebMercatorProjection(center=(42.36027, -71.09415), zoom=12, width=1000, height=600)


@pytest.fixture
def stations_json_file(tmp_path, station_records):
    """Station file in the nested ``data.stations`` layout."""
    path = tmp_path / 'stations.json'
    path.write_text(json.dumps({'last_updated': 0, 'data': {'stations': station_records}}))
    return str(path)


@pytest.fixture
def trips_csv_file(tmp_path):
    path = tmp_path / 'trips.csv'
    path.write_text(
        "ride_id,start_station_id,end_station_id,started_at,ended_at\n"
        "r1,A,B,2024-03-01 08:00:00,2024-03-01 08:10:00\n"
        "r2,B,A,2024-03-01 08:05:00,2024-03-01 08:20:00\n"
        "r3,001,C,2024-03-01 17:00:00,2024-03-01 17:30:00\n"
    )
    return str(path)


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
