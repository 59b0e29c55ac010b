"""
Tests for station traffic aggregation.
"""

import pytest
import pandas as pd

from station_traffic.processing.aggregation import (
    TrafficAggregator, compute_station_traffic, departure_ratios
)
from station_traffic.processing.time_filter import TimeFilter, select_trips


class TestTrafficAggregator:
    """Test cases for TrafficAggregator."""

    def setup_method(self):
        """Set up test fixtures."""
        self.aggregator = TrafficAggregator()

    def _by_id(self, snapshot):
        return snapshot.set_index('short_name')

    def test_scenario_counts(self, registry, scenario_trips):
        """Test counts for the two-station scenario."""
        snapshot = self._by_id(self.aggregator.compute_station_traffic(registry.frame, scenario_trips.frame))

        assert snapshot.loc['A', ['departures', 'arrivals', 'total_traffic']].tolist() == [1, 1, 2]
        assert snapshot.loc['B', ['departures', 'arrivals', 'total_traffic']].tolist() == [1, 1, 2]

    def test_filtered_to_nothing(self, registry, scenario_trips):
        """Test filtered to nothing."""
        selected = select_trips(scenario_trips.frame, TimeFilter.at_minute(600))
        snapshot = self.aggregator.compute_station_traffic(registry.frame, selected)

        assert snapshot['total_traffic'].tolist() == [0, 0]
        assert snapshot['departure_ratio'].tolist() == [0.5, 0.5]

    def test_unknown_station_ids_are_ignored(self, three_station_registry, mixed_trips):
        """Test unknown station ids are ignored."""
        snapshot = self.aggregator.compute_station_traffic(three_station_registry.frame, mixed_trips.frame)

        assert 'ZZZ' not in snapshot['short_name'].tolist()
        assert snapshot['departures'].sum() == 5
        assert snapshot['arrivals'].sum() == 6

    def test_counts_never_exceed_trip_count(self, three_station_registry, mixed_trips):
        """Test counts never exceed trip count."""
        trips = mixed_trips.frame
        for minute in (None, 0, 480, 720, 1080):
            tf = TimeFilter.unfiltered() if minute is None else TimeFilter.at_minute(minute)
            selected = select_trips(trips, tf)
            snapshot = self.aggregator.compute_station_traffic(three_station_registry.frame, selected)

            assert snapshot['departures'].sum() <= len(selected)
            assert snapshot['arrivals'].sum() <= len(selected)
            assert (snapshot['total_traffic'] == snapshot['departures'] + snapshot['arrivals']).all()
            assert (snapshot[['departures', 'arrivals', 'total_traffic']] >= 0).all().all()

    def test_every_station_appears_once(self, three_station_registry, scenario_trips):
        """Test every station appears once."""
        snapshot = self.aggregator.compute_station_traffic(three_station_registry.frame, scenario_trips.frame)

        assert snapshot['short_name'].tolist() == ['A', 'B', 'C']
        assert self._by_id(snapshot).loc['C', 'total_traffic'] == 0

    def test_recomputation_is_idempotent(self, three_station_registry, mixed_trips):
        """Test recomputation is idempotent."""
        first = self.aggregator.compute_station_traffic(three_station_registry.frame, mixed_trips.frame)
        second = self.aggregator.compute_station_traffic(three_station_registry.frame, mixed_trips.frame)

        pd.testing.assert_frame_equal(pd.DataFrame(first.drop(columns='geometry')),
                                      pd.DataFrame(second.drop(columns='geometry')))

    def test_stations_are_not_mutated(self, registry, scenario_trips):
        """Test that the registry frame is not mutated."""
        before = list(registry.frame.columns)
        self.aggregator.compute_station_traffic(registry.frame, scenario_trips.frame)

        assert list(registry.frame.columns) == before
        assert 'total_traffic' not in registry.frame.columns

    def test_duplicate_trips_are_counted(self, registry, scenario_trip_records):
        """Test duplicate trips are counted."""
        trips = pd.DataFrame(scenario_trip_records + scenario_trip_records[:1])
        snapshot = self._by_id(self.aggregator.compute_station_traffic(registry.frame, trips))

        assert snapshot.loc['A', 'departures'] == 2
        assert snapshot.loc['B', 'arrivals'] == 2

    def test_trip_order_does_not_matter(self, three_station_registry, mixed_trips):
        """Test trip order does not matter."""
        trips = mixed_trips.frame
        forward = self.aggregator.compute_station_traffic(three_station_registry.frame, trips)
        backward = self.aggregator.compute_station_traffic(three_station_registry.frame, trips.iloc[::-1])

        assert forward['total_traffic'].tolist() == backward['total_traffic'].tolist()

    def test_empty_trips(self, registry):
        """Test empty trips."""
        trips = pd.DataFrame(columns=['start_station_id', 'end_station_id', 'started_at', 'ended_at'])
        snapshot = self.aggregator.compute_station_traffic(registry.frame, trips)

        assert snapshot['total_traffic'].tolist() == [0, 0]
        assert snapshot['total_traffic'].dtype == 'int64'

    def test_departure_ratio(self, three_station_registry, mixed_trips):
        """Test the departure ratio of a busy station."""
        snapshot = self._by_id(
            self.aggregator.compute_station_traffic(three_station_registry.frame, mixed_trips.frame)
        )
        # A: 2 departures, 3 arrivals
        assert snapshot.loc['A', 'departure_ratio'] == pytest.approx(0.4)

    def test_summarize(self, three_station_registry, mixed_trips):
        """Test summary statistics for a snapshot."""
        snapshot = self.aggregator.compute_station_traffic(three_station_registry.frame, mixed_trips.frame)
        summary = self.aggregator.summarize(snapshot)

        assert summary['stations'] == 3
        assert summary['active_stations'] == 3
        assert summary['total_departures'] == 5
        assert summary['max_traffic'] == 5
        assert summary['busiest_station'] == 'A'

    def test_summarize_without_traffic(self, registry):
        """Test summarize without traffic."""
        trips = pd.DataFrame(columns=['start_station_id', 'end_station_id'])
        summary = self.aggregator.summarize(self.aggregator.compute_station_traffic(registry.frame, trips))

        assert summary['active_stations'] == 0
        assert summary['busiest_station'] is None


class TestModuleHelpers:
    """Test cases for module-level helpers."""

    def test_departure_ratios_balanced_for_zero_traffic(self):
        """Test departure ratios balanced for zero traffic."""
        ratios = departure_ratios(pd.Series([0, 3, 1]), pd.Series([0, 3, 4]))
        assert ratios.tolist() == [0.5, 1.0, 0.25]

    def test_compute_station_traffic_wrapper(self, registry, scenario_trips):
        """Test compute station traffic wrapper."""
        snapshot = compute_station_traffic(registry.frame, scenario_trips.frame)
        assert snapshot['total_traffic'].tolist() == [2, 2]
