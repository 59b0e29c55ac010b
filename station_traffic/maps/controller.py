"""
Reactive controller for the station traffic overlay.

On every filter change the controller re-selects trips, re-aggregates
station traffic, re-derives the radius scale and rebinds the station
circles. View changes (pan, zoom, resize) only re-derive positions.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional, Union

import pandas as pd

from station_traffic.data.stations import StationRegistry
from station_traffic.data.trips import TripDataset
from station_traffic.processing.aggregation import TrafficAggregator
from station_traffic.processing.time_filter import TimeFilter, TripTimeFilter

from .binding import BindingDiff, StationLayerBinding
from .map_config import StationMapConfig
from .projection import ProjectionAdapter
from .signals import Signal
from .symbology import FlowColorScheme, ScaleDeriver, SqrtScale

logger = logging.getLogger(__name__)


class ControllerState(Enum):
    IDLE = "idle"
    RECOMPUTING = "recomputing"


class StationTrafficController:
    """Orchestrates filter → trips → traffic → scales → render binding."""

    def __init__(self, registry: StationRegistry, trips: TripDataset,
                 projection: ProjectionAdapter,
                 config: Optional[StationMapConfig] = None,
                 binding: Optional[StationLayerBinding] = None,
                 aggregator: Optional[TrafficAggregator] = None):
        """
        Args:
            registry: Station identities and positions
            trips: Parsed trip dataset
            projection: Projection adapter; its view signal is subscribed to
            config: Map configuration, defaults are used when omitted
            binding: Render binding, created from the configuration when omitted
            aggregator: Traffic aggregator
        """
        self.config = config if config is not None else StationMapConfig()
        symbology = self.config.get_symbology_config()

        self.registry = registry
        self.trips = trips
        self.projection = projection
        self.aggregator = aggregator if aggregator is not None else TrafficAggregator()
        self.trip_filter = TripTimeFilter(self.config.get_window_minutes())
        self.scale_deriver = ScaleDeriver(
            unfiltered_range=self.config.get_radius_range(False),
            filtered_range=self.config.get_radius_range(True),
            flow_buckets=symbology['flow_buckets']
        )
        self.color_scheme = FlowColorScheme(symbology['departures_color'], symbology['arrivals_color'])
        self.binding = binding if binding is not None else StationLayerBinding(
            color_scheme=self.color_scheme, circle_style=symbology['circle'])

        self.state = ControllerState.IDLE
        self.time_filter = TimeFilter.unfiltered()
        self.snapshot: Optional[pd.DataFrame] = None
        self.radius_scale: Optional[SqrtScale] = None
        self.last_diff: Optional[BindingDiff] = None
        self.last_stats: Dict[str, Any] = {}
        self.pass_count = 0
        self._pending_filter: Optional[TimeFilter] = None

        self.filter_changed = Signal("filterChanged")
        self.filter_changed.connect(self.set_filter)
        self.projection.view_transform_changed.connect(self.on_view_transform_changed)

        self.refresh()

    @property
    def flow_scale(self):
        return self.scale_deriver.flow_scale

    @property
    def time_label(self) -> str:
        return self.time_filter.label()

    def set_filter(self, value: Union[TimeFilter, Any]) -> TimeFilter:
        """
        Apply a new time filter and recompute the view.

        Args:
            value: TimeFilter or raw slider value (-1 or malformed means unfiltered)

        Returns:
            The filter now in effect
        """
        time_filter = value if isinstance(value, TimeFilter) else TimeFilter.from_slider_value(value)

        if self.state is ControllerState.RECOMPUTING:
            # Superseded by the latest value once the running pass finishes
            self._pending_filter = time_filter
            return time_filter

        self.state = ControllerState.RECOMPUTING
        try:
            self._recompute(time_filter)
            while self._pending_filter is not None:
                time_filter, self._pending_filter = self._pending_filter, None
                self._recompute(time_filter)
        finally:
            self._pending_filter = None
            self.state = ControllerState.IDLE

        return self.time_filter

    def refresh(self) -> None:
        """Recompute for the current filter."""
        self.set_filter(self.time_filter)

    def set_stations(self, registry: StationRegistry) -> None:
        """Swap the station registry and rebind for the current filter."""
        removed = [sid for sid in self.registry.ids if sid not in registry]
        logger.info(f"Station registry replaced: {len(registry)} stations, {len(removed)} removed")
        self.registry = registry
        self.refresh()

    def on_view_transform_changed(self, *args: Any) -> None:
        """Re-derive circle positions after the projection changed."""
        self.binding.reposition(self.projection)

    def _recompute(self, time_filter: TimeFilter) -> None:
        all_trips = self.trips.frame

        selected = self.trip_filter.select_trips(all_trips, time_filter)
        snapshot = self.aggregator.compute_station_traffic(self.registry.frame, selected)
        radius_scale = self.scale_deriver.derive_radius_scale(snapshot, time_filter.is_active)
        diff = self.binding.bind(snapshot, radius_scale, self.flow_scale, self.projection)

        # Only a completed pass changes the visible state
        self.time_filter = time_filter
        self.snapshot = snapshot
        self.radius_scale = radius_scale
        self.last_diff = diff
        self.pass_count += 1

        self.last_stats = {
            'filter': time_filter.describe(),
            'total_trips': len(all_trips),
            'selected_trips': len(selected),
            'stations_bound': len(self.binding),
            **self.aggregator.summarize(snapshot)
        }

        logger.info(f"Filter progression ({time_filter.describe()}): {len(all_trips)} trips → "
                    f"{len(selected)} selected → {len(self.binding)} stations bound "
                    f"(+{len(diff.created)} / -{len(diff.removed)})")
