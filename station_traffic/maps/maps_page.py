"""
Streamlit page for the station traffic map.

Loads the station and trip datasets once, keeps a reactive controller in
the session, and wires the time slider and map view events to it.
"""

import streamlit as st
from typing import Any, Dict, Optional, Tuple
import logging

from station_traffic.data.exceptions import DatasetLoadError
from station_traffic.data.stations import StationRegistry
from station_traffic.data.trips import TripDataset

from .controller import StationTrafficController
from .map_config import StationMapConfig, get_map_config
from .map_renderer import StationMapRenderer
from .projection import WebMercatorProjection

logger = logging.getLogger(__name__)

CONTROLLER_KEY = "station_traffic_controller"


@st.cache_resource(show_spinner="Loading stations and trips...")
def load_datasets(stations_source: str, trips_source: str) -> Tuple[StationRegistry, TripDataset]:
    """Load both datasets; any failure raises DatasetLoadError."""
    registry = StationRegistry.from_source(stations_source)
    trips = TripDataset.from_source(trips_source)
    return registry, trips


def build_controller(config: StationMapConfig) -> StationTrafficController:
    """Create a controller for the configured datasets and map view."""
    paths = config.get_default_paths()
    registry, trips = load_datasets(paths['stations'], paths['trips'])

    settings = config.get_map_settings()
    projection = WebMercatorProjection(
        center=tuple(settings['default_center']),
        zoom=settings['default_zoom'],
        width=settings['width'],
        height=settings['height'],
        tile_size=settings['tile_size']
    )
    return StationTrafficController(registry, trips, projection, config=config)


def sync_view(controller: StationTrafficController, map_data: Optional[Dict[str, Any]]) -> None:
    """Forward pan/zoom reported by the map widget to the projection."""
    if not map_data:
        return

    projection = controller.projection
    center = map_data.get('center')
    if center and 'lat' in center and 'lng' in center:
        new_center = (float(center['lat']), float(center['lng']))
        if new_center != projection.center:
            projection.pan_to(*new_center)

    zoom = map_data.get('zoom')
    if zoom is not None and float(zoom) != projection.zoom:
        projection.zoom_to(zoom)


def render_station_traffic_page() -> None:
    """Render the complete station traffic page."""
    config = get_map_config()

    st.title("🚲 Bike-share Station Traffic")
    st.markdown("Station circles are sized by trips and colored by departure/arrival balance")

    if CONTROLLER_KEY not in st.session_state:
        try:
            st.session_state[CONTROLLER_KEY] = build_controller(config)
        except DatasetLoadError as e:
            logger.error(f"Initialization aborted: {e}")
            st.error(f"❌ Could not load bike-share data: {e}")
            st.stop()

    controller: StationTrafficController = st.session_state[CONTROLLER_KEY]

    col_controls, col_map = st.columns([1, 2])

    with col_controls:
        st.subheader("🎛️ Controls")

        slider_value = st.slider(
            "Filter by time",
            min_value=-1,
            max_value=1439,
            value=controller.time_filter.slider_value,
            key="station_time_filter",
            help="-1 shows trips at any time of day"
        )

        if slider_value != controller.time_filter.slider_value:
            controller.filter_changed.emit(slider_value)

        time_filter = controller.time_filter
        if time_filter.is_active:
            st.markdown(f"### 🕐 {time_filter.label()}")
        else:
            st.markdown(f"### {time_filter.label()}")

        stats = controller.last_stats
        st.metric("Trips Shown", f"{stats.get('selected_trips', 0):,}")
        st.metric("Active Stations", f"{stats.get('active_stations', 0):,} / {stats.get('stations', 0):,}")
        busiest = controller.registry.get(stats['busiest_station']) if stats.get('busiest_station') else None
        if busiest is not None:
            st.caption(f"Busiest station: {busiest.name or busiest.id} ({stats['max_traffic']:,} trips)")

    with col_map:
        renderer = StationMapRenderer(config.get_map_settings(), config.get_bike_lane_settings())
        legend_entries = controller.color_scheme.legend_entries(controller.flow_scale.range)
        map_obj = renderer.create_station_map(
            controller.binding.elements.values(),
            legend_entries,
            time_label=controller.time_label
        )

        from streamlit_folium import st_folium
        map_data = st_folium(map_obj, width=None, height=config.get_map_settings()['height'],
                             returned_objects=["center", "zoom"])
        sync_view(controller, map_data)
