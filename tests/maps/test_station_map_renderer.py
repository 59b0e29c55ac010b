"""
Tests for Folium rendering and the Streamlit page wiring.
"""

import folium
import pytest
from unittest.mock import MagicMock, Mock, patch

from station_traffic.data.exceptions import DatasetLoadError
from station_traffic.maps.binding import CircleElement
from station_traffic.maps.controller import StationTrafficController
from station_traffic.maps.map_config import StationMapConfig
from station_traffic.maps.map_renderer import LegendGenerator, MapRenderer, StationMapRenderer
from station_traffic.maps.maps_page import CONTROLLER_KEY, render_station_traffic_page, sync_view
from station_traffic.maps.symbology import FlowColorScheme


LANE_GEOJSON = {
    'type': 'FeatureCollection',
    'features': [{
        'type': 'Feature',
        'properties': {},
        'geometry': {'type': 'LineString', 'coordinates': [[-71.1, 42.36], [-71.09, 42.365]]}
    }]
}


def _children_of_type(parent, cls):
    return [child for child in parent._children.values() if isinstance(child, cls)]


@pytest.fixture
def config(tmp_path):
    config = StationMapConfig(str(tmp_path / 'station_map_config.json'))
    config.update_section('bike_lanes', {'enabled': False})
    return config


@pytest.fixture
def controller(registry, scenario_trips, projection, config):
    return StationTrafficController(registry, scenario_trips, projection, config=config)


class TestMapRenderer:
    """Test cases for MapRenderer."""

    def setup_method(self):
        """Set up test fixtures."""
        self.renderer = MapRenderer({'default_center': [42.36, -71.09], 'default_zoom': 13})

    def test_create_base_map(self):
        """Test create base map."""
        map_obj = self.renderer.create_base_map()

        assert isinstance(map_obj, folium.Map)
        assert map_obj.location == [42.36, -71.09]

    def test_station_layer(self):
        """Test adding station circles to the map."""
        elements = [
            CircleElement(key='A', lon=-71.08, lat=42.36, r=10, fill='#4682b4', title="3 trips"),
            CircleElement(key='B', lon=-71.10, lat=42.37, r=0, fill='#ff8c00', title="0 trips"),
        ]
        map_obj = self.renderer.add_station_layer(self.renderer.create_base_map(), elements)

        layer = _children_of_type(map_obj, folium.FeatureGroup)[0]
        markers = _children_of_type(layer, folium.CircleMarker)
        assert layer.layer_name == "Stations"
        assert len(markers) == 2
        assert markers[0].location == [42.36, -71.08]

    def test_bike_lanes_inline_geojson(self):
        """Test bike lane layers from inline GeoJSON."""
        style = {'color': '#0B8A00', 'weight': 3, 'opacity': 0.6}
        lanes = {'enabled': True, 'style': style, 'sources': {'Test lanes': LANE_GEOJSON}}

        map_obj = self.renderer.add_bike_lanes(self.renderer.create_base_map(), lanes)

        layers = _children_of_type(map_obj, folium.GeoJson)
        assert len(layers) == 1
        assert layers[0].style_function(LANE_GEOJSON['features'][0]) == style

    def test_bike_lanes_disabled(self):
        """Test bike lanes disabled."""
        map_obj = self.renderer.add_bike_lanes(self.renderer.create_base_map(), {'enabled': False})
        assert _children_of_type(map_obj, folium.GeoJson) == []


class TestLegendGenerator:
    """Test cases for LegendGenerator."""

    def test_legend_content(self):
        """Test legend content."""
        entries = FlowColorScheme().legend_entries()
        html = LegendGenerator().create_legend("Station traffic flow", entries, "8:00 AM")

        assert "Station traffic flow" in html
        assert "Time: 8:00 AM" in html
        assert "More departures" in html
        assert "#4682b4" in html


class TestStationMapRenderer:
    """Test cases for StationMapRenderer."""

    def test_create_station_map(self, controller):
        """Test create station map."""
        renderer = StationMapRenderer()
        map_obj = renderer.create_station_map(
            controller.binding.elements.values(),
            controller.color_scheme.legend_entries(),
            time_label=controller.time_label
        )

        html = map_obj.get_root().render()
        assert "Station traffic flow" in html
        assert "(any time)" in html
        assert "2 trips (1 departures, 1 arrivals)" in html


class TestSyncView:
    """Test cases for sync_view."""

    def test_pan_and_zoom_are_forwarded(self, controller, projection):
        """Test pan and zoom are forwarded."""
        handler = Mock()
        projection.view_transform_changed.connect(handler)

        sync_view(controller, {'center': {'lat': 42.37, 'lng': -71.08}, 'zoom': 13})

        assert projection.center == (42.37, -71.08)
        assert projection.zoom == 13.0
        assert handler.call_count == 2

    def test_unchanged_view_is_ignored(self, controller, projection):
        """Test unchanged view is ignored."""
        handler = Mock()
        projection.view_transform_changed.connect(handler)

        sync_view(controller, {'center': {'lat': projection.center[0], 'lng': projection.center[1]},
                               'zoom': projection.zoom})
        sync_view(controller, None)

        handler.assert_not_called()


class StopRendering(Exception):
    pass


class TestStationTrafficPage:
    """Test cases for render_station_traffic_page."""

    def _mock_streamlit(self, session_state, slider_value=-1):
        mock_st = MagicMock()
        mock_st.session_state = session_state
        mock_st.columns.return_value = [MagicMock(), MagicMock()]
        mock_st.slider.return_value = slider_value
        mock_st.stop.side_effect = StopRendering
        return mock_st

    def test_load_failure_stops_page(self, config):
        """Test load failure stops page."""
        mock_st = self._mock_streamlit({})
        error = DatasetLoadError('stations.json', 'not found')

        with patch('station_traffic.maps.maps_page.st', mock_st), \
             patch('station_traffic.maps.maps_page.get_map_config', return_value=config), \
             patch('station_traffic.maps.maps_page.build_controller', side_effect=error):
            with pytest.raises(StopRendering):
                render_station_traffic_page()

        mock_st.error.assert_called_once()
        assert "not found" in mock_st.error.call_args[0][0]
        mock_st.slider.assert_not_called()

    def test_slider_change_and_view_sync(self, config, controller, projection):
        """Test slider change and view sync."""
        mock_st = self._mock_streamlit({CONTROLLER_KEY: controller}, slider_value=480)
        map_data = {'center': {'lat': 42.37, 'lng': -71.08}, 'zoom': 13}

        with patch('station_traffic.maps.maps_page.st', mock_st), \
             patch('station_traffic.maps.maps_page.get_map_config', return_value=config), \
             patch('streamlit_folium.st_folium', return_value=map_data) as mock_folium:
            render_station_traffic_page()

        assert controller.time_filter.minute == 480
        assert controller.pass_count == 2
        assert isinstance(mock_folium.call_args[0][0], folium.Map)
        mock_st.caption.assert_called_once_with("Busiest station: Kendall T (2 trips)")
        assert projection.zoom == 13.0

    def test_unchanged_slider_does_not_recompute(self, config, controller):
        """Test unchanged slider does not recompute."""
        mock_st = self._mock_streamlit({CONTROLLER_KEY: controller}, slider_value=-1)

        with patch('station_traffic.maps.maps_page.st', mock_st), \
             patch('station_traffic.maps.maps_page.get_map_config', return_value=config), \
             patch('streamlit_folium.st_folium', return_value=None):
            render_station_traffic_page()

        assert controller.pass_count == 1
