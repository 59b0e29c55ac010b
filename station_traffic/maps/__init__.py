"""
Maps Component - Station traffic overlay.

This component derives the circle symbology from aggregated station
traffic, keeps the circles bound to stations by id, and renders them
with Folium inside a Streamlit page.
"""

from .binding import BindingDiff, CircleElement, StationLayerBinding, reconcile
from .controller import ControllerState, StationTrafficController
from .map_config import StationMapConfig, get_map_config
from .map_renderer import StationMapRenderer
from .maps_page import render_station_traffic_page
from .projection import WebMercatorProjection
from .signals import Signal
from .symbology import FlowColorScheme, QuantizeScale, ScaleDeriver, SqrtScale

__all__ = [
    'BindingDiff',
    'CircleElement',
    'StationLayerBinding',
    'reconcile',
    'ControllerState',
    'StationTrafficController',
    'StationMapConfig',
    'get_map_config',
    'StationMapRenderer',
    'render_station_traffic_page',
    'WebMercatorProjection',
    'Signal',
    'FlowColorScheme',
    'QuantizeScale',
    'ScaleDeriver',
    'SqrtScale'
]
