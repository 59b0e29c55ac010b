"""
Map rendering module for the station traffic overlay.

This module draws the bound station circles, bike lane layers and legend
onto a Folium map for display in Streamlit.
"""

import folium
from typing import Dict, Iterable, List, Optional, Tuple, Any
import logging

from .binding import CircleElement

logger = logging.getLogger(__name__)


class MapRenderer:
    """Core map rendering using Folium."""

    def __init__(self, map_settings: Optional[Dict[str, Any]] = None):
        map_settings = map_settings or {}
        self.default_center = list(map_settings.get('default_center', [42.36027, -71.09415]))
        self.default_zoom = map_settings.get('default_zoom', 12)
        self.min_zoom = map_settings.get('min_zoom', 5)
        self.max_zoom = map_settings.get('max_zoom', 18)
        self.tiles = map_settings.get('tiles', 'OpenStreetMap')

    def create_base_map(self, center: Optional[Tuple[float, float]] = None,
                        zoom: Optional[float] = None) -> folium.Map:
        """
        Create the base map.

        Args:
            center: Optional (lat, lon) center, defaults to configured center
            zoom: Optional zoom level

        Returns:
            Folium Map object
        """
        center = list(center) if center is not None else self.default_center
        m = folium.Map(
            location=center,
            zoom_start=zoom if zoom is not None else self.default_zoom,
            min_zoom=self.min_zoom,
            max_zoom=self.max_zoom,
            tiles=self.tiles
        )

        logger.debug(f"Created base map centered at {center}")
        return m

    def add_bike_lanes(self, map_obj: folium.Map, lane_settings: Dict[str, Any]) -> folium.Map:
        """
        Add bike lane GeoJSON layers with a shared line style.

        Args:
            map_obj: Folium Map object
            lane_settings: ``bike_lanes`` configuration section

        Returns:
            Updated Folium Map object
        """
        if not lane_settings.get('enabled', True):
            return map_obj

        style = dict(lane_settings.get('style', {}))
        for name, source in lane_settings.get('sources', {}).items():
            folium.GeoJson(
                source,
                name=name,
                style_function=lambda x, style=style: style
            ).add_to(map_obj)
            logger.debug(f"Added bike lane layer {name}")

        logger.info(f"Added {len(lane_settings.get('sources', {}))} bike lane layers")
        return map_obj

    def add_station_layer(self, map_obj: folium.Map, elements: Iterable[CircleElement]) -> folium.Map:
        """
        Add one circle marker per bound station element.

        Args:
            map_obj: Folium Map object
            elements: Bound station elements

        Returns:
            Updated Folium Map object
        """
        layer = folium.FeatureGroup(name="Stations")
        count = 0
        for element in elements:
            folium.CircleMarker(
                location=[element.lat, element.lon],
                radius=element.r,
                color=element.stroke,
                weight=element.stroke_width,
                fill=True,
                fill_color=element.fill,
                fill_opacity=element.opacity,
                opacity=element.opacity,
                tooltip=element.title
            ).add_to(layer)
            count += 1

        layer.add_to(map_obj)
        logger.info(f"Added {count} station circles to map")
        return map_obj

    def add_controls(self, map_obj: folium.Map, control_config: Dict) -> folium.Map:
        """
        Add controls to map.

        Args:
            map_obj: Folium Map object
            control_config: Control configuration

        Returns:
            Updated Folium Map object
        """
        if control_config.get('layer_control', False):
            folium.LayerControl().add_to(map_obj)

        if control_config.get('fullscreen', True):
            from folium.plugins import Fullscreen
            Fullscreen().add_to(map_obj)

        return map_obj


class LegendGenerator:
    """Generates the flow legend for the station overlay."""

    def __init__(self):
        self.legend_template = """
        <div style="position: fixed;
                    bottom: 50px; left: 50px; width: 220px; height: auto;
                    background-color: white; border:2px solid grey; z-index:9999;
                    font-size:12px; padding: 10px; border-radius: 5px;
                    box-shadow: 0 2px 4px rgba(0,0,0,0.2);">
        <h4 style="margin: 0 0 10px 0; font-size: 14px; color: #333;">{title}</h4>
        {content}
        </div>
        """

    def create_legend(self, title: str, entries: List[Tuple[str, str]],
                      time_label: Optional[str] = None) -> str:
        """
        Create HTML legend for the flow buckets.

        Args:
            title: Legend title
            entries: (label, color) pairs
            time_label: Current time filter label

        Returns:
            HTML string for legend
        """
        content = ""

        if time_label:
            content += f'<div style="font-size: 11px; color: #666; margin-bottom: 8px;">Time: {time_label}</div>'

        for label, color in entries:
            content += f"""
            <div style="margin: 3px 0; display: flex; align-items: center;">
                <span style="background-color: {color}; width: 14px; height: 14px; border-radius: 50%;
                           display: inline-block; margin-right: 8px; border: 1px solid #ccc;"></span>
                <span style="font-size: 11px;">{label}</span>
            </div>
            """

        return self.legend_template.format(title=title, content=content)

    def add_legend_to_map(self, map_obj: folium.Map, legend_html: str) -> folium.Map:
        map_obj.get_root().html.add_child(folium.Element(legend_html))
        return map_obj


class StationMapRenderer:
    """Main interface for rendering the station overlay."""

    def __init__(self, map_settings: Optional[Dict[str, Any]] = None,
                 lane_settings: Optional[Dict[str, Any]] = None):
        self.renderer = MapRenderer(map_settings)
        self.legend_generator = LegendGenerator()
        self.lane_settings = lane_settings if lane_settings is not None else {'enabled': False}

    def create_station_map(self, elements: Iterable[CircleElement],
                           legend_entries: List[Tuple[str, str]],
                           time_label: Optional[str] = None,
                           control_config: Optional[Dict] = None) -> folium.Map:
        """
        Create the complete station traffic map.

        Args:
            elements: Bound station elements
            legend_entries: (label, color) pairs for the flow legend
            time_label: Current time filter label
            control_config: Optional control configuration

        Returns:
            Complete Folium Map object
        """
        if control_config is None:
            control_config = {'fullscreen': True, 'layer_control': False}

        map_obj = self.renderer.create_base_map()
        map_obj = self.renderer.add_bike_lanes(map_obj, self.lane_settings)
        map_obj = self.renderer.add_station_layer(map_obj, elements)

        legend_html = self.legend_generator.create_legend("Station traffic flow", legend_entries, time_label)
        map_obj = self.legend_generator.add_legend_to_map(map_obj, legend_html)

        return self.renderer.add_controls(map_obj, control_config)
