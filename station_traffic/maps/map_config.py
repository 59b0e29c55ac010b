"""
Configuration management for the station traffic map.

This module provides defaults for the traffic window, radius and flow
symbology, map display settings and dataset locations, optionally
overridden from a JSON file.
"""

import copy
import json
import os
from typing import Dict, Any, Optional
from pathlib import Path
import logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "station_map_config.json"


class StationMapConfig:
    """Manages station map configuration settings."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        self.default_config = self._get_default_config()
        self.config = self._load_config()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default station map configuration."""
        return {
            "traffic": {
                "window_minutes": 60
            },
            "symbology": {
                "radius_range_unfiltered": [0, 25],
                "radius_range_filtered": [3, 50],
                "flow_buckets": [0, 0.5, 1],
                "departures_color": "steelblue",
                "arrivals_color": "darkorange",
                "circle": {
                    "stroke": "white",
                    "stroke_width": 1,
                    "opacity": 0.8
                }
            },
            "map_settings": {
                "default_center": [42.36027, -71.09415],
                "default_zoom": 12,
                "min_zoom": 5,
                "max_zoom": 18,
                "tiles": "OpenStreetMap",
                "width": 1000,
                "height": 600,
                "tile_size": 512
            },
            "bike_lanes": {
                "enabled": True,
                "style": {
                    "color": "#0B8A00",
                    "weight": 3,
                    "opacity": 0.6
                },
                "sources": {
                    "Boston bike lanes": "https://bostonopendata-boston.opendata.arcgis.com/datasets/boston::existing-bike-network-2022.geojson",
                    "Cambridge bike lanes": "https://raw.githubusercontent.com/cambridgegis/cambridgegis_data/main/Recreation/Bike_Facilities/RECREATION_BikeFacilities.geojson"
                }
            },
            "default_paths": {
                "stations": "https://dsc106.com/labs/lab07/data/bluebikes-stations.json",
                "trips": "https://dsc106.com/labs/lab07/data/bluebikes-traffic-2024-03.csv"
            }
        }

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from file or use defaults."""
        if os.path.exists(self.config_path):
            try:
                with open(self.config_path, 'r') as f:
                    config = json.load(f)
                logger.info(f"Loaded map configuration from {self.config_path}")

                # Merge with defaults to ensure all keys exist
                return self._merge_configs(self.default_config, config)
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load config from {self.config_path}: {e}")
                logger.info("Using default configuration")
                return copy.deepcopy(self.default_config)
        else:
            logger.info(f"Config file {self.config_path} not found, using defaults")
            return copy.deepcopy(self.default_config)

    def _merge_configs(self, default: Dict, user: Dict) -> Dict:
        """Recursively merge user config with defaults."""
        merged = copy.deepcopy(default)

        for key, value in user.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = self._merge_configs(merged[key], value)
            else:
                merged[key] = value

        return merged

    def save_config(self) -> None:
        """Save current configuration to file."""
        try:
            config_dir = Path(self.config_path).parent
            config_dir.mkdir(parents=True, exist_ok=True)

            with open(self.config_path, 'w') as f:
                json.dump(self.config, f, indent=2)
            logger.info(f"Saved map configuration to {self.config_path}")
        except OSError as e:
            logger.error(f"Failed to save config to {self.config_path}: {e}")

    def get_window_minutes(self) -> int:
        return int(self.config["traffic"]["window_minutes"])

    def get_symbology_config(self) -> Dict[str, Any]:
        return self.config["symbology"]

    def get_radius_range(self, filter_active: bool) -> tuple:
        """Radius range for the current filter state."""
        key = "radius_range_filtered" if filter_active else "radius_range_unfiltered"
        low, high = self.config["symbology"][key]
        return (float(low), float(high))

    def get_map_settings(self) -> Dict[str, Any]:
        return self.config["map_settings"]

    def get_bike_lane_settings(self) -> Dict[str, Any]:
        return self.config["bike_lanes"]

    def get_default_paths(self) -> Dict[str, str]:
        return self.config["default_paths"]

    def update_section(self, section: str, updates: Dict[str, Any]) -> None:
        """Update one configuration section."""
        if section not in self.config:
            raise KeyError(f"Unknown configuration section: {section}")

        self.config[section] = self._merge_configs(self.config[section], updates)
        logger.info(f"Updated {section} configuration")

    def reset_to_defaults(self) -> None:
        """Reset configuration to defaults."""
        self.config = copy.deepcopy(self.default_config)
        logger.info("Reset configuration to defaults")


# Global configuration instance
_map_config = None


def get_map_config(config_path: Optional[str] = None) -> StationMapConfig:
    """Get global map configuration instance."""
    global _map_config
    if _map_config is None:
        _map_config = StationMapConfig(config_path)
    return _map_config
