"""
Geographic projection adapter for the station overlay.

Converts lon/lat positions into screen pixels for the current map view
(Web Mercator, as used by slippy-map tiles) and announces view changes
(pan, zoom, resize) through a signal.
"""

import math
from typing import Protocol, Sequence, Tuple, Union
import logging

import numpy as np
from pyproj import Transformer

from .signals import Signal

logger = logging.getLogger(__name__)

WGS84 = "EPSG:4326"
WEB_MERCATOR = "EPSG:3857"
EARTH_RADIUS_M = 6378137.0
HALF_CIRCUMFERENCE_M = math.pi * EARTH_RADIUS_M

Coordinates = Union[Sequence[float], np.ndarray]


class ProjectionAdapter(Protocol):
    """Projection collaborator used by the render binding."""

    view_transform_changed: Signal

    def project(self, lon: float, lat: float) -> Tuple[float, float]:
        """Project one position to screen coordinates."""
        ...

    def project_many(self, lons: Coordinates, lats: Coordinates) -> Tuple[np.ndarray, np.ndarray]:
        """Project arrays of positions to screen coordinates."""
        ...


class WebMercatorProjection:
    """Web Mercator projection for a view defined by center, zoom and size."""

    def __init__(self, center: Tuple[float, float] = (42.36027, -71.09415), zoom: float = 12,
                 width: int = 1000, height: int = 600, tile_size: int = 512):
        """
        Args:
            center: (lat, lon) at the middle of the view
            zoom: Zoom level
            width: View width in pixels
            height: View height in pixels
            tile_size: Tile size in pixels at zoom 0
        """
        self._transformer = Transformer.from_crs(WGS84, WEB_MERCATOR, always_xy=True)
        self.view_transform_changed = Signal("viewTransformChanged")
        self.center = (float(center[0]), float(center[1]))
        self.zoom = float(zoom)
        self.width = int(width)
        self.height = int(height)
        self.tile_size = int(tile_size)

    @property
    def world_size(self) -> float:
        """Width of the whole world in pixels at the current zoom."""
        return self.tile_size * 2 ** self.zoom

    def _to_world_pixels(self, lons: np.ndarray, lats: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        mx, my = self._transformer.transform(lons, lats)
        mx = np.asarray(mx, dtype='float64')
        my = np.asarray(my, dtype='float64')
        scale = self.world_size / (2 * HALF_CIRCUMFERENCE_M)
        return (mx + HALF_CIRCUMFERENCE_M) * scale, (HALF_CIRCUMFERENCE_M - my) * scale

    def project_many(self, lons: Coordinates, lats: Coordinates) -> Tuple[np.ndarray, np.ndarray]:
        lons = np.asarray(lons, dtype='float64')
        lats = np.asarray(lats, dtype='float64')
        if lons.size == 0:
            return np.empty(0), np.empty(0)
        px, py = self._to_world_pixels(lons, lats)
        cx, cy = self._to_world_pixels(np.array([self.center[1]]), np.array([self.center[0]]))
        return px - cx[0] + self.width / 2, py - cy[0] + self.height / 2

    def project(self, lon: float, lat: float) -> Tuple[float, float]:
        xs, ys = self.project_many([lon], [lat])
        return float(xs[0]), float(ys[0])

    def pan_to(self, lat: float, lon: float) -> None:
        self.center = (float(lat), float(lon))
        self._changed("pan")

    def zoom_to(self, zoom: float) -> None:
        self.zoom = float(zoom)
        self._changed("zoom")

    def resize(self, width: int, height: int) -> None:
        self.width = int(width)
        self.height = int(height)
        self._changed("resize")

    def _changed(self, reason: str) -> None:
        logger.debug(f"View transform changed ({reason}): center={self.center}, zoom={self.zoom}")
        self.view_transform_changed.emit(reason)
