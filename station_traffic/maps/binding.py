"""
Keyed render binding for station circles.

Station circles are identified by station id across passes: new stations
create elements, removed stations drop theirs, and persisting stations are
updated in place so element identity survives re-renders.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd

from .projection import ProjectionAdapter
from .symbology import FlowColorScheme, QuantizeScale, SqrtScale

logger = logging.getLogger(__name__)


@dataclass
class BindingDiff:
    """Keys created, updated and removed by one reconciliation."""
    created: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.created or self.removed)


@dataclass
class CircleElement:
    """Visual attributes of one station circle."""
    key: str
    lon: float
    lat: float
    cx: float = 0.0
    cy: float = 0.0
    r: float = 0.0
    departure_ratio: float = 0.5
    fill: str = "#808080"
    title: str = ""
    stroke: str = "white"
    stroke_width: float = 1.0
    opacity: float = 0.8


def reconcile(previous: Mapping[str, Any], data: Mapping[str, Any]) -> BindingDiff:
    """
    Compare previously bound keys with new keyed data.

    Args:
        previous: Existing elements by key
        data: New data by key

    Returns:
        BindingDiff with created/updated keys in data order and removed
        keys in previous order
    """
    diff = BindingDiff()
    for key in data:
        if key in previous:
            diff.updated.append(key)
        else:
            diff.created.append(key)
    diff.removed = [key for key in previous if key not in data]
    return diff


def format_title(total: int, departures: int, arrivals: int) -> str:
    return f"{total} trips ({departures} departures, {arrivals} arrivals)"


class StationLayerBinding:
    """Keeps one CircleElement per station keyed by station id."""

    def __init__(self, key_column: str = 'short_name',
                 color_scheme: Optional[FlowColorScheme] = None,
                 circle_style: Optional[Dict[str, Any]] = None):
        self.key_column = key_column
        self.color_scheme = color_scheme if color_scheme is not None else FlowColorScheme()
        self.circle_style = circle_style or {'stroke': 'white', 'stroke_width': 1, 'opacity': 0.8}
        self.elements: Dict[str, CircleElement] = {}

    def bind(self, snapshot: pd.DataFrame, radius_scale: SqrtScale,
             flow_scale: QuantizeScale, projection: ProjectionAdapter) -> BindingDiff:
        """
        Bind a traffic snapshot to the keyed elements.

        Args:
            snapshot: Station traffic snapshot
            radius_scale: Scale from total traffic to radius
            flow_scale: Quantize scale for departure ratio
            projection: Projection for screen positions

        Returns:
            BindingDiff describing the enter/update/exit sets
        """
        keys = snapshot[self.key_column].astype(str).tolist()
        rows = dict(zip(keys, snapshot.itertuples(index=False)))
        diff = reconcile(self.elements, rows)

        for key in diff.removed:
            del self.elements[key]

        radii = radius_scale(snapshot['total_traffic'].to_numpy())
        ratios = flow_scale(snapshot['departure_ratio'].to_numpy())
        xs, ys = projection.project_many(snapshot['lon'].to_numpy(), snapshot['lat'].to_numpy())

        elements: Dict[str, CircleElement] = {}
        for i, key in enumerate(keys):
            row = rows[key]
            element = self.elements.get(key)
            if element is None:
                element = CircleElement(key=key, lon=float(row.lon), lat=float(row.lat),
                                        stroke=self.circle_style['stroke'],
                                        stroke_width=float(self.circle_style['stroke_width']),
                                        opacity=float(self.circle_style['opacity']))
            else:
                element.lon = float(row.lon)
                element.lat = float(row.lat)

            element.cx = float(xs[i])
            element.cy = float(ys[i])
            element.r = float(radii[i])
            element.departure_ratio = float(ratios[i])
            element.fill = self.color_scheme.color_for(element.departure_ratio)
            element.title = format_title(int(row.total_traffic), int(row.departures), int(row.arrivals))
            elements[key] = element

        # Rebuild in snapshot order; persisting entries keep their objects
        self.elements = elements

        logger.debug(f"Bound {len(keys)} stations: {len(diff.created)} created, "
                     f"{len(diff.updated)} updated, {len(diff.removed)} removed")
        return diff

    def reposition(self, projection: ProjectionAdapter) -> None:
        """Re-derive screen positions only; traffic and scales are unchanged."""
        if not self.elements:
            return

        elements = list(self.elements.values())
        xs, ys = projection.project_many([e.lon for e in elements], [e.lat for e in elements])
        for element, x, y in zip(elements, xs, ys):
            element.cx = float(x)
            element.cy = float(y)

    def get(self, key: str) -> Optional[CircleElement]:
        return self.elements.get(key)

    def __len__(self) -> int:
        return len(self.elements)
