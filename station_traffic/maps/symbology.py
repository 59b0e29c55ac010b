"""
Symbology module for the station traffic map.

This module derives the circle radius scale from aggregated station
traffic, quantizes the departure ratio into flow buckets and mixes the
departure/arrival colors used to fill each station circle.
"""

import numpy as np
import pandas as pd
from typing import List, Optional, Sequence, Tuple, Union
import matplotlib.colors as mcolors
import logging

logger = logging.getLogger(__name__)

Number = Union[int, float]
ArrayLike = Union[Number, Sequence[Number], np.ndarray, pd.Series]

UNFILTERED_RADIUS_RANGE = (0.0, 25.0)
FILTERED_RADIUS_RANGE = (3.0, 50.0)
FLOW_BUCKETS = (0.0, 0.5, 1.0)


class SqrtScale:
    """Square-root scale: output radius grows with the square root of the input."""

    def __init__(self, domain: Tuple[Number, Number] = (0, 1),
                 range_: Tuple[Number, Number] = (0, 1)):
        if len(domain) != 2 or len(range_) != 2:
            raise ValueError("Domain and range must each have two values")
        self.domain = (float(domain[0]), float(domain[1]))
        self.range = (float(range_[0]), float(range_[1]))

    @staticmethod
    def _transform(values: np.ndarray) -> np.ndarray:
        return np.sign(values) * np.sqrt(np.abs(values))

    def __call__(self, value: ArrayLike):
        values = np.asarray(value, dtype='float64')
        d0, d1 = self._transform(np.array(self.domain))
        r0, r1 = self.range

        span = d1 - d0
        if span == 0:
            # Degenerate domain maps everything to the range minimum
            result = np.full_like(values, r0, dtype='float64')
        else:
            t = (self._transform(values) - d0) / span
            result = r0 + t * (r1 - r0)

        if np.ndim(result) == 0:
            return float(result)
        if isinstance(value, pd.Series):
            return pd.Series(result, index=value.index)
        return result

    def __repr__(self) -> str:
        return f"SqrtScale(domain={self.domain}, range={self.range})"


class QuantizeScale:
    """Maps a continuous domain onto discrete buckets of equal width."""

    def __init__(self, domain: Tuple[Number, Number] = (0, 1),
                 range_: Sequence[Number] = FLOW_BUCKETS):
        if len(range_) < 1:
            raise ValueError("Quantize range must not be empty")
        self.domain = (float(domain[0]), float(domain[1]))
        self.range = tuple(float(v) for v in range_)

        n = len(self.range)
        low, high = self.domain
        self.thresholds = [low + (high - low) * (i + 1) / n for i in range(n - 1)]

    def __call__(self, value: ArrayLike):
        values = np.asarray(value, dtype='float64')
        indices = np.digitize(values, self.thresholds, right=False)
        result = np.asarray(self.range)[indices]

        if np.ndim(result) == 0:
            return float(result)
        if isinstance(value, pd.Series):
            return pd.Series(result, index=value.index)
        return result

    def __repr__(self) -> str:
        return f"QuantizeScale(domain={self.domain}, range={self.range})"


class ScaleDeriver:
    """Derives the radius and flow scales for a traffic snapshot."""

    def __init__(self, unfiltered_range: Tuple[Number, Number] = UNFILTERED_RADIUS_RANGE,
                 filtered_range: Tuple[Number, Number] = FILTERED_RADIUS_RANGE,
                 flow_buckets: Sequence[Number] = FLOW_BUCKETS):
        self.unfiltered_range = tuple(unfiltered_range)
        self.filtered_range = tuple(filtered_range)
        self.flow_scale = QuantizeScale((0, 1), flow_buckets)

    def derive_radius_scale(self, stations: pd.DataFrame, filter_active: bool) -> SqrtScale:
        """
        Build the radius scale for a snapshot.

        Args:
            stations: Snapshot with a ``total_traffic`` column
            filter_active: Whether a minute filter is active

        Returns:
            SqrtScale over ``[0, max traffic]``
        """
        max_traffic = 0.0
        if len(stations) > 0:
            max_value = stations['total_traffic'].max()
            max_traffic = 0.0 if pd.isna(max_value) else float(max_value)

        range_ = self.filtered_range if filter_active else self.unfiltered_range
        scale = SqrtScale((0, max_traffic), range_)
        logger.debug(f"Derived radius scale {scale}")
        return scale


class FlowColorScheme:
    """Mixes departure and arrival colors by quantized departure ratio."""

    def __init__(self, departures_color: str = 'steelblue', arrivals_color: str = 'darkorange'):
        self.departures_rgb = np.array(mcolors.to_rgb(departures_color))
        self.arrivals_rgb = np.array(mcolors.to_rgb(arrivals_color))

    def color_for(self, departure_ratio: float) -> str:
        """Hex color: 1.0 is all departures color, 0.0 all arrivals color."""
        ratio = min(max(float(departure_ratio), 0.0), 1.0)
        mixed = ratio * self.departures_rgb + (1 - ratio) * self.arrivals_rgb
        return mcolors.to_hex(mixed)

    def legend_entries(self, buckets: Optional[Sequence[float]] = None) -> List[Tuple[str, str]]:
        """Legend (label, color) pairs for the flow buckets."""
        buckets = buckets or FLOW_BUCKETS
        entries = []
        for bucket in buckets:
            if bucket > 0.5:
                label = "More departures"
            elif bucket < 0.5:
                label = "More arrivals"
            else:
                label = "Balanced"
            entries.append((label, self.color_for(bucket)))
        return entries
