# cheer_balance_engine/balance_engine/processing/stability_analyzer.py
import logging
import numpy as np
from typing import Optional
from ..common.enums import BalanceStatus
from ..common.geometry import Vector3
from ..common.models import StabilityResult, SupportPolygon

logger = logging.getLogger(__name__)

DEFAULT_WARNING_MARGIN = 10.0

FEEDBACK_MESSAGES = {
    BalanceStatus.GOOD: "Good Balance",
    BalanceStatus.NEAR_EDGE: "Caution: Near Edge",
    BalanceStatus.UNSTABLE: "Shift Weight Back",
    BalanceStatus.UNKNOWN: "Waiting for feet",
}

def point_in_polygon(point: np.ndarray, vertices: np.ndarray) -> bool:
    """Even-odd ray casting test on the ground plane."""
    px, py = point
    inside = False
    j = len(vertices) - 1
    for i in range(len(vertices)):
        xi, yi = vertices[i]
        xj, yj = vertices[j]
        # Horizontal edges never satisfy the first clause, so no division by zero
        if (yi > py) != (yj > py) and px < (xj - xi) * (py - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside

def distance_to_edges(point: np.ndarray, vertices: np.ndarray) -> np.ndarray:
    """Distance from point to each closed-polygon edge, treated as a segment."""
    starts = vertices
    ends = np.roll(vertices, -1, axis=0)
    edge = ends - starts
    length_sq = np.einsum('ij,ij->i', edge, edge)
    along = np.einsum('ij,ij->i', point - starts, edge)

    t = np.divide(along, length_sq, out=np.zeros_like(along), where=length_sq > 0)
    t = np.clip(t, 0.0, 1.0)

    closest = starts + edge * t[:, None]
    return np.hypot(*(point - closest).T)

def analyze_stability(com: Vector3, polygon: Optional[SupportPolygon]) -> StabilityResult:
    """Margin of stability of the COM's ground projection against the base of support."""
    if polygon is None:
        return StabilityResult(margin=0.0, is_stable=False)

    point = com.ground()
    if not np.isfinite(point).all():
        logger.warning("Non-finite COM %s, reporting zero margin", point)
        return StabilityResult(margin=0.0, is_stable=False)

    is_inside = point_in_polygon(point, polygon.points)
    margin = float(distance_to_edges(point, polygon.points).min())
    return StabilityResult(margin=margin, is_stable=is_inside)

def classify_balance(result: Optional[StabilityResult], warning_margin: float = DEFAULT_WARNING_MARGIN) -> BalanceStatus:
    """Threshold policy used by the presentation layer."""
    if result is None:
        return BalanceStatus.UNKNOWN
    if not result.is_stable:
        return BalanceStatus.UNSTABLE
    if result.margin < warning_margin:
        return BalanceStatus.NEAR_EDGE
    return BalanceStatus.GOOD
