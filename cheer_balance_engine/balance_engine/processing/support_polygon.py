# cheer_balance_engine/balance_engine/processing/support_polygon.py
import logging
import numpy as np
from typing import Optional
from ..common.models import JointSnapshot, SupportPolygon
from ..common.skeleton import MIXAMO, SUPPORT_LANDMARKS, JointNameMap

logger = logging.getLogger(__name__)

def build_support_polygon(joint_positions: JointSnapshot, name_map: JointNameMap = MIXAMO) -> Optional[SupportPolygon]:
    """
    Base of support from the left/right ankle and toe joints.

    Vertices keep the fixed order left-foot, right-foot, right-toe, left-toe.
    This is not a convex hull and only holds for a forward-facing stance;
    rotated or crossed-leg stances can yield a self-intersecting quad.
    Returns None when any landmark is missing from the snapshot or has a
    non-finite position.
    """
    names = name_map.names(SUPPORT_LANDMARKS)
    missing = [name for name in names if name not in joint_positions or not joint_positions[name].is_finite()]
    if missing:
        logger.debug("Support polygon unavailable, missing landmarks: %s", ", ".join(missing))
        return None

    points = np.array([joint_positions[name].ground() for name in names])
    return SupportPolygon(points=points)
