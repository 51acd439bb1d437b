# cheer_balance_engine/balance_engine/processing/segment_highlighter.py
import numpy as np
from typing import Optional, Sequence, Tuple
from ..common.geometry import Vector3
from ..common.models import JointSnapshot
from ..common.skeleton import JointNameMap

DEFAULT_EXCLUDE_PATTERNS = ("Foot", "Toe")

def find_most_unstable_segment(
    com: Vector3,
    polygon_center: np.ndarray,
    joint_positions: JointSnapshot,
    exclude_patterns: Sequence[str] = DEFAULT_EXCLUDE_PATTERNS,
) -> Optional[str]:
    """
    Name of the joint displaced furthest in the direction of imbalance.

    The instability direction is the COM's ground projection relative to the
    base of support center. Each joint not matching an exclusion pattern is
    scored by the dot product of its own offset from the center with that
    direction. Ties keep the first joint in snapshot iteration order.
    """
    center = np.asarray(polygon_center, dtype=np.float64)
    instability = com.ground() - center

    best_name: Optional[str] = None
    best_dot = -np.inf
    for name, position in joint_positions.items():
        # Feet and toes are the base, not the imbalance
        if any(pattern in name for pattern in exclude_patterns):
            continue
        dot = float(np.dot(position.ground() - center, instability))
        if dot > best_dot:
            best_dot = dot
            best_name = name
    return best_name

def highlight_segments(joint_name: Optional[str], name_map: JointNameMap) -> Tuple[str, ...]:
    """The flagged joint plus its parent limb joint, if the parent belongs to the rig."""
    if joint_name is None:
        return ()
    parent = name_map.parent_name(joint_name)
    if name_map.is_recognized(parent):
        return (joint_name, parent)
    return (joint_name,)
