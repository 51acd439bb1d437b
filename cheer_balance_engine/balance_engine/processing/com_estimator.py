# cheer_balance_engine/balance_engine/processing/com_estimator.py
import logging
import numpy as np
from typing import Sequence
from ..common.geometry import Vector3
from ..common.models import JointSnapshot, SegmentDefinition
from ..common.skeleton import MIXAMO, SEGMENT_TABLE, JointNameMap, validate_segment_table

logger = logging.getLogger(__name__)

DEFAULT_BODY_MASS_KG = 52.2

def compute_com(
    joint_positions: JointSnapshot,
    segments: Sequence[SegmentDefinition],
    body_mass: float,
    name_map: JointNameMap = MIXAMO,
) -> Vector3:
    """
    Whole-body center of mass as the mass-weighted mean of segment COMs.

    Segments whose proximal or distal joint is absent from the snapshot, or
    has a NaN or infinite coordinate, are skipped. If no mass is accumulated
    (every segment skipped, or a non-positive body mass) the origin is returned.
    """
    proximal, distal, com_fractions, masses = [], [], [], []

    for segment in segments:
        prox_name = name_map.name(segment.proximal)
        dist_name = name_map.name(segment.distal)
        prox_pos = joint_positions.get(prox_name)
        dist_pos = joint_positions.get(dist_name)
        if prox_pos is None or dist_pos is None:
            logger.warning("Missing joint: %s or %s, skipping segment '%s'", prox_name, dist_name, segment.name)
            continue
        if not (prox_pos.is_finite() and dist_pos.is_finite()):
            logger.warning("Non-finite position for %s or %s, skipping segment '%s'", prox_name, dist_name, segment.name)
            continue
        proximal.append(prox_pos.to_array())
        distal.append(dist_pos.to_array())
        com_fractions.append(segment.com_fraction)
        masses.append(body_mass * segment.mass_fraction)

    total_mass = float(np.sum(masses)) if masses else 0.0
    if total_mass <= 0:
        logger.warning("Total mass is zero, returning origin")
        return Vector3.zero()

    proximal = np.asarray(proximal)
    distal = np.asarray(distal)
    masses = np.asarray(masses)

    # COM = proximal + (distal - proximal) * fraction
    segment_coms = proximal + (distal - proximal) * np.asarray(com_fractions)[:, None]
    weighted = (segment_coms * masses[:, None]).sum(axis=0)
    return Vector3.from_array(weighted / total_mass)

class COMEstimator:
    """Center-of-mass estimator bound to one segment table, body mass and rig naming."""

    def __init__(
        self,
        segments: Sequence[SegmentDefinition] = SEGMENT_TABLE,
        body_mass: float = DEFAULT_BODY_MASS_KG,
        name_map: JointNameMap = MIXAMO,
    ):
        validate_segment_table(segments)
        self.segments = tuple(segments)
        self.body_mass = body_mass
        self.name_map = name_map

    @classmethod
    def from_config(cls, config: dict, name_map: JointNameMap) -> "COMEstimator":
        return cls(SEGMENT_TABLE, float(config.get('mass_kg', DEFAULT_BODY_MASS_KG)), name_map)

    def estimate(self, joint_positions: JointSnapshot) -> Vector3:
        return compute_com(joint_positions, self.segments, self.body_mass, self.name_map)
