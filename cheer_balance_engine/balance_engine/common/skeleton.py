# cheer_balance_engine/balance_engine/common/skeleton.py
"""
Humanoid skeleton definitions shared by the rig and the balance analysis.

Everything the analysis needs to know about a skeleton goes through
``JointRole``: the anthropometric table, the hierarchy and the base of
support landmarks are all expressed in roles, and a ``JointNameMap`` turns
roles into the joint names of one concrete rig (Mixamo by default).
"""
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple
from .enums import JointRole
from .models import SegmentDefinition

R = JointRole

# Parent role of every joint, listed root first so iteration is a valid
# depth-first build order.
SKELETON_HIERARCHY: Mapping[JointRole, Optional[JointRole]] = MappingProxyType({
    R.HIPS: None,
    R.SPINE: R.HIPS,
    R.CHEST: R.SPINE,
    R.UPPER_CHEST: R.CHEST,
    R.NECK: R.UPPER_CHEST,
    R.HEAD: R.NECK,
    R.HEAD_TOP: R.HEAD,
    R.RIGHT_CLAVICLE: R.UPPER_CHEST,
    R.RIGHT_SHOULDER: R.RIGHT_CLAVICLE,
    R.RIGHT_ELBOW: R.RIGHT_SHOULDER,
    R.RIGHT_WRIST: R.RIGHT_ELBOW,
    R.LEFT_CLAVICLE: R.UPPER_CHEST,
    R.LEFT_SHOULDER: R.LEFT_CLAVICLE,
    R.LEFT_ELBOW: R.LEFT_SHOULDER,
    R.LEFT_WRIST: R.LEFT_ELBOW,
    R.RIGHT_HIP: R.HIPS,
    R.RIGHT_KNEE: R.RIGHT_HIP,
    R.RIGHT_ANKLE: R.RIGHT_KNEE,
    R.RIGHT_TOE: R.RIGHT_ANKLE,
    R.LEFT_HIP: R.HIPS,
    R.LEFT_KNEE: R.LEFT_HIP,
    R.LEFT_ANKLE: R.LEFT_KNEE,
    R.LEFT_TOE: R.LEFT_ANKLE,
})

# Mixamo bone names (without the exporter prefix)
MIXAMO_NAMES: Mapping[JointRole, str] = MappingProxyType({
    R.HIPS: "Hips",
    R.SPINE: "Spine",
    R.CHEST: "Spine1",
    R.UPPER_CHEST: "Spine2",
    R.NECK: "Neck",
    R.HEAD: "Head",
    R.HEAD_TOP: "HeadTop_End",
    R.RIGHT_CLAVICLE: "RightShoulder",
    R.RIGHT_SHOULDER: "RightArm",
    R.RIGHT_ELBOW: "RightForeArm",
    R.RIGHT_WRIST: "RightHand",
    R.LEFT_CLAVICLE: "LeftShoulder",
    R.LEFT_SHOULDER: "LeftArm",
    R.LEFT_ELBOW: "LeftForeArm",
    R.LEFT_WRIST: "LeftHand",
    R.RIGHT_HIP: "RightUpLeg",
    R.RIGHT_KNEE: "RightLeg",
    R.RIGHT_ANKLE: "RightFoot",
    R.RIGHT_TOE: "RightToeBase",
    R.LEFT_HIP: "LeftUpLeg",
    R.LEFT_KNEE: "LeftLeg",
    R.LEFT_ANKLE: "LeftFoot",
    R.LEFT_TOE: "LeftToeBase",
})

# Base of support landmarks in polygon winding order
SUPPORT_LANDMARKS: Tuple[JointRole, ...] = (R.LEFT_ANKLE, R.RIGHT_ANKLE, R.RIGHT_TOE, R.LEFT_TOE)

# Winter (2009) / de Leva (1996) segment parameters, bounded by the joints of
# a Mixamo-style rig. Domain constants, not tuning knobs.
SEGMENT_TABLE: Tuple[SegmentDefinition, ...] = tuple(
    SegmentDefinition(name=name, proximal=prox, distal=dist, mass_fraction=mass, com_fraction=com)
    for name, prox, dist, mass, com in (
        ("trunk", R.HIPS, R.SPINE, 0.497, 0.50),
        ("head_neck", R.UPPER_CHEST, R.HEAD, 0.081, 0.50),
        ("right_upper_arm", R.RIGHT_CLAVICLE, R.RIGHT_SHOULDER, 0.028, 0.44),
        ("right_forearm", R.RIGHT_SHOULDER, R.RIGHT_ELBOW, 0.016, 0.43),
        ("right_hand", R.RIGHT_ELBOW, R.RIGHT_WRIST, 0.006, 0.50),
        ("left_upper_arm", R.LEFT_CLAVICLE, R.LEFT_SHOULDER, 0.028, 0.44),
        ("left_forearm", R.LEFT_SHOULDER, R.LEFT_ELBOW, 0.016, 0.43),
        ("left_hand", R.LEFT_ELBOW, R.LEFT_WRIST, 0.006, 0.50),
        ("right_thigh", R.RIGHT_HIP, R.RIGHT_KNEE, 0.100, 0.43),
        ("right_shank", R.RIGHT_KNEE, R.RIGHT_ANKLE, 0.0465, 0.43),
        ("right_foot", R.RIGHT_ANKLE, R.RIGHT_TOE, 0.0145, 0.50),
        ("left_thigh", R.LEFT_HIP, R.LEFT_KNEE, 0.100, 0.43),
        ("left_shank", R.LEFT_KNEE, R.LEFT_ANKLE, 0.0465, 0.43),
        ("left_foot", R.LEFT_ANKLE, R.LEFT_TOE, 0.0145, 0.50),
    )
)

def validate_segment_table(segments: Sequence[SegmentDefinition], tolerance: float = 0.01) -> None:
    """Raises ValueError if the mass fractions do not sum to ~1.0."""
    if not segments:
        raise ValueError("Segment table is empty.")
    total = sum(segment.mass_fraction for segment in segments)
    if abs(total - 1.0) > tolerance:
        raise ValueError(f"Segment mass fractions sum to {total:.4f}, expected 1.0 +/- {tolerance}")

class JointNameMap:
    """Maps anatomical roles to the joint names used by one concrete skeleton."""

    def __init__(self, names: Mapping[JointRole, str]):
        missing = [role.value for role in JointRole if role not in names]
        if missing:
            raise KeyError(f"Joint name map is missing roles: {missing}")
        self._names: Mapping[JointRole, str] = MappingProxyType({role: names[role] for role in JointRole})
        self._roles: Mapping[str, JointRole] = MappingProxyType({name: role for role, name in self._names.items()})

    @classmethod
    def mixamo(cls, prefix: str = "mixamorig_") -> "JointNameMap":
        return cls({role: f"{prefix}{name}" for role, name in MIXAMO_NAMES.items()})

    @classmethod
    def from_config(cls, config: dict) -> "JointNameMap":
        """Builds a Mixamo map with the configured prefix, then applies per-role overrides."""
        base = cls.mixamo(config.get('name_prefix', "mixamorig_"))
        names: Dict[JointRole, str] = dict(base._names)
        for role_name, joint_name in (config.get('overrides') or {}).items():
            names[JointRole(role_name)] = joint_name
        return cls(names)

    def name(self, role: JointRole) -> str:
        return self._names[role]

    def names(self, roles: Iterable[JointRole]) -> Tuple[str, ...]:
        return tuple(self._names[role] for role in roles)

    def role_of(self, name: str) -> Optional[JointRole]:
        return self._roles.get(name)

    def is_recognized(self, name: Optional[str]) -> bool:
        return name is not None and name in self._roles

    def parent_name(self, name: str) -> Optional[str]:
        role = self._roles.get(name)
        if role is None:
            return None
        parent = SKELETON_HIERARCHY[role]
        return self._names[parent] if parent is not None else None

    def items(self):
        return self._names.items()

MIXAMO = JointNameMap.mixamo()
