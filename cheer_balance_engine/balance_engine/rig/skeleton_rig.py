# cheer_balance_engine/balance_engine/rig/skeleton_rig.py
"""
Forward-kinematics humanoid rig that feeds the balance analysis.

The rig stands in for the scene's skeleton: it owns parent-relative rest
offsets and local joint rotations, and hands out a fresh read-only snapshot of
world positions on request. Units are centimetres, Y is up and the character
faces +Z, so the ground plane is (x, z).
"""
import logging
import threading
import numpy as np
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Tuple
from ..common.enums import JointRole
from ..common.geometry import Vector3
from ..common.models import JointSnapshot
from ..common.skeleton import MIXAMO, SKELETON_HIERARCHY, JointNameMap

logger = logging.getLogger(__name__)

R = JointRole

# Symmetric standing T-pose, offsets relative to the parent joint. The hips
# offset is relative to the rig root on the ground. Ankles land at x = +/-15,
# toes on the ground and the head top at 170.
DEFAULT_REST_OFFSETS: Mapping[JointRole, Tuple[float, float, float]] = MappingProxyType({
    R.HIPS: (0.0, 95.0, 0.0),
    R.SPINE: (0.0, 10.0, 0.0),
    R.CHEST: (0.0, 12.0, 0.0),
    R.UPPER_CHEST: (0.0, 13.0, 0.0),
    R.NECK: (0.0, 14.0, 0.0),
    R.HEAD: (0.0, 8.0, 0.0),
    R.HEAD_TOP: (0.0, 18.0, 0.0),
    R.LEFT_CLAVICLE: (6.0, 10.0, 0.0),
    R.LEFT_SHOULDER: (11.0, 0.0, 0.0),
    R.LEFT_ELBOW: (26.0, 0.0, 0.0),
    R.LEFT_WRIST: (24.0, 0.0, 0.0),
    R.RIGHT_CLAVICLE: (-6.0, 10.0, 0.0),
    R.RIGHT_SHOULDER: (-11.0, 0.0, 0.0),
    R.RIGHT_ELBOW: (-26.0, 0.0, 0.0),
    R.RIGHT_WRIST: (-24.0, 0.0, 0.0),
    R.LEFT_HIP: (9.0, -5.0, 0.0),
    R.LEFT_KNEE: (0.0, -42.0, 0.0),
    R.LEFT_ANKLE: (6.0, -40.0, -12.0),
    R.LEFT_TOE: (0.0, -8.0, 26.0),
    R.RIGHT_HIP: (-9.0, -5.0, 0.0),
    R.RIGHT_KNEE: (0.0, -42.0, 0.0),
    R.RIGHT_ANKLE: (-6.0, -40.0, -12.0),
    R.RIGHT_TOE: (0.0, -8.0, 26.0),
})

ChangeListener = Callable[[], None]

def euler_to_matrix(euler: Vector3) -> np.ndarray:
    """Rotation matrix for Euler angles in radians, applied X, then Y, then Z."""
    cx, cy, cz = np.cos([euler.x, euler.y, euler.z])
    sx, sy, sz = np.sin([euler.x, euler.y, euler.z])
    rx = np.array([[1, 0, 0], [0, cx, -sx], [0, sx, cx]])
    ry = np.array([[cy, 0, sy], [0, 1, 0], [-sy, 0, cy]])
    rz = np.array([[cz, -sz, 0], [sz, cz, 0], [0, 0, 1]])
    return rz @ ry @ rx

class SkeletonRig:
    """Hierarchical joint rig with local rotations and a root transform."""

    def __init__(
        self,
        name_map: JointNameMap = MIXAMO,
        rest_offsets: Mapping[JointRole, Tuple[float, float, float]] = DEFAULT_REST_OFFSETS,
        root_position: Vector3 = Vector3.zero(),
    ):
        self.name_map = name_map
        self._offsets = {role: np.asarray(rest_offsets[role], dtype=np.float64) for role in SKELETON_HIERARCHY}
        self._rotations: Dict[JointRole, Vector3] = {role: Vector3.zero() for role in SKELETON_HIERARCHY}
        self._root_position = root_position
        self._root_rotation = Vector3.zero()
        self._listeners: List[ChangeListener] = []
        self._lock = threading.Lock()
        self._cached: Optional[JointSnapshot] = None

    def add_change_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def _role(self, name: str) -> JointRole:
        role = self.name_map.role_of(name)
        if role is None:
            raise KeyError(f"Unknown joint: {name}")
        return role

    def _changed(self) -> None:
        with self._lock:
            self._cached = None
        for listener in self._listeners:
            listener()

    def set_joint_local_rotation(self, name: str, euler: Vector3) -> None:
        role = self._role(name)
        with self._lock:
            self._rotations[role] = euler
        self._changed()

    def get_joint_local_rotation(self, name: str) -> Optional[Vector3]:
        role = self.name_map.role_of(name)
        return self._rotations[role] if role is not None else None

    def set_root_position(self, position: Vector3) -> None:
        with self._lock:
            self._root_position = position
        self._changed()

    def set_root_rotation(self, euler: Vector3) -> None:
        with self._lock:
            self._root_rotation = euler
        self._changed()

    def reset_pose(self) -> None:
        """Zeroes every local rotation and the root rotation."""
        with self._lock:
            self._rotations = {role: Vector3.zero() for role in SKELETON_HIERARCHY}
            self._root_rotation = Vector3.zero()
        logger.info("Pose reset to rest.")
        self._changed()

    def get_joint_world_position(self, name: str) -> Optional[Vector3]:
        return self.snapshot().get(name)

    def snapshot(self) -> JointSnapshot:
        """World positions of every joint, root first in hierarchy order."""
        with self._lock:
            if self._cached is None:
                self._cached = self._solve()
            return self._cached

    def _solve(self) -> JointSnapshot:
        world_rot: Dict[JointRole, np.ndarray] = {}
        world_pos: Dict[JointRole, np.ndarray] = {}
        root_rot = euler_to_matrix(self._root_rotation)
        root_pos = self._root_position.to_array()

        for role, parent in SKELETON_HIERARCHY.items():
            parent_rot = root_rot if parent is None else world_rot[parent]
            parent_pos = root_pos if parent is None else world_pos[parent]
            world_pos[role] = parent_pos + parent_rot @ self._offsets[role]
            world_rot[role] = parent_rot @ euler_to_matrix(self._rotations[role])

        return MappingProxyType({
            self.name_map.name(role): Vector3.from_array(position) for role, position in world_pos.items()
        })

    def standing_height(self) -> float:
        """Vertical extent of the current pose."""
        heights = [position.y for position in self.snapshot().values()]
        return max(heights) - min(heights)
