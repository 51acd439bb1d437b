# cheer_balance_engine/balance_engine/common/geometry.py
import numpy as np
from pydantic import BaseModel

class Vector3(BaseModel):
    """Immutable 3D point/vector in scene units (cm, Y up)."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    class Config:
        frozen = True

    @classmethod
    def zero(cls) -> "Vector3":
        return cls(x=0.0, y=0.0, z=0.0)

    @classmethod
    def from_array(cls, values) -> "Vector3":
        x, y, z = (float(v) for v in values[:3])
        return cls(x=x, y=y, z=z)

    def to_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    def ground(self) -> np.ndarray:
        """Projects onto the ground plane by dropping the vertical (Y) axis."""
        return np.array([self.x, self.z], dtype=np.float64)

    def __add__(self, other: "Vector3") -> "Vector3":
        return Vector3(x=self.x + other.x, y=self.y + other.y, z=self.z + other.z)

    def __sub__(self, other: "Vector3") -> "Vector3":
        return Vector3(x=self.x - other.x, y=self.y - other.y, z=self.z - other.z)

    def __mul__(self, scalar: float) -> "Vector3":
        return Vector3(x=self.x * scalar, y=self.y * scalar, z=self.z * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> "Vector3":
        return self * (1.0 / scalar)

    def is_close(self, other: "Vector3", tol: float = 1e-6) -> bool:
        return bool(np.allclose(self.to_array(), other.to_array(), atol=tol))

    def is_finite(self) -> bool:
        return bool(np.isfinite(self.to_array()).all())
