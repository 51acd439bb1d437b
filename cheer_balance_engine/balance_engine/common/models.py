# cheer_balance_engine/balance_engine/common/models.py
import numpy as np
from pydantic import BaseModel, Field, field_validator
from typing import Iterator, Mapping, Optional, Tuple
from .enums import BalanceState, JointRole
from .geometry import Vector3

# Per-frame, read-only joint name -> world position mapping
JointSnapshot = Mapping[str, Vector3]

class SegmentDefinition(BaseModel):
    """One anthropometric body segment bounded by two joints."""
    name: str
    proximal: JointRole
    distal: JointRole
    mass_fraction: float = Field(..., ge=0.0, le=1.0)
    com_fraction: float = Field(..., ge=0.0, le=1.0)

    class Config:
        frozen = True

class SupportPolygon(BaseModel):
    """Base of support on the ground plane, vertices ordered LF -> RF -> RT -> LT."""
    points: np.ndarray

    class Config:
        arbitrary_types_allowed = True

    @field_validator('points', mode='before')
    @classmethod
    def check_points_shape(cls, value):
        points = np.asarray(value, dtype=np.float64)
        if points.ndim != 2 or points.shape[1] != 2 or points.shape[0] < 3:
            raise ValueError(f"Support polygon needs (N>=3, 2) points, got {points.shape}")
        return points

    @property
    def center(self) -> np.ndarray:
        return self.points.mean(axis=0)

    def edges(self) -> Iterator[Tuple[np.ndarray, np.ndarray]]:
        count = len(self.points)
        for i in range(count):
            yield self.points[i], self.points[(i + 1) % count]

class StabilityResult(BaseModel):
    """Stability margin (ground-plane distance to the nearest BOS edge) and inside flag."""
    margin: float = Field(..., ge=0.0)
    is_stable: bool

    class Config:
        frozen = True

class BalanceFrame(BaseModel):
    """Encapsulates the complete result of a single recompute pass."""
    frame_id: int
    timestamp: float
    processing_time_ms: float
    state: BalanceState
    com: Vector3
    polygon: Optional[SupportPolygon] = None
    stability: Optional[StabilityResult] = None
    highlighted_joint: Optional[str] = None
    highlighted_segments: Tuple[str, ...] = ()

    class Config:
        arbitrary_types_allowed = True
