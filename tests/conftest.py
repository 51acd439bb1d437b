import numpy as np
import pytest

from balance_engine.common.models import SupportPolygon
from balance_engine.rig.skeleton_rig import SkeletonRig


@pytest.fixture
def rig():
    return SkeletonRig()


@pytest.fixture
def standing_snapshot(rig):
    return rig.snapshot()


@pytest.fixture
def square_polygon():
    return SupportPolygon(points=np.array([[-50.0, -50.0], [50.0, -50.0], [50.0, 50.0], [-50.0, 50.0]]))
