import numpy as np
import pytest

from balance_engine.common.geometry import Vector3
from balance_engine.rig.skeleton_rig import SkeletonRig, euler_to_matrix


def test_rest_pose_layout(rig):
    snapshot = rig.snapshot()

    assert snapshot["mixamorig_Hips"] == Vector3(x=0.0, y=95.0, z=0.0)
    assert snapshot["mixamorig_LeftFoot"].is_close(Vector3(x=15.0, y=8.0, z=-12.0))
    assert snapshot["mixamorig_RightToeBase"].is_close(Vector3(x=-15.0, y=0.0, z=14.0))
    assert rig.standing_height() == pytest.approx(170.0)


def test_snapshot_is_read_only_and_hierarchy_ordered(rig):
    snapshot = rig.snapshot()

    assert next(iter(snapshot)) == "mixamorig_Hips"
    assert len(snapshot) == 23
    with pytest.raises(TypeError):
        snapshot["mixamorig_Hips"] = Vector3.zero()


def test_local_rotation_moves_children_only(rig):
    rig.set_joint_local_rotation("mixamorig_RightUpLeg", Vector3(z=-np.pi / 2))

    assert rig.get_joint_world_position("mixamorig_RightUpLeg").is_close(Vector3(x=-9.0, y=90.0))
    assert rig.get_joint_world_position("mixamorig_RightLeg").is_close(Vector3(x=-51.0, y=90.0))
    assert rig.get_joint_world_position("mixamorig_LeftLeg").is_close(Vector3(x=9.0, y=48.0))
    assert rig.get_joint_local_rotation("mixamorig_RightUpLeg") == Vector3(z=-np.pi / 2)


def test_root_transform_moves_whole_body(rig):
    rig.set_root_position(Vector3(x=100.0, z=-20.0))

    assert rig.get_joint_world_position("mixamorig_Hips").is_close(Vector3(x=100.0, y=95.0, z=-20.0))

    rig.set_root_rotation(Vector3(y=np.pi))
    assert rig.get_joint_world_position("mixamorig_LeftFoot").is_close(Vector3(x=85.0, y=8.0, z=-8.0))


def test_changes_notify_listeners_and_reset(rig):
    events = []
    rig.add_change_listener(lambda: events.append(1))

    rig.set_joint_local_rotation("mixamorig_Spine", Vector3(x=0.3))
    rig.set_root_rotation(Vector3(y=0.5))
    rig.reset_pose()

    assert len(events) == 3
    assert rig.get_joint_local_rotation("mixamorig_Spine") == Vector3.zero()
    assert rig.get_joint_world_position("mixamorig_Head").is_close(Vector3(y=152.0))


def test_unknown_joint_names(rig):
    with pytest.raises(KeyError):
        rig.set_joint_local_rotation("Pompom", Vector3(x=1.0))
    assert rig.get_joint_world_position("Pompom") is None
    assert rig.get_joint_local_rotation("Pompom") is None


def test_euler_matrix_is_rotation():
    matrix = euler_to_matrix(Vector3(x=0.2, y=-1.1, z=0.7))
    np.testing.assert_allclose(matrix @ matrix.T, np.eye(3), atol=1e-12)
    assert np.linalg.det(matrix) == pytest.approx(1.0)


def test_custom_root_position():
    rig = SkeletonRig(root_position=Vector3(y=10.0))
    assert rig.get_joint_world_position("mixamorig_Hips").is_close(Vector3(y=105.0))
