#
# Copyright (c) 2023 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
#
# NVIDIA CORPORATION, its affiliates and licensors retain all intellectual
# property and proprietary rights in and to this material, related
# documentation and any modifications thereto. Any use, reproduction,
# disclosure or distribution of this material and related documentation
# without an express license agreement from NVIDIA CORPORATION or
# its affiliates is strictly prohibited.
#

# Standard Library
import math

# Third Party
import numpy as np
import pytest
import torch

# robot_self_filter
from robot_self_filter.geom.transform import (
    matrix_to_quaternion,
    pose_inverse,
    pose_multiply,
    quat_multiply,
    quaternion_to_matrix,
)
from robot_self_filter.types.base import TensorDeviceType
from robot_self_filter.types.math import Pose


@pytest.fixture(scope="module")
def tensor_args():
    return TensorDeviceType(device=torch.device("cpu"))


def test_quaternion(tensor_args):
    def test_q(in_quat):
        out_rot = quaternion_to_matrix(in_quat)
        out_quat = matrix_to_quaternion(out_rot.clone())
        out_quat[..., 1:] *= -1.0
        q_res = quat_multiply(in_quat, out_quat)
        q_res[..., 0] = 0.0
        assert torch.sum(torch.abs(q_res)).item() <= 1e-5

    for q in [
        [1.0, 0.0, 0.0, 0.0],
        [0.0, 1.0, 0.0, 0.0],
        [0.0, 0.0, 1.0, 0.0],
        [0.0, 0.0, 0.0, 1.0],
        [0.7071068, 0.0, 0.0, 0.7071068],
    ]:
        in_quat = tensor_args.to_device(q).view(1, 4)
        test_q(in_quat)
        test_q(-1.0 * in_quat)


def test_pose_transform_points(tensor_args):
    pose = Pose.from_list([1.0, 0.0, 0.0, 0.7071068, 0.0, 0.0, 0.7071068], tensor_args)
    points = tensor_args.to_device([[1.0, 0.0, 0.0], [0.0, 0.0, 2.0]])
    out_points = pose.transform_points(points)
    expected = tensor_args.to_device([[1.0, 1.0, 0.0], [1.0, 0.0, 2.0]])
    assert torch.allclose(out_points, expected, atol=1e-5)
    assert torch.allclose(pose.inverse_transform_points(out_points), points, atol=1e-5)


def test_pose_inverse_multiply(tensor_args):
    pose = Pose.from_list([0.3, -0.2, 1.0, 0.9238795, 0.0, 0.3826834, 0.0], tensor_args)
    identity = pose.multiply(pose.inverse())
    assert torch.allclose(identity.position, torch.zeros(1, 3), atol=1e-5)
    assert torch.allclose(identity.quaternion, tensor_args.to_device([[1, 0, 0, 0]]), atol=1e-5)

    position, quaternion = pose_inverse(pose.position, pose.quaternion)
    p, q = pose_multiply(position, quaternion, pose.position, pose.quaternion)
    assert torch.allclose(p, torch.zeros(1, 3), atol=1e-5)


def test_pose_from_matrix(tensor_args):
    angle = math.pi / 3.0
    matrix = np.eye(4)
    matrix[:3, :3] = [
        [math.cos(angle), 0.0, math.sin(angle)],
        [0.0, 1.0, 0.0],
        [-math.sin(angle), 0.0, math.cos(angle)],
    ]
    matrix[:3, 3] = [0.1, 0.2, 0.3]
    pose = Pose.from_matrix(matrix, tensor_args)
    assert pose.batch == 1
    assert np.allclose(pose.get_numpy_matrix()[0], matrix, atol=1e-5)
    quaternion = pose.quaternion.view(4).tolist()
    assert quaternion == pytest.approx(
        [math.cos(angle / 2.0), 0.0, math.sin(angle / 2.0), 0.0], abs=1e-5
    )


def test_pose_from_list_xyzw(tensor_args):
    pose = Pose.from_list([0, 0, 0, 0.0, 0.0, 1.0, 0.0], tensor_args, q_xyzw=True)
    assert pose.quaternion.view(4).tolist() == pytest.approx([0.0, 0.0, 0.0, 1.0])
    assert pose.tolist(q_xyzw=True) == pytest.approx([0, 0, 0, 0.0, 0.0, 1.0, 0.0])


def test_pose_from_position_only(tensor_args):
    pose = Pose.from_list([1.0, 2.0, 3.0], tensor_args)
    assert pose.tolist() == pytest.approx([1.0, 2.0, 3.0, 1.0, 0.0, 0.0, 0.0])


def test_pose_normalizes_quaternion(tensor_args):
    pose = Pose.from_list([0, 0, 0, -2.0, 0.0, 0.0, 0.0], tensor_args)
    assert pose.quaternion.view(4).tolist() == pytest.approx([1.0, 0.0, 0.0, 0.0])


def test_pose_requires_position():
    with pytest.raises(ValueError):
        Pose(quaternion=torch.as_tensor([[1.0, 0.0, 0.0, 0.0]]))
