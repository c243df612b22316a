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
"""
Implements point and pose transformations with plain tensor operations. Most of these
implementations are available through :class:`~robot_self_filter.types.math.Pose`.

Quaternions are stored with the real part first, [qw, qx, qy, qz].
"""
# Standard Library
from typing import Tuple

# Third Party
import torch

# robot_self_filter
from robot_self_filter.util.logger import log_error


def quaternion_to_matrix(quaternions: torch.Tensor) -> torch.Tensor:
    """Rotation matrices of shape (..., 3, 3) from quaternions of shape (..., 4).

    Quaternions do not need to be unit length, they are scaled by their squared norm.
    """
    w, x, y, z = torch.unbind(quaternions, -1)
    s = 2.0 / (quaternions * quaternions).sum(-1)
    xx, yy, zz = s * x * x, s * y * y, s * z * z
    xy, xz, yz = s * x * y, s * x * z, s * y * z
    wx, wy, wz = s * w * x, s * w * y, s * w * z
    rows = [
        torch.stack([1.0 - yy - zz, xy - wz, xz + wy], -1),
        torch.stack([xy + wz, 1.0 - xx - zz, yz - wx], -1),
        torch.stack([xz - wy, yz + wx, 1.0 - xx - yy], -1),
    ]
    return torch.stack(rows, -2)


def matrix_to_quaternion(matrix: torch.Tensor) -> torch.Tensor:
    """Quaternions [qw, qx, qy, qz] of shape (..., 4) from rotation matrices of shape (..., 3, 3).

    Each of the four components can be recovered from the diagonal. The largest one is computed
    from the diagonal and the other three from the off-diagonal terms divided by it.
    """
    if matrix.shape[-1] != 3 or matrix.shape[-2] != 3:
        log_error("Invalid rotation matrix shape " + str(matrix.shape))
    batch_dim = matrix.shape[:-2]
    m = matrix.reshape(batch_dim + (9,))
    m00, m01, m02, m10, m11, m12, m20, m21, m22 = torch.unbind(m, dim=-1)

    # 4 * q_i^2 for w, x, y, z
    diag = torch.stack(
        [
            1.0 + m00 + m11 + m22,
            1.0 + m00 - m11 - m22,
            1.0 - m00 + m11 - m22,
            1.0 - m00 - m11 + m22,
        ],
        dim=-1,
    )
    root = torch.sqrt(torch.clamp(diag, min=0.0))
    # row i holds 4 * q_i * q
    scaled = torch.stack(
        [
            torch.stack([diag[..., 0], m21 - m12, m02 - m20, m10 - m01], dim=-1),
            torch.stack([m21 - m12, diag[..., 1], m10 + m01, m02 + m20], dim=-1),
            torch.stack([m02 - m20, m10 + m01, diag[..., 2], m12 + m21], dim=-1),
            torch.stack([m10 - m01, m02 + m20, m12 + m21, diag[..., 3]], dim=-1),
        ],
        dim=-2,
    )
    best = torch.argmax(diag, dim=-1)
    index = best[..., None, None].expand(batch_dim + (1, 4))
    row = torch.gather(scaled, -2, index).squeeze(-2)
    denom = torch.gather(root, -1, best[..., None])
    return row / (2.0 * torch.clamp(denom, min=1e-6))


def quat_multiply(q1: torch.Tensor, q2: torch.Tensor) -> torch.Tensor:
    a_w = q1[..., 0]
    a_x = q1[..., 1]
    a_y = q1[..., 2]
    a_z = q1[..., 3]
    b_w = q2[..., 0]
    b_x = q2[..., 1]
    b_y = q2[..., 2]
    b_z = q2[..., 3]

    return torch.stack(
        (
            a_w * b_w - a_x * b_x - a_y * b_y - a_z * b_z,
            a_w * b_x + b_w * a_x + a_y * b_z - b_y * a_z,
            a_w * b_y + b_w * a_y + a_z * b_x - b_z * a_x,
            a_w * b_z + b_w * a_z + a_x * b_y - b_x * a_y,
        ),
        -1,
    )


def pose_to_matrix(position: torch.Tensor, quaternion: torch.Tensor) -> torch.Tensor:
    """Converts the given pose to a homogeneous transformation matrix of shape (b, 4, 4)."""
    out_matrix = torch.zeros(
        position.shape[:-1] + (4, 4), device=position.device, dtype=position.dtype
    )
    out_matrix[..., 3, 3] = 1.0
    out_matrix[..., :3, 3] = position
    out_matrix[..., :3, :3] = quaternion_to_matrix(quaternion)
    return out_matrix


def pose_multiply(
    position: torch.Tensor,
    quaternion: torch.Tensor,
    position2: torch.Tensor,
    quaternion2: torch.Tensor,
) -> Tuple[torch.Tensor, torch.Tensor]:
    """Multiplies two poses, computing pose_1 * pose_2.

    The input poses are of shape (batch_size, 3) and (batch_size, 4). A batch of one on
    either side is broadcast against the other.

    Returns:
        Tuple[torch.Tensor, torch.Tensor]: The position and quaternion tensors of the multiplied
            pose.
    """
    if position.shape[0] != position2.shape[0] and 1 not in (position.shape[0], position2.shape[0]):
        log_error("shapes not supported: " + str(position.shape) + " " + str(position2.shape))
    rot = quaternion_to_matrix(quaternion)
    out_position = position + (rot @ position2.unsqueeze(-1)).squeeze(-1)
    out_quaternion = quat_multiply(quaternion, quaternion2)
    return out_position, out_quaternion


def pose_inverse(
    position: torch.Tensor, quaternion: torch.Tensor
) -> Tuple[torch.Tensor, torch.Tensor]:
    """Get the inverse of the given pose, assuming a unit quaternion."""
    out_quaternion = quaternion.clone()
    out_quaternion[..., 1:] *= -1.0
    rot = quaternion_to_matrix(out_quaternion)
    out_position = -1.0 * (rot @ position.unsqueeze(-1)).squeeze(-1)
    return out_position, out_quaternion


def transform_points(
    position: torch.Tensor, quaternion: torch.Tensor, points: torch.Tensor
) -> torch.Tensor:
    """Transforms points of shape (n, 3) by a single pose.

    Args:
        position: Translation of the transformation, shape (1, 3) or (3,).
        quaternion: Rotation of the transformation, shape (1, 4) or (4,). Format is [w, x, y, z].
        points: The points to be transformed.

    Returns:
        torch.Tensor: The transformed points, shape (n, 3).
    """
    if position.numel() != 3:
        log_error("transform_points supports a single pose, got " + str(position.shape))
    rot = quaternion_to_matrix(quaternion.view(4))
    return points @ rot.transpose(-1, -2) + position.view(1, 3)


def transform_points_inverse(
    position: torch.Tensor, quaternion: torch.Tensor, points: torch.Tensor
) -> torch.Tensor:
    """Transforms points of shape (n, 3) by the inverse of a single pose."""
    rot = quaternion_to_matrix(quaternion.view(4))
    return (points - position.view(1, 3)) @ rot
