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
"""Batched rigid transforms.

A :class:`Pose` holds ``b`` transforms as a position tensor of shape (b, 3) and a quaternion
tensor of shape (b, 4) with the real part first. Link and sensor poses handed out by transform
providers, collision origins and body placements all use this type.
"""
from __future__ import annotations

# Standard Library
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

# Third Party
import numpy as np
import torch

# robot_self_filter
from robot_self_filter.geom.transform import (
    matrix_to_quaternion,
    pose_inverse,
    pose_multiply,
    pose_to_matrix,
    quaternion_to_matrix,
    transform_points,
    transform_points_inverse,
)
from robot_self_filter.types.base import TensorDeviceType
from robot_self_filter.util.logger import log_error
from robot_self_filter.util.torch_utils import get_torch_jit_decorator

# Local Folder
from .tensor import T_BPosition, T_BQuaternion, T_BRotation


@dataclass
class Pose:
    """Batch of rigid transforms, ``Pose(position, quaternion)``.

    Only ``position`` is required. The orientation can be given as a quaternion, as rotation
    matrices, or left out for the identity rotation.
    """

    #: Translation [x, y, z] in meters.
    position: Optional[T_BPosition] = None

    #: Orientation as [qw, qx, qy, qz].
    quaternion: Optional[T_BQuaternion] = None

    #: Orientation as 3x3 matrices, only used when quaternion is not given.
    rotation: Optional[T_BRotation] = None

    #: Number of transforms, read from position.
    batch: int = 1

    #: Rescale quaternions to unit length with a non-negative real part.
    normalize_rotation: bool = True

    def __post_init__(self):
        if self.position is None:
            log_error("Pose requires a position")
        if self.quaternion is None:
            if self.rotation is not None:
                self.quaternion = matrix_to_quaternion(self.rotation)
            else:
                identity = torch.zeros(
                    self.position.shape[:-1] + (4,),
                    device=self.position.device,
                    dtype=self.position.dtype,
                )
                identity[..., 0] = 1.0
                self.quaternion = identity
        if self.position.dim() == 1:
            self.position = self.position.view(1, 3)
            self.quaternion = self.quaternion.view(1, 4)
        self.batch = self.position.shape[0]
        if self.normalize_rotation:
            self.quaternion = normalize_quaternion(self.quaternion)

    @staticmethod
    def from_matrix(
        matrix: Union[np.ndarray, torch.Tensor], tensor_args: TensorDeviceType = TensorDeviceType()
    ) -> Pose:
        """Pose from homogeneous matrices of shape (4, 4) or (b, 4, 4)."""
        matrix = tensor_args.to_device(matrix)
        if matrix.dim() == 2:
            matrix = matrix.unsqueeze(0)
        return Pose(position=matrix[:, :3, 3].clone(), rotation=matrix[:, :3, :3].clone())

    @classmethod
    def from_list(
        cls,
        pose: Sequence[float],
        tensor_args: TensorDeviceType = TensorDeviceType(),
        q_xyzw: bool = False,
    ) -> Pose:
        """Pose from [x, y, z] or [x, y, z, qw, qx, qy, qz].

        With ``q_xyzw`` the quaternion part is read as [qx, qy, qz, qw] instead.
        """
        values = [float(x) for x in pose]
        if len(values) == 3:
            values += [0.0, 0.0, 0.0, 1.0] if q_xyzw else [1.0, 0.0, 0.0, 0.0]
        if len(values) != 7:
            log_error("Pose list should be [x, y, z, qw, qx, qy, qz], got " + str(pose))
        quat = values[3:]
        if q_xyzw:
            quat = quat[3:] + quat[:3]
        return cls(
            position=torch.tensor([values[:3]], **tensor_args.as_torch_dict()),
            quaternion=torch.tensor([quat], **tensor_args.as_torch_dict()),
        )

    @classmethod
    def identity(cls, tensor_args: TensorDeviceType = TensorDeviceType()) -> Pose:
        return cls.from_list([0.0, 0.0, 0.0], tensor_args)

    def get_rotation(self) -> torch.Tensor:
        """Rotation matrices, shape (b, 3, 3)."""
        if self.rotation is None:
            return quaternion_to_matrix(self.quaternion)
        return self.rotation

    def tolist(self, q_xyzw: bool = False) -> List[float]:
        """First transform of the batch as [x, y, z, qw, qx, qy, qz] (or xyzw order)."""
        position = self.position[0].cpu().tolist()
        qw, qx, qy, qz = self.quaternion[0].cpu().tolist()
        if q_xyzw:
            return position + [qx, qy, qz, qw]
        return position + [qw, qx, qy, qz]

    def clone(self) -> Pose:
        return Pose(
            position=self.position.clone(),
            quaternion=self.quaternion.clone(),
            normalize_rotation=False,
        )

    def to(
        self,
        tensor_args: Optional[TensorDeviceType] = None,
        device: Optional[torch.device] = None,
    ) -> Pose:
        """Move this pose in place and return it."""
        if tensor_args is not None:
            kwargs = tensor_args.as_torch_dict()
        elif device is not None:
            kwargs = {"device": device}
        else:
            log_error("Pose.to() requires tensor_args or device")
        self.position = self.position.to(**kwargs)
        self.quaternion = self.quaternion.to(**kwargs)
        if self.rotation is not None:
            self.rotation = self.rotation.to(**kwargs)
        return self

    def get_matrix(self) -> torch.Tensor:
        return pose_to_matrix(self.position, self.quaternion)

    def get_numpy_matrix(self) -> np.ndarray:
        return self.get_matrix().cpu().numpy()

    def inverse(self) -> Pose:
        position, quaternion = pose_inverse(self.position, self.quaternion)
        return Pose(position, quaternion, normalize_rotation=False)

    def multiply(self, other_pose: Pose) -> Pose:
        """Compose ``self * other_pose``, other_pose is applied first."""
        position, quaternion = pose_multiply(
            self.position, self.quaternion, other_pose.position, other_pose.quaternion
        )
        return Pose(position, quaternion)

    def transform_points(self, points: torch.Tensor) -> torch.Tensor:
        """Map points of shape (..., 3) from the local frame to the parent frame."""
        return transform_points(self.position, self.quaternion, points.reshape(-1, 3))

    def inverse_transform_points(self, points: torch.Tensor) -> torch.Tensor:
        """Map points of shape (..., 3) from the parent frame to the local frame."""
        return transform_points_inverse(self.position, self.quaternion, points.reshape(-1, 3))


@get_torch_jit_decorator()
def normalize_quaternion(in_quaternion: torch.Tensor) -> torch.Tensor:
    # q and -q are the same rotation, keep qw >= 0
    sign = 1.0 - 2.0 * (in_quaternion[..., 0:1] < 0.0).to(in_quaternion.dtype)
    return in_quaternion * (sign / torch.linalg.norm(in_quaternion, dim=-1, keepdim=True))
