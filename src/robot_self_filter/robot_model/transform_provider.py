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
"""Transform providers resolve the pose of a frame relative to another frame at a time stamp."""

# Standard Library
import threading
from typing import Dict, Optional, Tuple

# robot_self_filter
from robot_self_filter.types.base import TensorDeviceType
from robot_self_filter.types.math import Pose


class TransformLookupError(LookupError):
    """Raised when a transform is not available within the lookup timeout."""


class TransformProvider:
    """Base class for transform providers."""

    def lookup(
        self,
        target_frame: str,
        source_frame: str,
        stamp: Optional[float] = None,
        timeout: float = 0.0,
    ) -> Pose:
        """Get the pose of ``source_frame`` expressed in ``target_frame``.

        Args:
            target_frame: Frame the returned pose is expressed in.
            source_frame: Frame whose pose is returned.
            stamp: Time of the lookup in seconds. None requests the latest transform.
            timeout: Maximum time to block waiting for the transform, in seconds.

        Raises:
            TransformLookupError: If the transform is not available within ``timeout``.
        """
        raise NotImplementedError


class StaticTransformProvider(TransformProvider):
    """Thread safe table of transforms between frame pairs.

    Lookups block up to their timeout for a missing transform to be set by another thread. The
    inverse of a stored transform is returned for the reversed frame pair. Stamps are ignored.
    """

    def __init__(self, tensor_args: TensorDeviceType = TensorDeviceType()):
        self.tensor_args = tensor_args
        self._transforms: Dict[Tuple[str, str], Pose] = {}
        self._condition = threading.Condition()

    def set_transform(self, target_frame: str, source_frame: str, pose: Pose):
        with self._condition:
            self._transforms[(target_frame, source_frame)] = pose.clone()
            self._condition.notify_all()

    def remove_transform(self, target_frame: str, source_frame: str):
        with self._condition:
            self._transforms.pop((target_frame, source_frame), None)

    def lookup(
        self,
        target_frame: str,
        source_frame: str,
        stamp: Optional[float] = None,
        timeout: float = 0.0,
    ) -> Pose:
        if target_frame == source_frame:
            return Pose.identity(self.tensor_args)
        key = (target_frame, source_frame)
        inverse_key = (source_frame, target_frame)
        with self._condition:
            found = self._condition.wait_for(
                lambda: key in self._transforms or inverse_key in self._transforms,
                timeout=max(timeout, 0.0),
            )
            if not found:
                raise TransformLookupError(
                    "Transform from "
                    + source_frame
                    + " to "
                    + target_frame
                    + " not available after "
                    + str(timeout)
                    + "s"
                )
            if key in self._transforms:
                return self._transforms[key].clone()
            return self._transforms[inverse_key].inverse()
