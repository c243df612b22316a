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
"""Places the monitored link bodies in the frame of a point cloud."""

from __future__ import annotations

# Standard Library
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

# Third Party
import torch

# robot_self_filter
from robot_self_filter.geom.bodies import BoundingSphere, merge_bounding_spheres
from robot_self_filter.robot_model.transform_provider import (
    TransformLookupError,
    TransformProvider,
)
from robot_self_filter.types.base import TensorDeviceType
from robot_self_filter.types.math import Pose
from robot_self_filter.util.logger import log_warn
from robot_self_filter.wrap.model.body_set import BodySet


@dataclass(frozen=True)
class FrameSnapshot:
    """Bounding volumes and sensor placement computed by one frame update.

    Link body poses are set on the bodies of the :class:`BodySet`, this snapshot holds what is
    derived from them. A snapshot is only handed out once the whole update is complete.
    """

    #: Frame the bodies were placed in.
    frame_id: str

    #: Time stamp of the update.
    stamp: Optional[float]

    #: Bounding sphere of each inflated body, in body set order.
    bounding_spheres: List[BoundingSphere]

    #: Sphere enclosing all bounding spheres.
    merged_sphere: BoundingSphere

    #: Sensor origin in ``frame_id``, shape (3,). None when no sensor was given.
    sensor_pos: Optional[torch.Tensor] = None

    #: Points closer than this to the sensor are labeled inside.
    min_sensor_dist: float = 0.0

    #: Links whose transform was not available and were placed at identity.
    failed_links: Tuple[str, ...] = ()

    @property
    def has_sensor(self) -> bool:
        return self.sensor_pos is not None


class FrameUpdater:
    """Resolves link and sensor poses through a :class:`TransformProvider`.

    A failed lookup never aborts an update: the link is placed at identity, or the sensor at
    the origin, and the failure is logged once.
    """

    def __init__(
        self,
        transform_provider: TransformProvider,
        timeout: float = 0.1,
        tensor_args: TensorDeviceType = TensorDeviceType(),
    ):
        self.transform_provider = transform_provider
        self.timeout = timeout
        self.tensor_args = tensor_args

    def assume_frame(
        self,
        body_set: BodySet,
        frame_id: str,
        stamp: Optional[float] = None,
        sensor_frame: Optional[str] = None,
        sensor_pos: Optional[Union[Sequence[float], torch.Tensor]] = None,
        min_sensor_dist: float = 0.0,
    ) -> FrameSnapshot:
        """Place all bodies in ``frame_id`` at ``stamp`` and refresh their bounding spheres.

        Args:
            body_set: Bodies to place.
            frame_id: Frame to express bodies in, usually the frame of the point cloud.
            stamp: Time stamp of the point cloud.
            sensor_frame: Frame of the sensor. Its origin is looked up in ``frame_id``.
            sensor_pos: Sensor origin in ``frame_id``, used when ``sensor_frame`` is not given.
            min_sensor_dist: Distance to the sensor below which points are labeled inside.

        Returns:
            FrameSnapshot: bounding volumes and sensor placement for classification.
        """
        failed_links = []
        for link in body_set:
            try:
                link_pose = self.transform_provider.lookup(
                    frame_id, link.name, stamp, self.timeout
                )
            except TransformLookupError as e:
                log_warn(
                    "Unable to lookup transform from "
                    + link.name
                    + " to "
                    + frame_id
                    + ", using identity: "
                    + str(e)
                )
                link_pose = Pose.identity(self.tensor_args)
                failed_links.append(link.name)
            link.set_pose(link_pose.to(self.tensor_args))

        bounding_spheres = [link.body.compute_bounding_sphere() for link in body_set]
        merged_sphere = merge_bounding_spheres(bounding_spheres, self.tensor_args)

        sensor_origin = None
        if sensor_frame:
            sensor_origin = self.get_sensor_position(frame_id, sensor_frame, stamp)
        elif sensor_pos is not None:
            sensor_origin = self.tensor_args.to_device(sensor_pos).view(3)

        return FrameSnapshot(
            frame_id=frame_id,
            stamp=stamp,
            bounding_spheres=bounding_spheres,
            merged_sphere=merged_sphere,
            sensor_pos=sensor_origin,
            min_sensor_dist=float(min_sensor_dist),
            failed_links=tuple(failed_links),
        )

    def get_sensor_position(
        self, frame_id: str, sensor_frame: str, stamp: Optional[float] = None
    ) -> torch.Tensor:
        """Origin of ``sensor_frame`` in ``frame_id``, the origin when it cannot be resolved."""
        try:
            sensor_pose = self.transform_provider.lookup(
                frame_id, sensor_frame, stamp, self.timeout
            )
        except TransformLookupError as e:
            log_warn(
                "Unable to lookup transform from "
                + sensor_frame
                + " to "
                + frame_id
                + ", using origin as sensor position: "
                + str(e)
            )
            return torch.zeros(3, **self.tensor_args.as_torch_dict())
        return sensor_pose.position.view(3).to(**self.tensor_args.as_torch_dict())
