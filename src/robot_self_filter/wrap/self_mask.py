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
"""Self filtering of point clouds: label points that belong to the robot or its shadow.

:class:`SelfMask` is the entry point. It builds the collision bodies of the monitored links once
with :meth:`SelfMask.configure` and, for every point cloud, places them in the frame of the cloud
and labels each point with a :class:`~robot_self_filter.wrap.model.types.MaskLabel`.

Example:

.. code-block:: python

    config = SelfMaskConfig.load_from_file("self_mask.yml")
    self_mask = SelfMask.from_config(
        config, UrdfModelResolver("robot.urdf"), transform_provider
    )
    self_mask.configure(config.links)
    labels = self_mask.mask_intersection(points, "base_link", sensor_frame_or_pos="camera")
"""

from __future__ import annotations

# Standard Library
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

# Third Party
import torch

# robot_self_filter
from robot_self_filter.robot_model.model_resolver import ModelResolver
from robot_self_filter.robot_model.transform_provider import TransformProvider
from robot_self_filter.robot_model.urdf_model_resolver import UrdfModelResolver
from robot_self_filter.types.base import TensorDeviceType
from robot_self_filter.types.tensor import T_NValue_int
from robot_self_filter.util.logger import log_error, log_info, log_warn
from robot_self_filter.util_file import get_assets_path, get_configs_path, join_path, load_yaml
from robot_self_filter.wrap.model.body_set import BodySet
from robot_self_filter.wrap.model.classifier import (
    ShadowCallback,
    classify_containment,
    classify_in_batches,
    classify_intersection,
    get_mask_containment,
    get_mask_intersection,
    get_points_tensor,
)
from robot_self_filter.wrap.model.frame_updater import FrameSnapshot, FrameUpdater
from robot_self_filter.wrap.model.types import LinkInfo, MaskLabel


@dataclass
class SelfMaskConfig:
    """Parameters of a :class:`SelfMask`."""

    #: Links to monitor.
    links: List[LinkInfo] = field(default_factory=list)

    #: Scale used for links that do not set one.
    default_scale: float = 1.0

    #: Padding in meters used for links that do not set one.
    default_padding: float = 0.0

    #: Points closer than this to the sensor are labeled inside.
    min_sensor_dist: float = 0.01

    #: Seconds to wait for each transform lookup.
    transform_timeout: float = 0.1

    #: Device and floating point precision of bodies and labels.
    tensor_args: TensorDeviceType = field(default_factory=TensorDeviceType)

    #: URDF to read link geometry from, relative paths are resolved in the assets directory.
    urdf_path: Optional[str] = None

    @staticmethod
    def from_dict(
        data_dict: Dict[str, Any], tensor_args: TensorDeviceType = TensorDeviceType()
    ) -> SelfMaskConfig:
        """Create config from a dictionary, optionally nested under a ``self_mask`` key.

        Args:
            data_dict: Dictionary with ``self_see_links`` and optional defaults.
            tensor_args: Device and floating point precision.

        Returns:
            SelfMaskConfig: parsed configuration.
        """
        if "self_mask" in data_dict:
            data_dict = data_dict["self_mask"]
        if "self_see_links" not in data_dict:
            log_error("self_see_links is required in self mask configuration")
        default_scale = float(data_dict.get("default_scale", 1.0))
        default_padding = float(data_dict.get("default_padding", 0.0))
        links = [
            LinkInfo.create(x, default_scale, default_padding)
            for x in data_dict["self_see_links"]
        ]
        return SelfMaskConfig(
            links=links,
            default_scale=default_scale,
            default_padding=default_padding,
            min_sensor_dist=float(data_dict.get("min_sensor_dist", 0.01)),
            transform_timeout=float(data_dict.get("transform_timeout", 0.1)),
            tensor_args=tensor_args,
            urdf_path=data_dict.get("urdf_path", None),
        )

    @staticmethod
    def load_from_file(
        file_path: str, tensor_args: TensorDeviceType = TensorDeviceType()
    ) -> SelfMaskConfig:
        """Load config from a yaml file. Relative paths are resolved in the configs directory."""
        data_dict = load_yaml(join_path(get_configs_path(), file_path))
        return SelfMaskConfig.from_dict(data_dict, tensor_args)

    def get_model_resolver(self) -> Optional[UrdfModelResolver]:
        """Resolver over :attr:`urdf_path`, meshes are resolved next to the URDF file."""
        if self.urdf_path is None:
            return None
        urdf_path = join_path(get_assets_path(), self.urdf_path)
        return UrdfModelResolver(
            urdf_path, mesh_root=os.path.dirname(urdf_path), tensor_args=self.tensor_args
        )


class SelfMask:
    """Labels points of a cloud as inside the robot, outside, or shadowed by the robot.

    The instance is not thread safe: callers serialize :meth:`configure` against frame updates
    and classification. Labels are returned as int32 tensors of :class:`MaskLabel` values.
    """

    def __init__(
        self,
        model_resolver: Optional[ModelResolver],
        transform_provider: TransformProvider,
        tensor_args: TensorDeviceType = TensorDeviceType(),
        transform_timeout: float = 0.1,
        min_sensor_dist: float = 0.0,
        batch_size: Optional[int] = None,
    ):
        """Initialize self mask. Call :meth:`configure` before classifying points.

        Args:
            model_resolver: Source of collision geometry of links.
            transform_provider: Source of link and sensor poses.
            tensor_args: Device and floating point precision.
            transform_timeout: Seconds to wait for each transform lookup.
            min_sensor_dist: Default sensor standoff of :meth:`mask_intersection`.
            batch_size: Maximum number of points classified at once, None for no limit.
        """
        self._model_resolver = model_resolver
        self.tensor_args = tensor_args
        self.min_sensor_dist = min_sensor_dist
        self.batch_size = batch_size
        self._frame_updater = FrameUpdater(transform_provider, transform_timeout, tensor_args)
        self._body_set = BodySet()
        self._snapshot: Optional[FrameSnapshot] = None

    @staticmethod
    def from_config(
        config: SelfMaskConfig,
        model_resolver: Optional[ModelResolver],
        transform_provider: TransformProvider,
        batch_size: Optional[int] = None,
    ) -> SelfMask:
        """Create self mask from config. Links in the config still need :meth:`configure`.

        When ``model_resolver`` is None, link geometry is read from ``config.urdf_path``.
        """
        if model_resolver is None:
            model_resolver = config.get_model_resolver()
        return SelfMask(
            model_resolver,
            transform_provider,
            tensor_args=config.tensor_args,
            transform_timeout=config.transform_timeout,
            min_sensor_dist=config.min_sensor_dist,
            batch_size=batch_size,
        )

    def configure(self, links: Sequence[Union[LinkInfo, str, Sequence[Any]]]) -> bool:
        """Rebuild the monitored bodies from a list of links.

        Links that cannot be resolved are skipped with a warning, which may leave no monitored
        links. Every point is then labeled outside.

        Args:
            links: Links as :class:`LinkInfo`, names, or (name, scale, padding) tuples.

        Returns:
            bool: False when there is no robot model to resolve links from.
        """
        self._body_set = BodySet()
        self._snapshot = None
        if self._model_resolver is None or not self._model_resolver.has_model():
            log_warn("Robot model is not available, self mask is not configured")
            return False
        link_infos = [LinkInfo.create(x) for x in links]
        self._body_set = BodySet.configure(link_infos, self._model_resolver, self.tensor_args)
        log_info("Self mask monitors " + str(len(self._body_set)) + " links")
        return True

    def get_link_names(self) -> List[str]:
        """Names of monitored links, largest body first."""
        return self._body_set.link_names

    @property
    def missing_links(self) -> List[str]:
        return self._body_set.missing_links

    @property
    def body_set(self) -> BodySet:
        return self._body_set

    @property
    def snapshot(self) -> Optional[FrameSnapshot]:
        """Result of the last frame update, None before the first one."""
        return self._snapshot

    def assume_frame(
        self,
        frame_id: str,
        stamp: Optional[float] = None,
        sensor_frame: Optional[str] = None,
        sensor_pos: Optional[Union[Sequence[float], torch.Tensor]] = None,
        min_sensor_dist: float = 0.0,
    ) -> FrameSnapshot:
        """Place monitored bodies in ``frame_id``, see :meth:`FrameUpdater.assume_frame`."""
        self._snapshot = self._frame_updater.assume_frame(
            self._body_set,
            frame_id,
            stamp,
            sensor_frame=sensor_frame,
            sensor_pos=sensor_pos,
            min_sensor_dist=min_sensor_dist,
        )
        return self._snapshot

    def mask_containment(
        self, points, frame_id: str, stamp: Optional[float] = None
    ) -> T_NValue_int:
        """Label points of shape (n, 3) in ``frame_id`` as INSIDE or OUTSIDE.

        Args:
            points: Points as tensor, numpy array or list.
            frame_id: Frame of the points.
            stamp: Time stamp of the points.

        Returns:
            Labels of shape (n,).
        """
        points = get_points_tensor(points, self.tensor_args)
        if self._body_set.is_empty():
            return self._get_outside_labels(points)
        snapshot = self.assume_frame(frame_id, stamp)
        return classify_in_batches(
            lambda x: classify_containment(self._body_set, snapshot, x), points, self.batch_size
        )

    def mask_intersection(
        self,
        points,
        frame_id: str,
        stamp: Optional[float] = None,
        sensor_frame_or_pos: Optional[Union[str, Sequence[float], torch.Tensor]] = None,
        min_sensor_dist: Optional[float] = None,
        shadow_callback: Optional[ShadowCallback] = None,
    ) -> T_NValue_int:
        """Label points of shape (n, 3) in ``frame_id`` as INSIDE, OUTSIDE or SHADOW.

        Without a sensor, points are labeled with :meth:`mask_containment`.

        Args:
            points: Points as tensor, numpy array or list.
            frame_id: Frame of the points.
            stamp: Time stamp of the points.
            sensor_frame_or_pos: Name of the sensor frame, or the sensor position in
                ``frame_id``.
            min_sensor_dist: Points closer than this to the sensor are labeled INSIDE. Defaults
                to the standoff given at construction.
            shadow_callback: Called with the occluding hit point of each SHADOW point.

        Returns:
            Labels of shape (n,).
        """
        sensor_frame = None
        sensor_pos = None
        if isinstance(sensor_frame_or_pos, str):
            sensor_frame = sensor_frame_or_pos
        elif sensor_frame_or_pos is not None:
            sensor_pos = sensor_frame_or_pos
        if not sensor_frame and sensor_pos is None:
            return self.mask_containment(points, frame_id, stamp)
        if min_sensor_dist is None:
            min_sensor_dist = self.min_sensor_dist

        points = get_points_tensor(points, self.tensor_args)
        if self._body_set.is_empty():
            return self._get_outside_labels(points)
        snapshot = self.assume_frame(
            frame_id,
            stamp,
            sensor_frame=sensor_frame,
            sensor_pos=sensor_pos,
            min_sensor_dist=min_sensor_dist,
        )
        return classify_in_batches(
            lambda x: classify_intersection(self._body_set, snapshot, x, shadow_callback),
            points,
            self.batch_size,
        )

    def get_mask_containment(self, point) -> MaskLabel:
        """Label a single point with the body poses of the last frame update."""
        point = get_points_tensor(point, self.tensor_args)[0]
        return get_mask_containment(self._body_set, point)

    def get_mask_intersection(
        self, point, shadow_callback: Optional[ShadowCallback] = None
    ) -> MaskLabel:
        """Label a single point with the body poses and sensor of the last frame update.

        Falls back to :meth:`get_mask_containment` when the last update had no sensor.
        """
        if self._snapshot is None or not self._snapshot.has_sensor:
            return self.get_mask_containment(point)
        point = get_points_tensor(point, self.tensor_args)[0]
        return get_mask_intersection(self._body_set, self._snapshot, point, shadow_callback)

    def _get_outside_labels(self, points: torch.Tensor) -> T_NValue_int:
        return torch.full(
            (points.shape[0],), int(MaskLabel.OUTSIDE), dtype=torch.int32, device=points.device
        )
