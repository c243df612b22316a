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
"""Resolvers map link names to their collision geometry in the robot model."""

from __future__ import annotations

# Standard Library
from dataclasses import dataclass
from typing import Any, Dict, Optional

# robot_self_filter
from robot_self_filter.geom.types import ShapeDescriptor
from robot_self_filter.types.base import TensorDeviceType
from robot_self_filter.types.math import Pose


@dataclass(frozen=True)
class LinkGeometry:
    """Collision geometry of a link."""

    #: Collision shape of the link.
    shape: ShapeDescriptor

    #: Pose of the collision origin in the frame of the link.
    offset: Pose


class ModelResolver:
    """Base class for robot model resolvers.

    Resolvers never raise for unknown links, :meth:`resolve` returns None instead.
    """

    def has_model(self) -> bool:
        """Return False when no robot model is available at all."""
        return True

    def resolve(self, link_name: str) -> Optional[LinkGeometry]:
        raise NotImplementedError


class DictModelResolver(ModelResolver):
    """Resolver over an in-memory map of link name to :class:`LinkGeometry`."""

    def __init__(self, geometries: Optional[Dict[str, LinkGeometry]]):
        self._geometries = geometries

    def has_model(self) -> bool:
        return self._geometries is not None

    def resolve(self, link_name: str) -> Optional[LinkGeometry]:
        if self._geometries is None:
            return None
        return self._geometries.get(link_name)

    @staticmethod
    def from_dict(
        data_dict: Dict[str, Dict[str, Any]], tensor_args: TensorDeviceType = TensorDeviceType()
    ) -> DictModelResolver:
        """Create a resolver from a dictionary of link name to shape dictionary.

        Each shape dictionary follows :meth:`ShapeDescriptor.from_dict` and may have an
        ``offset`` key with the collision origin as [x, y, z, qw, qx, qy, qz].
        """
        geometries = {}
        for link_name, shape_dict in data_dict.items():
            offset = shape_dict.get("offset", [0, 0, 0, 1, 0, 0, 0])
            geometries[link_name] = LinkGeometry(
                shape=ShapeDescriptor.from_dict(shape_dict),
                offset=Pose.from_list(offset, tensor_args),
            )
        return DictModelResolver(geometries)
