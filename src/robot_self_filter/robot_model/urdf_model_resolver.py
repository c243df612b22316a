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
Reads link collision geometry from an `URDF <https://wiki.ros.org/urdf>`__ file.
"""

# Standard Library
import os
from typing import Optional

# Third Party
import numpy as np
import yourdfpy
from lxml import etree

# robot_self_filter
from robot_self_filter.geom.types import Cuboid, Cylinder, Mesh, ShapeDescriptor, Sphere, mesh_scale
from robot_self_filter.robot_model.model_resolver import LinkGeometry, ModelResolver
from robot_self_filter.types.base import TensorDeviceType
from robot_self_filter.types.math import Pose
from robot_self_filter.util.logger import log_warn
from robot_self_filter.util_file import join_path


class UrdfModelResolver(ModelResolver):
    """Resolves the first collision element of each link of an URDF."""

    def __init__(
        self,
        urdf_path: str,
        mesh_root: str = "",
        tensor_args: TensorDeviceType = TensorDeviceType(),
    ) -> None:
        """Initialize instance with URDF file path.

        Args:
            urdf_path: Path to the URDF file.
            mesh_root: Absolute path to the directory where link meshes are stored. Relative and
                ``package://`` mesh paths are resolved against it.
            tensor_args: Device and floating point precision for collision offsets.
        """
        self.mesh_root = mesh_root
        self.tensor_args = tensor_args
        self._robot = None
        try:
            self._robot = yourdfpy.URDF.load(
                urdf_path,
                load_meshes=False,
                build_scene_graph=False,
                mesh_dir=mesh_root,
                filename_handler=yourdfpy.filename_handler_null,
            )
        except (OSError, ValueError, etree.XMLSyntaxError) as e:
            log_warn("Unable to parse URDF " + str(urdf_path) + ": " + str(e))

    def has_model(self) -> bool:
        return self._robot is not None

    def resolve(self, link_name: str) -> Optional[LinkGeometry]:
        if self._robot is None or link_name not in self._robot.link_map:
            return None
        link = self._robot.link_map[link_name]
        if len(link.collisions) == 0 or link.collisions[0].geometry is None:
            log_warn("No collision geometry specified for link '" + link_name + "'")
            return None
        collision = link.collisions[0]
        shape = self._get_shape(collision.geometry)
        if shape is None:
            log_warn("Unable to construct collision shape for link '" + link_name + "'")
            return None
        if collision.origin is None:
            offset = Pose.identity(self.tensor_args)
        else:
            offset = Pose.from_matrix(np.asarray(collision.origin), self.tensor_args)
        return LinkGeometry(shape=shape, offset=offset)

    def _get_shape(self, geometry: yourdfpy.Geometry) -> Optional[ShapeDescriptor]:
        if geometry.sphere is not None:
            return Sphere(radius=float(geometry.sphere.radius))
        if geometry.box is not None:
            return Cuboid(dims=tuple(float(x) for x in np.ravel(geometry.box.size)))
        if geometry.cylinder is not None:
            return Cylinder(
                radius=float(geometry.cylinder.radius), length=float(geometry.cylinder.length)
            )
        if geometry.mesh is not None:
            if not geometry.mesh.filename:
                log_warn("Empty mesh filename")
                return None
            return Mesh(
                file_path=self.get_mesh_path(geometry.mesh.filename),
                scale=mesh_scale(geometry.mesh.scale),
            )
        return None

    def get_mesh_path(self, filename: str) -> str:
        """Resolve a mesh resource name to a file path."""
        for prefix in ["package://", "file://"]:
            if filename.startswith(prefix):
                filename = filename[len(prefix) :]
                if prefix == "file://":
                    return filename
        if os.path.isabs(filename) or self.mesh_root == "":
            return filename
        return join_path(self.mesh_root, filename)

    @property
    def link_names(self):
        if self._robot is None:
            return []
        return list(self._robot.link_map.keys())
