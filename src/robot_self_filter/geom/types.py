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
"""Shape descriptors for link collision geometry.

Descriptors are immutable records of the collision geometry of a link, as found in a robot
model. They carry no pose and no inflation; bodies that can be posed, scaled, and queried
are built from them by :mod:`robot_self_filter.geom.shape_factory`.
"""

from __future__ import annotations

# Standard Library
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

# Third Party
import numpy as np
import trimesh

# robot_self_filter
from robot_self_filter.util.logger import log_error


@dataclass(frozen=True)
class ShapeDescriptor:
    """Base class for all shape descriptors."""

    @staticmethod
    def from_dict(data_dict: Dict[str, Any]) -> ShapeDescriptor:
        """Create a descriptor from a dictionary with a ``type`` key.

        Supported types are ``sphere`` (radius), ``box`` or ``cuboid`` (dims), ``cylinder``
        (radius, length) and ``mesh`` (file_path or vertices and faces, optional scale).
        """
        shape_type = str(data_dict.get("type", "")).lower()
        if shape_type == "sphere":
            return Sphere(radius=float(data_dict["radius"]))
        if shape_type in ["box", "cuboid"]:
            return Cuboid(dims=tuple(float(x) for x in data_dict["dims"]))
        if shape_type == "cylinder":
            return Cylinder(
                radius=float(data_dict["radius"]),
                length=float(data_dict.get("length", data_dict.get("height", 0.0))),
            )
        if shape_type == "mesh":
            vertices = data_dict.get("vertices")
            faces = data_dict.get("faces")
            return Mesh(
                file_path=data_dict.get("file_path"),
                vertices=None if vertices is None else tuple(map(tuple, vertices)),
                faces=None if faces is None else tuple(map(tuple, faces)),
                scale=mesh_scale(data_dict.get("scale")),
            )
        log_error("Unknown shape type: " + str(data_dict.get("type")))


@dataclass(frozen=True)
class Sphere(ShapeDescriptor):
    """Sphere centered at the collision origin."""

    #: Radius of sphere in meters.
    radius: float = 0.0


@dataclass(frozen=True)
class Cuboid(ShapeDescriptor):
    """Box centered at the collision origin."""

    #: Dimensions of cuboid in meters [x_length, y_length, z_length].
    dims: Tuple[float, float, float] = (0.0, 0.0, 0.0)


@dataclass(frozen=True)
class Cylinder(ShapeDescriptor):
    """Cylinder centered at the collision origin, with its axis along z."""

    #: Radius of cylinder in meters.
    radius: float = 0.0

    #: Length of cylinder along its axis in meters.
    length: float = 0.0


@dataclass(frozen=True)
class Mesh(ShapeDescriptor):
    """Mesh loaded from a resource file or given as vertices and faces."""

    #: Path to mesh file.
    file_path: Optional[str] = None

    #: Vertices of mesh.
    vertices: Optional[Tuple[Tuple[float, float, float], ...]] = None

    #: Faces of mesh.
    faces: Optional[Tuple[Tuple[int, int, int], ...]] = None

    #: Per axis scale applied to vertices when loading.
    scale: Optional[Tuple[float, float, float]] = None

    def get_trimesh_mesh(self, process: bool = True) -> trimesh.Trimesh:
        """Load the mesh.

        Args:
            process: process flag passed to :class:`trimesh.load`.

        Returns:
            trimesh.Trimesh: Instance of mesh with scale applied.
        """
        if self.file_path is not None:
            m = trimesh.load(self.file_path, process=process, force="mesh")
            if isinstance(m, trimesh.Scene):
                m = m.dump(concatenate=True)
        elif self.vertices is not None and self.faces is not None:
            m = trimesh.Trimesh(np.array(self.vertices), np.array(self.faces), process=process)
        else:
            log_error("Mesh requires file_path or vertices and faces")
        if self.scale is not None:
            m.vertices = np.ravel(self.scale) * m.vertices
        return m


def mesh_scale(scale: Optional[Any]) -> Optional[Tuple[float, float, float]]:
    """Normalize a mesh scale given as a scalar, a one element or a three element sequence."""
    if scale is None:
        return None
    if isinstance(scale, (int, float)):
        return (float(scale),) * 3
    values = np.ravel(np.asarray(scale, dtype=float))
    if values.shape[0] == 1:
        return (float(values[0]),) * 3
    return tuple(float(x) for x in values[:3])
