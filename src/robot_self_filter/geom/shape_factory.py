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
"""Builds the scaled and unscaled collision bodies of a link from its shape descriptor."""

# Standard Library
from typing import Optional, Tuple

# Third Party
import trimesh

# robot_self_filter
from robot_self_filter.geom.bodies import (
    Body,
    BoxBody,
    ConvexMeshBody,
    CylinderBody,
    SphereBody,
)
from robot_self_filter.geom.types import Cuboid, Cylinder, Mesh, ShapeDescriptor, Sphere
from robot_self_filter.types.base import TensorDeviceType
from robot_self_filter.util.logger import log_warn


def load_mesh(shape: Mesh) -> Optional[trimesh.Trimesh]:
    """Load the mesh of a descriptor, returning None when it cannot be used."""
    try:
        mesh = shape.get_trimesh_mesh()
    except Exception as e:
        # trimesh raises many different errors depending on the file format
        log_warn("Could not load mesh " + str(shape.file_path) + ": " + str(e))
        return None
    if mesh.is_empty:
        log_warn("Loaded mesh " + str(shape.file_path) + " is empty")
        return None
    return mesh


def create_body_from_shape(
    shape: ShapeDescriptor,
    tensor_args: TensorDeviceType = TensorDeviceType(),
    mesh: Optional[trimesh.Trimesh] = None,
) -> Optional[Body]:
    """Create a body at unit scale, zero padding and identity pose.

    Args:
        shape: Shape descriptor.
        tensor_args: Device and floating point precision for the body.
        mesh: Already loaded mesh for :class:`Mesh` descriptors.

    Returns:
        The body, or None if the descriptor kind is not supported or the mesh is unusable.
    """
    if isinstance(shape, Sphere):
        return SphereBody(shape, tensor_args)
    if isinstance(shape, Cuboid):
        if len(shape.dims) != 3:
            log_warn("Box requires three dimensions, got " + str(shape.dims))
            return None
        return BoxBody(shape, tensor_args)
    if isinstance(shape, Cylinder):
        return CylinderBody(shape, tensor_args)
    if isinstance(shape, Mesh):
        if mesh is None:
            mesh = load_mesh(shape)
        if mesh is None:
            return None
        try:
            return ConvexMeshBody(mesh, tensor_args)
        except Exception as e:
            # qhull errors on flat or degenerate meshes
            log_warn("Could not compute convex hull of mesh %s: %s" % (shape.file_path, e))
            return None
    log_warn("Unknown shape type: " + type(shape).__name__)
    return None


def build_link_bodies(
    shape: ShapeDescriptor,
    scale: float = 1.0,
    padding: float = 0.0,
    tensor_args: TensorDeviceType = TensorDeviceType(),
) -> Optional[Tuple[Body, Body, float]]:
    """Build the scaled and unscaled bodies of a link.

    Args:
        shape: Collision shape of the link.
        scale: Scale applied to the scaled body.
        padding: Padding added to the scaled body.
        tensor_args: Device and floating point precision for the bodies.

    Returns:
        Tuple of scaled body, unscaled body and volume of the scaled body, or None when no body
        can be created from the shape.
    """
    mesh = None
    if isinstance(shape, Mesh):
        mesh = load_mesh(shape)
        if mesh is None:
            return None
    body = create_body_from_shape(shape, tensor_args, mesh)
    if body is None:
        return None
    unscaled_body = create_body_from_shape(shape, tensor_args, mesh)
    body.set_scale(scale)
    body.set_padding(padding)
    return body, unscaled_body, body.compute_volume()
