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
Posed, inflatable collision bodies that answer point containment and ray intersection queries.

Each body is built from a :class:`~robot_self_filter.geom.types.ShapeDescriptor` and supports the
same capability set: :meth:`Body.set_pose`, :meth:`Body.set_scale`, :meth:`Body.set_padding`,
:meth:`Body.contains_points`, :meth:`Body.intersects_ray`, :meth:`Body.compute_volume` and
:meth:`Body.compute_bounding_sphere`. Queries are evaluated for a batch of points at once, with
points given as a tensor of shape (n, 3) in the same frame as the body pose.

Scale multiplies the dimensions of a body and padding is then added to every dimension, so a
sphere of radius r becomes a sphere of radius r * scale + padding.
"""

from __future__ import annotations

# Standard Library
import math
from dataclasses import dataclass
from typing import List, Tuple

# Third Party
import numpy as np
import torch
import trimesh

# robot_self_filter
from robot_self_filter.geom.types import Cuboid, Cylinder, Sphere
from robot_self_filter.types.base import TensorDeviceType
from robot_self_filter.types.math import Pose
from robot_self_filter.types.tensor import T_NPoints, T_NValue_bool
from robot_self_filter.util.logger import log_error

#: Directions shorter than this are treated as degenerate rays that never hit.
RAY_EPSILON = 1e-9


@dataclass
class BoundingSphere:
    """Sphere bounding a body, in the frame of the body pose."""

    #: Center of sphere, shape (3,).
    center: torch.Tensor

    #: Radius of sphere in meters.
    radius: float

    @property
    def radius2(self) -> float:
        return self.radius * self.radius


def merge_bounding_spheres(
    spheres: List[BoundingSphere], tensor_args: TensorDeviceType = TensorDeviceType()
) -> BoundingSphere:
    """Compute a sphere enclosing all given spheres.

    Spheres are merged one at a time: a sphere that already contains the next one is kept, a sphere
    contained in the next one is replaced by it, and otherwise the smallest sphere enclosing the
    pair is used. An empty list gives a zero radius sphere at the origin.
    """
    if len(spheres) == 0:
        return BoundingSphere(center=torch.zeros(3, **tensor_args.as_torch_dict()), radius=0.0)
    center = spheres[0].center.clone()
    radius = spheres[0].radius
    for sphere in spheres[1:]:
        if sphere.radius <= 0.0:
            continue
        delta = center - sphere.center
        dist = float(torch.linalg.norm(delta))
        if dist + radius <= sphere.radius:
            center = sphere.center.clone()
            radius = sphere.radius
        elif dist + sphere.radius > radius:
            new_radius = (dist + radius + sphere.radius) / 2.0
            center = delta / dist * (new_radius - sphere.radius) + sphere.center
            radius = new_radius
    return BoundingSphere(center=center, radius=radius)


class Body:
    """Base class of posed collision bodies."""

    def __init__(self, tensor_args: TensorDeviceType = TensorDeviceType()):
        self.tensor_args = tensor_args
        self.scale = 1.0
        self.padding = 0.0
        self.pose = Pose.identity(tensor_args)
        self._rotation = torch.eye(3, **tensor_args.as_torch_dict())
        self._translation = torch.zeros(3, **tensor_args.as_torch_dict())

    def set_scale(self, scale: float):
        self.scale = float(scale)
        self.update_internal_data()

    def set_padding(self, padding: float):
        self.padding = float(padding)
        self.update_internal_data()

    def set_pose(self, pose: Pose):
        self.pose = pose
        self._rotation = pose.get_rotation().view(3, 3).to(**self.tensor_args.as_torch_dict())
        self._translation = pose.position.view(3).to(**self.tensor_args.as_torch_dict())

    def to_local(self, points: T_NPoints) -> T_NPoints:
        return (points - self._translation) @ self._rotation

    def to_world(self, points: T_NPoints) -> T_NPoints:
        return points @ self._rotation.transpose(0, 1) + self._translation

    def contains_points(self, points: T_NPoints) -> T_NValue_bool:
        """Check which points are inside the body.

        Args:
            points: Points of shape (n, 3).

        Returns:
            Boolean tensor of shape (n,), True for points inside or on the surface.
        """
        return self._contains_local(self.to_local(points))

    def intersects_ray(
        self, origins: T_NPoints, directions: T_NPoints
    ) -> Tuple[T_NValue_bool, T_NPoints]:
        """Intersect rays with the body.

        Only intersections in front of the ray origin are reported, so a ray starting inside the
        body returns the point where it leaves the body.

        Args:
            origins: Ray origins of shape (n, 3).
            directions: Unit ray directions of shape (n, 3). Zero directions never hit.

        Returns:
            Tuple of a boolean hit tensor of shape (n,) and the first intersection point of each
            ray, shape (n, 3). Rows without a hit hold the ray origin.
        """
        local_origins = self.to_local(origins)
        local_directions = directions @ self._rotation
        distance = self._ray_distance_local(local_origins, local_directions)
        valid_direction = torch.linalg.norm(directions, dim=-1) > RAY_EPSILON
        hit = torch.isfinite(distance) & (distance >= 0.0) & valid_direction
        distance = torch.where(hit, distance, torch.zeros_like(distance))
        hit_points = origins + distance.unsqueeze(-1) * directions
        return hit, hit_points

    def compute_bounding_sphere(self) -> BoundingSphere:
        return BoundingSphere(
            center=self.to_world(self._local_center().view(1, 3)).view(3),
            radius=self._bounding_radius(),
        )

    def compute_volume(self) -> float:
        raise NotImplementedError

    def update_internal_data(self):
        raise NotImplementedError

    def _local_center(self) -> torch.Tensor:
        return torch.zeros(3, **self.tensor_args.as_torch_dict())

    def _bounding_radius(self) -> float:
        raise NotImplementedError

    def _contains_local(self, points: T_NPoints) -> T_NValue_bool:
        raise NotImplementedError

    def _ray_distance_local(self, origins: T_NPoints, directions: T_NPoints) -> torch.Tensor:
        """Distance along each ray to the first intersection, inf when there is none."""
        raise NotImplementedError


class SphereBody(Body):
    def __init__(self, shape: Sphere, tensor_args: TensorDeviceType = TensorDeviceType()):
        super().__init__(tensor_args)
        self.radius = float(shape.radius)
        self.update_internal_data()

    def update_internal_data(self):
        self.radius_u = self.radius * self.scale + self.padding
        self.radius2 = self.radius_u * self.radius_u

    def compute_volume(self) -> float:
        return 4.0 * math.pi * self.radius_u**3 / 3.0

    def _bounding_radius(self) -> float:
        return self.radius_u

    def _contains_local(self, points: T_NPoints) -> T_NValue_bool:
        return torch.sum(points * points, dim=-1) <= self.radius2

    def _ray_distance_local(self, origins: T_NPoints, directions: T_NPoints) -> torch.Tensor:
        b = torch.sum(origins * directions, dim=-1)
        c = torch.sum(origins * origins, dim=-1) - self.radius2
        disc = b * b - c
        root = torch.sqrt(torch.clamp(disc, min=0.0))
        t_near = -b - root
        t_far = -b + root
        distance = torch.where(t_near >= 0.0, t_near, t_far)
        return torch.where(disc >= 0.0, distance, torch.full_like(distance, math.inf))


class ConvexBody(Body):
    """Body bounded by half spaces ``n . (x - c) <= h``, with center c in the body frame."""

    def _set_planes(self, normals: torch.Tensor, offsets: torch.Tensor):
        self._normals = normals
        self._offsets = offsets

    def _contains_local(self, points: T_NPoints) -> T_NValue_bool:
        projection = (points - self._local_center()) @ self._normals.transpose(0, 1)
        return torch.all(projection <= self._offsets, dim=-1)

    def _ray_distance_local(self, origins: T_NPoints, directions: T_NPoints) -> torch.Tensor:
        # clip the ray against every half space, keeping the parametric interval inside all
        num = self._offsets - (origins - self._local_center()) @ self._normals.transpose(0, 1)
        den = directions @ self._normals.transpose(0, 1)
        parallel = torch.abs(den) < RAY_EPSILON
        safe_den = torch.where(parallel, torch.ones_like(den), den)
        t = num / safe_den
        t_enter = torch.where((den < 0.0) & ~parallel, t, torch.full_like(t, -math.inf))
        t_exit = torch.where((den > 0.0) & ~parallel, t, torch.full_like(t, math.inf))
        t_enter = torch.max(t_enter, dim=-1)[0]
        t_exit = torch.min(t_exit, dim=-1)[0]
        missed = torch.any(parallel & (num < 0.0), dim=-1) | (t_enter > t_exit) | (t_exit < 0.0)
        distance = torch.where(t_enter >= 0.0, t_enter, t_exit)
        return torch.where(missed, torch.full_like(distance, math.inf), distance)


class BoxBody(ConvexBody):
    def __init__(self, shape: Cuboid, tensor_args: TensorDeviceType = TensorDeviceType()):
        super().__init__(tensor_args)
        self.dims = [float(x) for x in shape.dims]
        if len(self.dims) != 3:
            log_error("Box requires three dimensions, got " + str(shape.dims))
        eye = torch.eye(3, **tensor_args.as_torch_dict())
        self._box_normals = torch.cat((eye, -eye), dim=0)
        self.update_internal_data()

    def update_internal_data(self):
        self.half_extents = [d * self.scale / 2.0 + self.padding for d in self.dims]
        offsets = self.tensor_args.to_device(self.half_extents * 2)
        self._set_planes(self._box_normals, offsets)

    def compute_volume(self) -> float:
        return 8.0 * self.half_extents[0] * self.half_extents[1] * self.half_extents[2]

    def _bounding_radius(self) -> float:
        return math.sqrt(sum(e * e for e in self.half_extents))

    def _contains_local(self, points: T_NPoints) -> T_NValue_bool:
        return torch.all(torch.abs(points) <= self._offsets[:3], dim=-1)


class CylinderBody(Body):
    """Cylinder with its axis along the local z axis."""

    def __init__(self, shape: Cylinder, tensor_args: TensorDeviceType = TensorDeviceType()):
        super().__init__(tensor_args)
        self.radius = float(shape.radius)
        self.length = float(shape.length)
        self.update_internal_data()

    def update_internal_data(self):
        self.radius_u = self.radius * self.scale + self.padding
        self.radius2 = self.radius_u * self.radius_u
        self.half_length = self.length * self.scale / 2.0 + self.padding

    def compute_volume(self) -> float:
        return 2.0 * math.pi * self.radius2 * self.half_length

    def _bounding_radius(self) -> float:
        return math.sqrt(self.radius2 + self.half_length * self.half_length)

    def _contains_local(self, points: T_NPoints) -> T_NValue_bool:
        radial = points[:, 0] * points[:, 0] + points[:, 1] * points[:, 1]
        return (torch.abs(points[:, 2]) <= self.half_length) & (radial <= self.radius2)

    def _ray_distance_local(self, origins: T_NPoints, directions: T_NPoints) -> torch.Tensor:
        ox, oy, oz = origins[:, 0], origins[:, 1], origins[:, 2]
        dx, dy, dz = directions[:, 0], directions[:, 1], directions[:, 2]
        inf = torch.full_like(ox, math.inf)

        # side wall
        a = dx * dx + dy * dy
        b = ox * dx + oy * dy
        c = ox * ox + oy * oy - self.radius2
        disc = b * b - a * c
        side_ok = (a > RAY_EPSILON) & (disc >= 0.0)
        safe_a = torch.where(side_ok, a, torch.ones_like(a))
        root = torch.sqrt(torch.clamp(disc, min=0.0))
        candidates = []
        for t in ((-b - root) / safe_a, (-b + root) / safe_a):
            z = oz + t * dz
            valid = side_ok & (t >= 0.0) & (torch.abs(z) <= self.half_length)
            candidates.append(torch.where(valid, t, inf))

        # caps
        cap_ok = torch.abs(dz) > RAY_EPSILON
        safe_dz = torch.where(cap_ok, dz, torch.ones_like(dz))
        for cap_z in (-self.half_length, self.half_length):
            t = (cap_z - oz) / safe_dz
            x = ox + t * dx
            y = oy + t * dy
            valid = cap_ok & (t >= 0.0) & (x * x + y * y <= self.radius2)
            candidates.append(torch.where(valid, t, inf))
        return torch.min(torch.stack(candidates, dim=-1), dim=-1)[0]


class ConvexMeshBody(ConvexBody):
    """Convex hull of a mesh.

    The hull planes are kept relative to the center of the hull's bounding box, so that scale
    and padding move every face outwards by ``h * scale + padding``.
    """

    def __init__(self, mesh: trimesh.Trimesh, tensor_args: TensorDeviceType = TensorDeviceType()):
        super().__init__(tensor_args)
        hull = mesh.convex_hull
        if hull.volume <= 0.0 or len(hull.faces) < 4:
            log_error("Mesh convex hull is degenerate")
        vertices = np.asarray(hull.vertices, dtype=np.float64)
        center = (vertices.min(axis=0) + vertices.max(axis=0)) / 2.0
        normals = np.asarray(hull.face_normals, dtype=np.float64)
        offsets = np.sum(normals * (vertices[hull.faces[:, 0]] - center), axis=-1)
        planes = np.concatenate((normals, offsets[:, None]), axis=-1)
        # coplanar triangles share a plane
        planes = np.unique(np.round(planes, 9), axis=0)
        if np.any(planes[:, 3] <= 0.0):
            log_error("Mesh convex hull does not enclose its center")

        self._hull_vertices = vertices
        self._hull_center = center
        self._center = tensor_args.to_device(center)
        self._unit_offsets = tensor_args.to_device(planes[:, 3])
        self._mesh_normals = tensor_args.to_device(planes[:, :3])
        self._max_vertex_distance = float(np.max(np.linalg.norm(vertices - center, axis=-1)))
        self._min_offset = float(np.min(planes[:, 3]))
        self.update_internal_data()

    def update_internal_data(self):
        self._set_planes(self._mesh_normals, self._unit_offsets * self.scale + self.padding)

    def get_scaled_vertices(self) -> np.ndarray:
        direction = self._hull_vertices - self._hull_center
        norm = np.linalg.norm(direction, axis=-1, keepdims=True)
        unit = direction / np.where(norm > 0.0, norm, 1.0)
        return self._hull_center + direction * self.scale + unit * self.padding

    def compute_volume(self) -> float:
        return float(trimesh.convex.convex_hull(self.get_scaled_vertices()).volume)

    def _local_center(self) -> torch.Tensor:
        return self._center

    def _bounding_radius(self) -> float:
        # padded planes lie inside the hull scaled by scale + padding / min offset
        return self._max_vertex_distance * (self.scale + self.padding / self._min_offset)
