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
Labels points as inside the robot, outside the robot, or in the shadow of the robot as seen from
a sensor.

All points of a batch are evaluated together with tensor operations; points are independent of
each other given the body poses of a
:class:`~robot_self_filter.wrap.model.frame_updater.FrameSnapshot`.
Bodies are visited in the order of the :class:`~robot_self_filter.wrap.model.body_set.BodySet`,
largest first, and each body only tests the points that are still undecided.
"""

# Standard Library
from typing import Callable, List, Optional

# Third Party
import torch
from torch.profiler import record_function

# robot_self_filter
from robot_self_filter.geom.bodies import RAY_EPSILON, BoundingSphere
from robot_self_filter.types.base import TensorDeviceType
from robot_self_filter.types.tensor import T_NPoints, T_NValue_bool, T_NValue_int
from robot_self_filter.util.logger import log_error
from robot_self_filter.wrap.model.body_set import BodySet
from robot_self_filter.wrap.model.frame_updater import FrameSnapshot
from robot_self_filter.wrap.model.types import MaskLabel

#: Called with the point where the robot body blocks the view of a shadow point, shape (3,).
ShadowCallback = Callable[[torch.Tensor], None]


def get_points_tensor(points, tensor_args: TensorDeviceType = TensorDeviceType()) -> T_NPoints:
    """Convert points to a tensor of shape (n, 3)."""
    points = tensor_args.to_device(points)
    if points.numel() == 0:
        return points.reshape(0, 3)
    if points.shape[-1] != 3:
        log_error("Points should have shape (n, 3), got " + str(tuple(points.shape)))
    return points.reshape(-1, 3)


def in_sphere(points: T_NPoints, sphere: BoundingSphere) -> T_NValue_bool:
    diff = points - sphere.center
    return torch.sum(diff * diff, dim=-1) <= sphere.radius2


def contains_any(
    body_set: BodySet,
    points: T_NPoints,
    candidates: T_NValue_bool,
    use_unscaled: bool = False,
    bounding_spheres: Optional[List[BoundingSphere]] = None,
) -> T_NValue_bool:
    """Check which candidate points are inside any body.

    Args:
        body_set: Posed bodies.
        points: Points of shape (n, 3).
        candidates: Points to test, shape (n,). Other points are reported outside.
        use_unscaled: Test the unscaled bodies instead of the inflated bodies.
        bounding_spheres: Bounding sphere of each inflated body, to skip bodies far from a point.

    Returns:
        Boolean tensor of shape (n,).
    """
    inside = torch.zeros_like(candidates)
    for j, link in enumerate(body_set):
        test = candidates & ~inside
        if bounding_spheres is not None:
            test = test & in_sphere(points, bounding_spheres[j])
        idx = torch.nonzero(test).view(-1)
        if idx.shape[0] == 0:
            continue
        body = link.unscaled_body if use_unscaled else link.body
        inside[idx] = body.contains_points(points[idx])
    return inside


@record_function("classifier/classify_containment")
def classify_containment(
    body_set: BodySet,
    snapshot: Optional[FrameSnapshot],
    points: T_NPoints,
) -> T_NValue_int:
    """Label points inside any inflated body as INSIDE, all others as OUTSIDE.

    Points outside the merged bounding sphere of the robot are labeled OUTSIDE without testing
    any body. Without a snapshot every body is tested.

    Args:
        body_set: Bodies placed by the frame update that produced ``snapshot``.
        snapshot: Bounding volumes of the current frame.
        points: Points of shape (n, 3) in the frame of the snapshot.

    Returns:
        Labels of shape (n,), values of :class:`MaskLabel`.
    """
    labels = torch.full(
        (points.shape[0],), int(MaskLabel.OUTSIDE), dtype=torch.int32, device=points.device
    )
    if body_set.is_empty():
        return labels
    candidates = torch.ones(points.shape[0], dtype=torch.bool, device=points.device)
    bounding_spheres = None
    if snapshot is not None:
        candidates = in_sphere(points, snapshot.merged_sphere)
        bounding_spheres = snapshot.bounding_spheres
    inside = contains_any(body_set, points, candidates, bounding_spheres=bounding_spheres)
    labels[inside] = int(MaskLabel.INSIDE)
    return labels


@record_function("classifier/classify_intersection")
def classify_intersection(
    body_set: BodySet,
    snapshot: FrameSnapshot,
    points: T_NPoints,
    shadow_callback: Optional[ShadowCallback] = None,
    use_bounds: bool = True,
) -> T_NValue_int:
    """Label points as INSIDE, SHADOW or OUTSIDE given the sensor position of the snapshot.

    The first matching rule decides the label of a point:

    1. inside an unscaled body: INSIDE.
    2. closer to the sensor than ``snapshot.min_sensor_dist``: INSIDE.
    3. the ray from the point towards the sensor hits an inflated body between the point and
       the sensor: SHADOW, and ``shadow_callback`` is called with the hit point.
    4. inside an inflated body: INSIDE.
    5. otherwise OUTSIDE.

    Args:
        body_set: Bodies placed by the frame update that produced ``snapshot``.
        snapshot: Bounding volumes and sensor position of the current frame.
        points: Points of shape (n, 3) in the frame of the snapshot.
        shadow_callback: Called once per shadow point, in point order.
        use_bounds: Skip containment tests for points outside the bounding spheres.

    Returns:
        Labels of shape (n,), values of :class:`MaskLabel`.
    """
    if not snapshot.has_sensor:
        log_error("Intersection masking requires a sensor position")
    n_points = points.shape[0]
    labels = torch.full(
        (n_points,), int(MaskLabel.OUTSIDE), dtype=torch.int32, device=points.device
    )
    if body_set.is_empty():
        return labels

    candidates = torch.ones(n_points, dtype=torch.bool, device=points.device)
    bounding_spheres = None
    if use_bounds:
        candidates = in_sphere(points, snapshot.merged_sphere)
        bounding_spheres = snapshot.bounding_spheres

    inside = contains_any(
        body_set, points, candidates, use_unscaled=True, bounding_spheres=bounding_spheres
    )

    sensor_pos = snapshot.sensor_pos.to(dtype=points.dtype)
    to_sensor = sensor_pos - points
    distance = torch.linalg.norm(to_sensor, dim=-1)
    near_sensor = ~inside & (distance < snapshot.min_sensor_dist)
    inside = inside | near_sensor

    safe_distance = torch.where(distance > RAY_EPSILON, distance, torch.ones_like(distance))
    direction = torch.where(
        (distance > RAY_EPSILON).unsqueeze(-1),
        to_sensor / safe_distance.unsqueeze(-1),
        torch.zeros_like(to_sensor),
    )
    shadow = torch.zeros_like(inside)
    shadow_points = torch.zeros_like(points)
    for link in body_set:
        idx = torch.nonzero(~inside & ~shadow).view(-1)
        if idx.shape[0] == 0:
            break
        hit, hit_points = link.body.intersects_ray(points[idx], direction[idx])
        ahead = torch.sum(direction[idx] * (sensor_pos - hit_points), dim=-1) >= 0.0
        occluded = hit & ahead
        shadow[idx[occluded]] = True
        shadow_points[idx[occluded]] = hit_points[occluded]

    remaining = candidates & ~inside & ~shadow
    inside = inside | contains_any(body_set, points, remaining, bounding_spheres=bounding_spheres)

    labels[inside] = int(MaskLabel.INSIDE)
    labels[shadow] = int(MaskLabel.SHADOW)
    if shadow_callback is not None:
        for i in torch.nonzero(shadow).view(-1).tolist():
            shadow_callback(shadow_points[i])
    return labels


def get_mask_containment(body_set: BodySet, point: torch.Tensor) -> MaskLabel:
    """Label a single point of shape (3,), testing every inflated body."""
    labels = classify_containment(body_set, None, point.view(1, 3))
    return MaskLabel(int(labels[0]))


def get_mask_intersection(
    body_set: BodySet,
    snapshot: FrameSnapshot,
    point: torch.Tensor,
    shadow_callback: Optional[ShadowCallback] = None,
) -> MaskLabel:
    """Label a single point of shape (3,) with the rules of :func:`classify_intersection`."""
    labels = classify_intersection(
        body_set, snapshot, point.view(1, 3), shadow_callback, use_bounds=False
    )
    return MaskLabel(int(labels[0]))


def classify_in_batches(
    classify_fn: Callable[[T_NPoints], T_NValue_int],
    points: T_NPoints,
    batch_size: Optional[int] = None,
) -> T_NValue_int:
    """Run ``classify_fn`` over chunks of at most ``batch_size`` points and join the labels."""
    if batch_size is None or batch_size <= 0 or points.shape[0] <= batch_size:
        return classify_fn(points)
    return torch.cat([classify_fn(chunk) for chunk in torch.split(points, batch_size)])
