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
"""The set of monitored links and their collision bodies."""

from __future__ import annotations

# Standard Library
from dataclasses import dataclass, field
from typing import Iterator, List, Sequence

# robot_self_filter
from robot_self_filter.geom.bodies import Body
from robot_self_filter.geom.shape_factory import build_link_bodies
from robot_self_filter.robot_model.model_resolver import ModelResolver
from robot_self_filter.types.base import TensorDeviceType
from robot_self_filter.types.math import Pose
from robot_self_filter.util.logger import log_debug, log_warn
from robot_self_filter.wrap.model.types import LinkInfo


@dataclass
class LinkBody:
    """Collision bodies of one monitored link."""

    #: Name of link, also the name of its frame.
    name: str

    #: Body inflated by the link's scale and padding.
    body: Body

    #: Body at unit scale and zero padding.
    unscaled_body: Body

    #: Collision origin in the link frame.
    offset: Pose

    #: Volume of the inflated body.
    volume: float

    def set_pose(self, link_pose: Pose):
        """Place both bodies given the pose of the link frame."""
        pose = link_pose.multiply(self.offset)
        self.body.set_pose(pose)
        self.unscaled_body.set_pose(pose)


@dataclass
class BodySet:
    """Monitored links, ordered by non-increasing volume of their inflated bodies.

    Larger bodies are more likely to contain a point, so tests that stop at the first hit visit
    them first.
    """

    links: List[LinkBody] = field(default_factory=list)

    #: Requested link names that could not be resolved in the robot model.
    missing_links: List[str] = field(default_factory=list)

    @classmethod
    def configure(
        cls,
        links: Sequence[LinkInfo],
        model_resolver: ModelResolver,
        tensor_args: TensorDeviceType = TensorDeviceType(),
    ) -> BodySet:
        """Build the bodies of the given links.

        Links that are missing from the model or whose geometry cannot be turned into a body are
        skipped, the batch is never aborted. All missing link names are reported in one warning.

        Args:
            links: Links to monitor, with their scale and padding.
            model_resolver: Source of the collision geometry of each link.
            tensor_args: Device and floating point precision for the bodies.

        Returns:
            BodySet: bodies sorted by descending volume, ties keeping the input order.
        """
        link_bodies = []
        missing = []
        for link in links:
            geometry = model_resolver.resolve(link.name)
            if geometry is None:
                missing.append(link.name)
                continue
            bodies = build_link_bodies(geometry.shape, link.scale, link.padding, tensor_args)
            if bodies is None:
                log_warn("Unable to create point inclusion body for link '" + link.name + "'")
                continue
            body, unscaled_body, volume = bodies
            log_debug("Self see link " + link.name + " padding " + str(link.padding))
            link_bodies.append(
                LinkBody(
                    name=link.name,
                    body=body,
                    unscaled_body=unscaled_body,
                    offset=geometry.offset.clone().to(tensor_args),
                    volume=volume,
                )
            )

        if len(missing) > 0:
            log_warn(
                "Some links were included for self mask but they do not exist in the model: "
                + " ".join(missing)
            )
        if len(link_bodies) == 0:
            log_warn("No robot links will be checked for self mask")

        # sorted is stable, equal volumes keep the order they were given in
        link_bodies = sorted(link_bodies, key=lambda x: x.volume, reverse=True)
        for link_body in link_bodies:
            log_debug(
                "Self mask includes link %s with volume %f" % (link_body.name, link_body.volume)
            )
        return cls(links=link_bodies, missing_links=missing)

    @property
    def link_names(self) -> List[str]:
        return [x.name for x in self.links]

    def is_empty(self) -> bool:
        return len(self.links) == 0

    def __len__(self) -> int:
        return len(self.links)

    def __iter__(self) -> Iterator[LinkBody]:
        return iter(self.links)

    def __getitem__(self, idx: int) -> LinkBody:
        return self.links[idx]
