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
"""Types shared by the self mask modules."""

from __future__ import annotations

# Standard Library
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Sequence, Tuple, Union


class MaskLabel(IntEnum):
    """Per point result of self filtering."""

    #: Point is on or inside the robot body.
    INSIDE = 0
    #: Point is outside the robot body.
    OUTSIDE = 1
    #: Point is hidden from the sensor by the robot body.
    SHADOW = 2


@dataclass(frozen=True)
class LinkInfo:
    """A link to monitor, with the inflation applied to its collision body."""

    name: str
    scale: float = 1.0
    padding: float = 0.0

    @staticmethod
    def create(
        link: Union[LinkInfo, str, Sequence[Any], Dict[str, Any]],
        default_scale: float = 1.0,
        default_padding: float = 0.0,
    ) -> LinkInfo:
        """Create from a LinkInfo, a name, a (name, scale, padding) tuple or a dictionary."""
        if isinstance(link, LinkInfo):
            return link
        if isinstance(link, str):
            return LinkInfo(link, default_scale, default_padding)
        if isinstance(link, dict):
            return LinkInfo(
                str(link["name"]),
                float(link.get("scale", default_scale)),
                float(link.get("padding", default_padding)),
            )
        values: Tuple[Any, ...] = tuple(link) + (default_scale, default_padding)[len(link) - 1 :]
        return LinkInfo(str(values[0]), float(values[1]), float(values[2]))
