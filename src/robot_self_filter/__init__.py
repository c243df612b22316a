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
robot_self_filter removes the robot itself from point clouds of its own sensors. Collision bodies
of the monitored links are placed in the frame of each cloud and every point is labeled as inside
the robot, outside the robot, or in the shadow the robot casts as seen from the sensor.

High-level API: :mod:`robot_self_filter.wrap.self_mask`.

robot_self_filter package is split into several modules:

- :mod:`robot_self_filter.geom` contains shape descriptors, collision bodies and frame transforms.
- :mod:`robot_self_filter.robot_model` contains collaborators that resolve link geometry and
  frame transforms.
- :mod:`robot_self_filter.types` contains dataclasses for common data types, including
  :py:class:`~types.math.Pose` and :py:class:`~types.base.TensorDeviceType`.
- :mod:`robot_self_filter.util` contains logging and torch utilities.
- :mod:`robot_self_filter.wrap` adds the user-level api: body sets, frame updates and point
  classification.
"""


def _get_version():
    """Return the version string used for __version__."""
    # Standard Library
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version("robot_self_filter")
    except PackageNotFoundError:
        return "v0.1.0-no-tag"


# Set `__version__` attribute
__version__ = _get_version()

# Remove `_get_version` so it is not added as an attribute
del _get_version
