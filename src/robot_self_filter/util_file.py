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
"""Paths to the bundled content of robot_self_filter and yaml file loading."""
# Standard Library
import os
import re
from typing import Any, Dict, Union

# Third Party
import yaml

# robot_self_filter
from robot_self_filter.util.logger import log_warn


class _ConfigLoader(yaml.SafeLoader):
    """Safe yaml loader that also reads exponents without a decimal point, e.g. 1e-3, as float."""


_ConfigLoader.add_implicit_resolver(
    "tag:yaml.org,2002:float",
    re.compile(r"^[-+]?[0-9][0-9_]*[eE][-+]?[0-9]+$"),
    list("-+0123456789"),
)


def get_module_path() -> str:
    return os.path.dirname(__file__)


def get_content_path() -> str:
    """Directory with example configurations and robot assets shipped with the package."""
    return os.path.join(get_module_path(), "content")


def get_configs_path() -> str:
    """Directory of self mask configuration files."""
    return os.path.join(get_content_path(), "configs")


def get_assets_path() -> str:
    """Directory of robot descriptions (urdf) and their meshes."""
    return os.path.join(get_content_path(), "assets")


def join_path(path1: str, path2: str) -> str:
    """Join two paths. An absolute ``path2`` is returned as is.

    Args:
        path1: Directory prefix.
        path2: Relative or absolute path.

    Returns:
        str: Joined path.
    """
    if len(path1) > 1 and path1.endswith(os.sep):
        log_warn("path1 has trailing slash, removing it")
        path1 = path1[:-1]
    return os.path.join(path1, path2)


def load_yaml(file_path: Union[str, Dict[str, Any]]) -> Dict[str, Any]:
    """Read a yaml file into a dictionary. A dictionary is returned unchanged.

    Args:
        file_path: Path to yaml file, or an already loaded dictionary.

    Returns:
        Dict: Content of the file.
    """
    if not isinstance(file_path, str):
        return file_path
    with open(file_path) as file_p:
        return yaml.load(file_p, Loader=_ConfigLoader)
