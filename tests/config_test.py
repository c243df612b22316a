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

# Standard Library
import os

# Third Party
import pytest
import torch

# robot_self_filter
import robot_self_filter
from robot_self_filter.types.base import TensorDeviceType
from robot_self_filter.util.logger import setup_logger
from robot_self_filter.util_file import get_configs_path, join_path, load_yaml
from robot_self_filter.wrap.model.types import LinkInfo
from robot_self_filter.wrap.self_mask import SelfMaskConfig


def test_robot_self_filter_version():
    assert robot_self_filter.__version__ is not None
    assert robot_self_filter.__version__ != ""


def test_load_config_file():
    tensor_args = TensorDeviceType(device=torch.device("cpu"))
    config = SelfMaskConfig.load_from_file("self_mask.yml", tensor_args)
    assert config.default_padding == pytest.approx(0.01)
    assert config.min_sensor_dist == pytest.approx(0.01)
    assert config.transform_timeout == pytest.approx(0.1)
    assert config.urdf_path == "arm/arm.urdf"
    assert config.tensor_args == tensor_args
    assert config.links == [
        LinkInfo("base_link", 1.0, 0.02),
        LinkInfo("upper_arm", 1.0, 0.01),
        LinkInfo("forearm", 1.05, 0.01),
        LinkInfo("tool", 1.0, 0.01),
    ]


def test_config_from_dict_defaults():
    config = SelfMaskConfig.from_dict({"self_see_links": ["a"]})
    assert config.links == [LinkInfo("a", 1.0, 0.0)]
    assert config.transform_timeout == pytest.approx(0.1)
    assert config.urdf_path is None
    assert config.get_model_resolver() is None


def test_config_requires_links():
    with pytest.raises(ValueError):
        SelfMaskConfig.from_dict({"self_mask": {"default_padding": 0.1}})


def test_load_yaml_exponent_float(tmp_path):
    file_path = str(tmp_path / "config.yml")
    with open(file_path, "w") as f:
        f.write("self_mask:\n  default_padding: 1e-2\n  self_see_links: [a]\n")
    data = load_yaml(file_path)
    assert isinstance(data["self_mask"]["default_padding"], float)
    config = SelfMaskConfig.load_from_file(file_path)
    assert config.links == [LinkInfo("a", 1.0, 0.01)]


def test_load_yaml_dict():
    data = {"self_mask": {"self_see_links": []}}
    assert load_yaml(data) is data


def test_join_path():
    assert join_path("a", "b") == os.path.join("a", "b")
    assert join_path(get_configs_path(), "/abs/file.yml") == "/abs/file.yml"
    assert os.path.isfile(join_path(get_configs_path(), "self_mask.yml"))


def test_setup_logger():
    setup_logger("warn")
    with pytest.raises(ValueError):
        setup_logger("verbose")
