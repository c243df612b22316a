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
import logging

# Third Party
import pytest
import torch

# robot_self_filter
from robot_self_filter.geom.types import Cuboid, Mesh, Sphere
from robot_self_filter.robot_model.model_resolver import DictModelResolver, LinkGeometry
from robot_self_filter.types.base import TensorDeviceType
from robot_self_filter.types.math import Pose
from robot_self_filter.wrap.model.body_set import BodySet
from robot_self_filter.wrap.model.types import LinkInfo


@pytest.fixture(scope="module")
def tensor_args():
    return TensorDeviceType(device=torch.device("cpu"))


@pytest.fixture(scope="module")
def model_resolver(tensor_args):
    return DictModelResolver.from_dict(
        {
            "small": {"type": "sphere", "radius": 0.1},
            "large": {"type": "box", "dims": [1.0, 1.0, 1.0]},
            "medium": {"type": "cylinder", "radius": 0.2, "length": 0.5, "offset": [0, 0, 1]},
            "twin_a": {"type": "sphere", "radius": 0.2},
            "twin_b": {"type": "sphere", "radius": 0.2},
        },
        tensor_args,
    )


def test_configure_sorts_by_volume(model_resolver, tensor_args):
    links = [LinkInfo("small"), LinkInfo("medium"), LinkInfo("large")]
    body_set = BodySet.configure(links, model_resolver, tensor_args)
    assert body_set.link_names == ["large", "medium", "small"]
    volumes = [x.volume for x in body_set]
    assert volumes == sorted(volumes, reverse=True)


def test_configure_scale_changes_order(model_resolver, tensor_args):
    links = [LinkInfo("small", scale=10.0), LinkInfo("large")]
    body_set = BodySet.configure(links, model_resolver, tensor_args)
    assert body_set.link_names == ["small", "large"]


def test_configure_ties_keep_input_order(model_resolver, tensor_args):
    body_set = BodySet.configure(
        [LinkInfo("twin_a"), LinkInfo("twin_b")], model_resolver, tensor_args
    )
    assert body_set.link_names == ["twin_a", "twin_b"]
    body_set = BodySet.configure(
        [LinkInfo("twin_b"), LinkInfo("twin_a")], model_resolver, tensor_args
    )
    assert body_set.link_names == ["twin_b", "twin_a"]


def test_configure_missing_links(model_resolver, tensor_args, caplog):
    links = [LinkInfo("missing_1"), LinkInfo("small"), LinkInfo("missing_2")]
    with caplog.at_level(logging.WARNING, logger="robot_self_filter"):
        body_set = BodySet.configure(links, model_resolver, tensor_args)
    assert body_set.link_names == ["small"]
    assert body_set.missing_links == ["missing_1", "missing_2"]
    messages = [x.getMessage() for x in caplog.records if "do not exist" in x.getMessage()]
    assert len(messages) == 1
    assert "missing_1" in messages[0] and "missing_2" in messages[0]


def test_configure_skips_unbuildable_link(tmp_path, tensor_args):
    model_resolver = DictModelResolver(
        {
            "broken": LinkGeometry(
                Mesh(file_path=str(tmp_path / "missing.stl")), Pose.identity(tensor_args)
            ),
            "box": LinkGeometry(Cuboid(dims=(0.1, 0.1, 0.1)), Pose.identity(tensor_args)),
        }
    )
    body_set = BodySet.configure(
        [LinkInfo("broken"), LinkInfo("box")], model_resolver, tensor_args
    )
    assert body_set.link_names == ["box"]
    assert body_set.missing_links == []


def test_configure_skips_malformed_box(tensor_args, caplog):
    model_resolver = DictModelResolver.from_dict(
        {
            "ok": {"type": "sphere", "radius": 0.1},
            "bad": {"type": "box", "dims": [1.0, 1.0]},
        },
        tensor_args,
    )
    with caplog.at_level(logging.WARNING, logger="robot_self_filter"):
        body_set = BodySet.configure(
            [LinkInfo("ok"), LinkInfo("bad")], model_resolver, tensor_args
        )
    assert body_set.link_names == ["ok"]
    assert body_set.missing_links == []
    assert any("three dimensions" in x.getMessage() for x in caplog.records)


def test_configure_empty(model_resolver, tensor_args):
    body_set = BodySet.configure([], model_resolver, tensor_args)
    assert body_set.is_empty()
    assert len(body_set) == 0
    assert body_set.link_names == []


def test_link_body_set_pose(model_resolver, tensor_args):
    body_set = BodySet.configure([LinkInfo("medium", padding=0.1)], model_resolver, tensor_args)
    link = body_set[0]
    link.set_pose(Pose.from_list([1.0, 0.0, 0.0], tensor_args))
    assert link.body.compute_bounding_sphere().center.tolist() == pytest.approx([1.0, 0.0, 1.0])
    point = tensor_args.to_device([[1.0, 0.0, 1.0 + 0.3]])
    assert link.body.contains_points(point).tolist() == [True]
    assert link.unscaled_body.contains_points(point).tolist() == [False]


def test_link_info_create():
    assert LinkInfo.create("a", 1.5, 0.1) == LinkInfo("a", 1.5, 0.1)
    assert LinkInfo.create(("a",), 1.5, 0.1) == LinkInfo("a", 1.5, 0.1)
    assert LinkInfo.create(("a", 2.0), 1.5, 0.1) == LinkInfo("a", 2.0, 0.1)
    assert LinkInfo.create(["a", 2.0, 0.2]) == LinkInfo("a", 2.0, 0.2)
    assert LinkInfo.create({"name": "a", "padding": 0.3}, 1.5, 0.1) == LinkInfo("a", 1.5, 0.3)
    link = LinkInfo("b")
    assert LinkInfo.create(link) is link
