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
import threading
import time

# Third Party
import pytest
import torch

# robot_self_filter
from robot_self_filter.robot_model.model_resolver import DictModelResolver
from robot_self_filter.robot_model.transform_provider import (
    StaticTransformProvider,
    TransformLookupError,
)
from robot_self_filter.types.base import TensorDeviceType
from robot_self_filter.types.math import Pose
from robot_self_filter.wrap.model.body_set import BodySet
from robot_self_filter.wrap.model.frame_updater import FrameUpdater
from robot_self_filter.wrap.model.types import LinkInfo


@pytest.fixture(scope="module")
def tensor_args():
    return TensorDeviceType(device=torch.device("cpu"))


@pytest.fixture(scope="function")
def body_set(tensor_args):
    model_resolver = DictModelResolver.from_dict(
        {
            "link_a": {"type": "sphere", "radius": 0.5},
            "link_b": {"type": "box", "dims": [0.2, 0.2, 0.2], "offset": [0.0, 0.0, 0.5]},
        },
        tensor_args,
    )
    return BodySet.configure([LinkInfo("link_a"), LinkInfo("link_b")], model_resolver, tensor_args)


def test_static_transform_provider(tensor_args):
    provider = StaticTransformProvider(tensor_args)
    provider.set_transform("base", "link", Pose.from_list([1.0, 2.0, 3.0], tensor_args))
    assert provider.lookup("base", "link").tolist() == pytest.approx([1, 2, 3, 1, 0, 0, 0])
    assert provider.lookup("link", "base").tolist() == pytest.approx([-1, -2, -3, 1, 0, 0, 0])
    assert provider.lookup("other", "other").tolist() == pytest.approx([0, 0, 0, 1, 0, 0, 0])
    with pytest.raises(TransformLookupError):
        provider.lookup("base", "unknown", timeout=0.0)
    provider.remove_transform("base", "link")
    with pytest.raises(LookupError):
        provider.lookup("base", "link", timeout=0.01)


def test_static_transform_provider_waits(tensor_args):
    provider = StaticTransformProvider(tensor_args)

    def publish():
        time.sleep(0.05)
        provider.set_transform("base", "late", Pose.from_list([0.0, 0.0, 1.0], tensor_args))

    thread = threading.Thread(target=publish)
    thread.start()
    pose = provider.lookup("base", "late", timeout=5.0)
    thread.join()
    assert pose.tolist() == pytest.approx([0, 0, 1, 1, 0, 0, 0])


def test_assume_frame(body_set, tensor_args):
    provider = StaticTransformProvider(tensor_args)
    provider.set_transform("base", "link_a", Pose.from_list([1.0, 0.0, 0.0], tensor_args))
    provider.set_transform("base", "link_b", Pose.from_list([0.0, 1.0, 0.0], tensor_args))
    frame_updater = FrameUpdater(provider, timeout=0.0, tensor_args=tensor_args)
    snapshot = frame_updater.assume_frame(body_set, "base", stamp=1.5)

    assert snapshot.frame_id == "base"
    assert snapshot.stamp == 1.5
    assert snapshot.failed_links == ()
    assert not snapshot.has_sensor
    centers = [x.center.tolist() for x in snapshot.bounding_spheres]
    assert centers[0] == pytest.approx([1.0, 0.0, 0.0])
    assert centers[1] == pytest.approx([0.0, 1.0, 0.5])
    assert [x.radius2 for x in snapshot.bounding_spheres] == pytest.approx([0.25, 0.03], rel=1e-5)
    for sphere in snapshot.bounding_spheres:
        distance = torch.linalg.norm(sphere.center - snapshot.merged_sphere.center).item()
        assert distance + sphere.radius <= snapshot.merged_sphere.radius + 1e-5


def test_assume_frame_failed_link_uses_identity(body_set, tensor_args, caplog):
    provider = StaticTransformProvider(tensor_args)
    provider.set_transform("base", "link_a", Pose.from_list([1.0, 0.0, 0.0], tensor_args))
    frame_updater = FrameUpdater(provider, timeout=0.0, tensor_args=tensor_args)
    snapshot = frame_updater.assume_frame(body_set, "base")

    assert snapshot.failed_links == ("link_b",)
    centers = [x.center.tolist() for x in snapshot.bounding_spheres]
    assert centers[0] == pytest.approx([1.0, 0.0, 0.0])
    assert centers[1] == pytest.approx([0.0, 0.0, 0.5])
    messages = [x.getMessage() for x in caplog.records if "link_b" in x.getMessage()]
    assert len(messages) == 1


def test_assume_frame_sensor(body_set, tensor_args):
    provider = StaticTransformProvider(tensor_args)
    provider.set_transform("base", "camera", Pose.from_list([0.0, 0.0, 2.0], tensor_args))
    frame_updater = FrameUpdater(provider, timeout=0.0, tensor_args=tensor_args)

    snapshot = frame_updater.assume_frame(
        body_set, "base", sensor_frame="camera", min_sensor_dist=0.05
    )
    assert snapshot.has_sensor
    assert snapshot.sensor_pos.tolist() == pytest.approx([0.0, 0.0, 2.0])
    assert snapshot.min_sensor_dist == pytest.approx(0.05)

    snapshot = frame_updater.assume_frame(body_set, "base", sensor_pos=[3.0, 0.0, 0.0])
    assert snapshot.sensor_pos.tolist() == pytest.approx([3.0, 0.0, 0.0])


def test_assume_frame_missing_sensor_uses_origin(body_set, tensor_args):
    frame_updater = FrameUpdater(StaticTransformProvider(tensor_args), 0.0, tensor_args)
    snapshot = frame_updater.assume_frame(body_set, "base", sensor_frame="camera")
    assert snapshot.has_sensor
    assert snapshot.sensor_pos.tolist() == pytest.approx([0.0, 0.0, 0.0])
    assert snapshot.failed_links == ("link_a", "link_b")


def test_assume_frame_empty_body_set(tensor_args):
    frame_updater = FrameUpdater(StaticTransformProvider(tensor_args), 0.0, tensor_args)
    snapshot = frame_updater.assume_frame(BodySet(), "base")
    assert snapshot.bounding_spheres == []
    assert snapshot.merged_sphere.radius == 0.0
