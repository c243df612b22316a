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

"""robot_self_filter package setuptools."""

# Third Party
import setuptools

setuptools.setup(
    name="robot_self_filter",
    version="0.1.0",
    description="Label robot self points and robot shadows in sensor point clouds.",
    python_requires=">=3.8",
    package_dir={"": "src"},
    packages=setuptools.find_namespace_packages(where="src"),
    install_requires=[
        "torch",
        "numpy",
        "trimesh",
        "scipy",
        "pyyaml",
        "yourdfpy",
        "lxml",
        "packaging",
    ],
    extras_require={
        "test": ["pytest"],
    },
    package_data={"robot_self_filter": ["content/configs/*.yml", "content/assets/*/*"]},
    include_package_data=True,
)
