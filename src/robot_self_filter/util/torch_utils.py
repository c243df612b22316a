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
"""Selects how the small tensor kernels of this package are compiled."""
# Standard Library
import os

# Third Party
import torch
from packaging import version

# robot_self_filter
from robot_self_filter.util.logger import log_info


def _env_flag(name: str) -> bool:
    return bool(int(os.environ.get(name, "0")))


def is_torch_compile_available() -> bool:
    """Check if kernels should use ``torch.compile``.

    ``torch.compile`` is opt-in: set ``ROBOT_SELF_FILTER_TORCH_COMPILE_DISABLE=0`` to use it when
    pytorch supports it, or ``ROBOT_SELF_FILTER_TORCH_COMPILE_FORCE=1`` to use it regardless.
    """
    if _env_flag("ROBOT_SELF_FILTER_TORCH_COMPILE_FORCE"):
        return True
    if bool(int(os.environ.get("ROBOT_SELF_FILTER_TORCH_COMPILE_DISABLE", "1"))):
        return False
    if version.parse(torch.__version__) < version.parse("2.0") or not hasattr(torch, "compile"):
        log_info("torch.compile requires pytorch >= 2.0, using torch.jit.script")
        return False
    return True


def get_torch_jit_decorator(force_jit: bool = False, dynamic: bool = True):
    """Return ``torch.compile`` when enabled by :func:`is_torch_compile_available`, otherwise
    ``torch.jit.script``.
    """
    if not force_jit and is_torch_compile_available():
        return torch.compile(dynamic=dynamic)
    return torch.jit.script
