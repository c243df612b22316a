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
"""Device and floating point precision shared by all tensors of a self mask."""

# Standard Library
from dataclasses import dataclass, field
from typing import Any, Dict

# Third Party
import numpy as np
import torch


def _get_default_device() -> torch.device:
    return torch.device("cuda", 0) if torch.cuda.is_available() else torch.device("cpu")


@dataclass(frozen=True)
class TensorDeviceType:
    """Where tensors live and which float type they use.

    Defaults to the first CUDA device when one is available and to the CPU otherwise.
    """

    device: torch.device = field(default_factory=_get_default_device)
    dtype: torch.dtype = torch.float32

    def to_device(self, data: Any) -> torch.Tensor:
        """Copy a tensor, array or nested list to :attr:`device` as :attr:`dtype`."""
        if not isinstance(data, torch.Tensor):
            data = torch.from_numpy(np.asarray(data, dtype=np.float64))
        return data.to(device=self.device, dtype=self.dtype)

    def as_torch_dict(self) -> Dict[str, Any]:
        return {"device": self.device, "dtype": self.dtype}
