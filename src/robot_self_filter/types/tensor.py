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

"""This module contains aliases for structured Tensors, improving readability."""

# Third Party
import torch

T_BPosition = torch.Tensor  #: Tensor of shape [batch, 3].
T_BQuaternion = torch.Tensor  #: Tensor of shape [batch, 4].
T_BRotation = torch.Tensor  #: Tensor of shape [batch, 3,3].

T_NPoints = torch.Tensor  #: Float Tensor of shape [n_points, 3].
T_NValue_bool = torch.Tensor  #: Bool Tensor of shape [n_points].
T_NValue_int = torch.Tensor  #: Int Tensor of shape [n_points].
