# Copyright Contributors to the Vigrad project.
# SPDX-License-Identifier: Apache-2.0

"""
Helpers for gradient estimates stored as ``{param_name: tensor}`` dicts.

Parameters that were not read during a model execution are simply absent
from that execution's dict; they contribute zero gradient.
"""

from typing import Dict, Union

import torch


def merge_add(dst: Dict[str, torch.Tensor], src: Dict[str, torch.Tensor]) -> Dict[str, torch.Tensor]:
    """
    Elementwise adds each tensor of ``src`` into ``dst`` in place, creating
    entries of ``dst`` as needed.

    :returns: ``dst``
    """
    for name, value in src.items():
        if name in dst:
            dst[name] = dst[name] + value
        else:
            dst[name] = value.clone()
    return dst


def merge_divide_scalar(dst: Dict[str, torch.Tensor], n: Union[int, float]) -> Dict[str, torch.Tensor]:
    """
    Divides every tensor of ``dst`` by ``n`` in place.

    :returns: ``dst``
    """
    for name in dst:
        dst[name] = dst[name] / n
    return dst
