# Copyright Contributors to the Vigrad project.
# SPDX-License-Identifier: Apache-2.0

import numbers

import torch

from vigrad import settings

_VALIDATION_ENABLED = False


@settings.register("validate_infer", __name__, "_VALIDATION_ENABLED")
def _validate_validation_enabled(value):
    assert isinstance(value, bool)


def enable_validation(is_validate):
    global _VALIDATION_ENABLED
    _VALIDATION_ENABLED = is_validate


def is_validation_enabled():
    return _VALIDATION_ENABLED


def torch_item(x):
    """
    Like ``x.item()`` for a :class:`~torch.Tensor`, but also works with numbers.
    """
    return x if isinstance(x, numbers.Number) else x.item()


def is_graph_connected(x):
    """
    Whether ``x`` is a tensor that depends on some parameter read during the
    current execution, i.e. whether backpropagation through it is possible.
    """
    return torch.is_tensor(x) and x.requires_grad
