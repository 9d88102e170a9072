# Copyright Contributors to the Vigrad project.
# SPDX-License-Identifier: Apache-2.0

from vigrad.optim.optim import VigradOptim, zero_grads
from vigrad.optim.pytorch_optimizers import *  # noqa F403
from vigrad.optim.pytorch_optimizers import __all__ as pytorch_optims

__all__ = [
    "VigradOptim",
    "zero_grads",
]
__all__.extend(pytorch_optims)
