# Copyright Contributors to the Vigrad project.
# SPDX-License-Identifier: Apache-2.0

import torch

from vigrad.optim.optim import VigradOptim

__all__ = []
# Programmatically load all optimizers from PyTorch.
for _name, _Optim in torch.optim.__dict__.items():
    if not isinstance(_Optim, type):
        continue
    if not issubclass(_Optim, torch.optim.Optimizer):
        continue
    if _Optim is torch.optim.Optimizer:
        continue
    if _Optim is torch.optim.LBFGS:
        # LBFGS needs a closure that re-evaluates the objective
        continue

    _VigradOptim = (
        lambda _Optim: lambda optim_args, clip_args=None: VigradOptim(
            _Optim, optim_args, clip_args
        )
    )(_Optim)
    _VigradOptim.__name__ = _name
    _VigradOptim.__doc__ = "Wraps :class:`torch.optim.{}` with :class:`~vigrad.optim.optim.VigradOptim`.".format(
        _name
    )

    locals()[_name] = _VigradOptim
    __all__.append(_name)
    del _VigradOptim
