# Copyright Contributors to the Vigrad project.
# SPDX-License-Identifier: Apache-2.0

import inspect
from typing import Callable, Dict, Iterable, Optional, Type, Union

import torch
from torch import Tensor
from torch.nn.utils import clip_grad_norm_, clip_grad_value_
from torch.optim import Optimizer

from vigrad.primitives import get_param_store


class VigradOptim:
    """
    A wrapper for torch.optim.Optimizer objects that helps with managing
    parameters created lazily by models and default guides.

    One optimizer is created per unconstrained parameter tensor, the first
    time that parameter receives a gradient estimate.

    :param optim_constructor: a torch.optim.Optimizer
    :param optim_args: a dictionary of learning arguments for the optimizer or
        a callable that inputs a parameter name and returns such dictionaries
    :param clip_args: a dictionary of ``clip_norm`` and/or ``clip_value``
        args or a callable that inputs a parameter name and returns such
        dictionaries
    """

    def __init__(
        self,
        optim_constructor: Union[Callable, Type[Optimizer]],
        optim_args: Union[Dict, Callable[[str], Dict]],
        clip_args: Optional[Union[Dict, Callable[[str], Dict]]] = None,
    ):
        self.pt_optim_constructor = optim_constructor

        # must be callable or dict
        assert callable(optim_args) or isinstance(
            optim_args, dict
        ), "optim_args must be function that returns defaults or a defaults dictionary"

        if clip_args is None:
            clip_args = {}

        # must be callable or dict
        assert callable(clip_args) or isinstance(
            clip_args, dict
        ), "clip_args must be function that returns defaults or a defaults dictionary"

        self.pt_optim_args = optim_args
        if callable(optim_args):
            assert (
                len(inspect.signature(optim_args).parameters) == 1
            ), "optim_args callable must input a single parameter name"
        self.pt_clip_args = clip_args

        # holds the torch optimizer objects
        self.optim_objs: Dict = {}
        self.grad_clip: Dict = {}

        # optimizer state waiting for a parameter that hasn't been seen yet
        self._state_waiting_to_be_consumed: Dict = {}

    def __call__(self, params: Iterable[Tensor], *args, **kwargs) -> None:
        """
        :param params: unconstrained parameter tensors with ``.grad`` set

        Do an optimization step for each param in params. If a given param has
        never been seen before, initialize an optimizer for it.
        """
        for p in params:
            if p not in self.optim_objs:
                optimizer = self.optim_objs[p] = self._get_optim(p)
                self.grad_clip[p] = self._get_grad_clip(p)
                param_name = get_param_store().param_name(p)
                state = self._state_waiting_to_be_consumed.pop(param_name, None)
                if state is not None:
                    optimizer.load_state_dict(state)

            if self.grad_clip[p] is not None:
                self.grad_clip[p](p)

            self.optim_objs[p].step(*args, **kwargs)

    def get_state(self) -> Dict:
        """
        Get state associated with all the optimizers in the form of a
        dictionary with key-value pairs (parameter name, optim state dicts)
        """
        state_dict = {}
        for param in self.optim_objs:
            param_name = get_param_store().param_name(param)
            state_dict[param_name] = self.optim_objs[param].state_dict()
        return state_dict

    def set_state(self, state_dict: Dict) -> None:
        """
        Set the state associated with all the optimizers using the state
        obtained from a previous call to get_state()
        """
        self._state_waiting_to_be_consumed.update(state_dict)

    def _get_optim(self, param: Tensor) -> Optimizer:
        return self.pt_optim_constructor([param], **self._get_optim_args(param))

    def _get_optim_args(self, param: Tensor) -> Dict:
        if callable(self.pt_optim_args):
            opt_dict = self.pt_optim_args(get_param_store().param_name(param))
            assert isinstance(
                opt_dict, dict
            ), "per-param optim arg must return defaults dictionary"
            return opt_dict
        return self.pt_optim_args

    def _get_grad_clip(self, param: Tensor):
        grad_clip_args = self._get_grad_clip_args(param)

        if not grad_clip_args:
            return None

        def _clip_grad(params: Union[Tensor, Iterable[Tensor]]):
            self._clip_grad(params, **grad_clip_args)

        return _clip_grad

    def _get_grad_clip_args(self, param: Tensor) -> Dict:
        if callable(self.pt_clip_args):
            clip_dict = self.pt_clip_args(get_param_store().param_name(param))
            assert isinstance(
                clip_dict, dict
            ), "per-param clip arg must return defaults dictionary"
            return clip_dict
        return self.pt_clip_args

    @staticmethod
    def _clip_grad(
        params: Union[Tensor, Iterable[Tensor]],
        clip_norm: Optional[Union[int, float]] = None,
        clip_value: Optional[Union[int, float]] = None,
    ) -> None:
        if clip_norm is not None:
            clip_grad_norm_(params, clip_norm)
        if clip_value is not None:
            clip_grad_value_(params, clip_value)


def zero_grads(tensors: Iterable[Tensor]) -> None:
    """
    Sets gradients of list of Tensors to zero in place
    """
    for p in tensors:
        if p.grad is not None:
            p.grad = torch.zeros_like(p.grad)
