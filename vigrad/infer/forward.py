# Copyright Contributors to the Vigrad project.
# SPDX-License-Identifier: Apache-2.0

from typing import Any, Callable, Tuple

import torch

from vigrad.infer.guide import resolve_guide
from vigrad.infer.util import torch_item
from vigrad.poutine.runtime import Message
from vigrad.poutine.strategy import Strategy


class Forward(Strategy):
    """
    Runs a model forward once.

    By default random choices are drawn from the model's own distributions
    and the log weight of the execution is the sum of its factors, so that
    weighted forward executions form a likelihood-weighting estimate of the
    posterior. With ``guide=True`` random choices are drawn from their guides
    instead (explicit, or the default mean-field guide with its current
    parameters) and factors are ignored; this samples from a fitted guide.

    :param callable model: a model containing Vigrad primitives.
    :param bool guide: whether to draw random choices from their guides.
    """

    def __init__(self, model: Callable, guide: bool = False) -> None:
        self.model = model
        self.guide = guide
        self.log_weight = 0.0

    def run(self, *args, **kwargs) -> Tuple[Any, float]:
        """
        :returns: a pair ``(value, log_weight)`` of the model's return value
            and the log weight of the execution.
        :rtype: tuple
        """
        self.log_weight = 0.0
        with torch.no_grad(), self:
            value = self.model(*args, **kwargs)
        return value, torch_item(self.log_weight)

    def sample(self, msg: Message) -> None:
        if not self.guide:
            super().sample(msg)
            return
        guide, _ = resolve_guide(msg["fn"], msg["name"], msg["infer"].get("guide"))
        msg["value"] = guide.sample()
        msg["done"] = True

    def factor(self, msg: Message) -> None:
        if not self.guide:
            self.log_weight = self.log_weight + msg["args"][0]
        msg["done"] = True
