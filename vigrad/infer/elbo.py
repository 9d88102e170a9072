# Copyright Contributors to the Vigrad project.
# SPDX-License-Identifier: Apache-2.0

import logging
import math
from collections import namedtuple
from typing import Callable, Dict, Tuple

import torch
from torch.distributions import transform_to

from vigrad.distributions.distribution import ReparameterizedDistribution
from vigrad.infer.guide import resolve_guide
from vigrad.infer.util import is_graph_connected, is_validation_enabled, torch_item
from vigrad.params.param_struct import merge_add, merge_divide_scalar
from vigrad.poutine.runtime import Message
from vigrad.poutine.strategy import Strategy
from vigrad.primitives import get_param_store
from vigrad.util import PreconditionViolation, UnsupportedOperation

logger = logging.getLogger(__name__)

# Running totals at the entry of a map_data scope.
MapDataCheckpoint = namedtuple(
    "MapDataCheckpoint", ["multiplier", "logp", "logq", "logr"]
)


class ELBO(Strategy):
    """
    Stochastic estimator of the gradient of the evidence lower bound with
    respect to the parameters read while running ``model``.

    Each random choice is drawn from its guide (see
    :func:`~vigrad.infer.guide.resolve_guide`) and the estimator accumulates
    three running totals per execution:

    - ``logp``, the model's log joint density of the sampled values and
      factors;
    - ``logq``, the guide's log density of the sampled values;
    - ``logr``, the log density of the variates the randomness was actually
      drawn from: the base variate at reparameterized sites and the value
      itself elsewhere.

    Until the first reparameterized site ``logq`` and ``logr`` are the same
    total. When no site was reparameterized the likelihood-ratio (REINFORCE)
    surrogate ``logq * (logq - logp)`` is differentiated; otherwise the
    hybrid surrogate ``logr * (logq - logp) + logq - logp``, which reduces to
    the path-wise estimator when every site was reparameterized.

    Gradients are estimated only for parameters read during an execution;
    all others are taken to be zero and are absent from the result. They
    are gradients of the loss ``-ELBO`` with respect to unconstrained
    parameter values.

    Example::

        grads, elbo = ELBO(model, samples=10).run(data)

    :param callable model: a model containing Vigrad primitives.
    :param int samples: number of independent executions averaged per run.
    :param bool verbose: whether to log which estimator and guides are used.
    :param int step: index of the current optimization step. Diagnostics are
        only logged on step 0.

    References

    [1] Automated Variational Inference in Probabilistic Programming,
        David Wingate, Theo Weber

    [2] Black Box Variational Inference,
        Rajesh Ranganath, Sean Gerrish, David M. Blei
    """

    def __init__(
        self,
        model: Callable,
        samples: int = 1,
        verbose: bool = False,
        step: int = 0,
    ) -> None:
        if isinstance(samples, bool) or not (isinstance(samples, int) and samples > 0):
            raise ValueError("Expected samples to be a positive int, actual {}".format(samples))
        self.model = model
        self.samples = samples
        self.verbose = verbose
        self.step = step
        self._mean_field_notice_issued = False
        self._reset()

    def _reset(self) -> None:
        # Graph nodes of the parameters read during the current execution.
        self.params_seen: Dict[str, torch.Tensor] = {}
        self.logp = 0.0
        self.logq = 0.0
        self.logr = 0.0
        # Set at the first reparameterized site; logq and logr are
        # accumulated separately from then on.
        self.pathwise_diverged = False
        self._checkpoint = None

    def run(self, *args, **kwargs) -> Tuple[Dict[str, torch.Tensor], float]:
        """
        Runs the model ``samples`` times with this estimator as the active
        strategy. Any args or kwargs are passed to the model.

        :returns: a pair ``(grads, elbo)`` of the averaged gradient estimate,
            a dict mapping parameter names to tensors, and the averaged ELBO
            estimate.
        :rtype: tuple
        """
        elbo = 0.0
        grads: Dict[str, torch.Tensor] = {}
        with self:
            for i in range(self.samples):
                grads_i, elbo_i = self._estimate_gradient(i, *args, **kwargs)
                merge_add(grads, grads_i)
                elbo += elbo_i
        merge_divide_scalar(grads, self.samples)
        return grads, elbo / self.samples

    def _estimate_gradient(self, i, *args, **kwargs) -> Tuple[Dict[str, torch.Tensor], float]:
        self._reset()
        self.model(*args, **kwargs)

        score_diff = torch_item(self.logq) - torch_item(self.logp)
        if not math.isfinite(score_diff):
            raise PreconditionViolation(
                "ELBO: score difference is not finite ({}).".format(score_diff)
            )

        # Terms with zero expectation are dropped where possible.
        use_lr = not self.pathwise_diverged

        if use_lr and is_graph_connected(self.logp):
            raise PreconditionViolation(
                "ELBO: the model density depends on parameters, but no "
                "sample site used the reparameterized estimator."
            )

        # Only reported once, although the estimator may change across steps.
        if self.verbose and i == 0 and self.step == 0:
            if use_lr:
                estimator = "LR"
            elif is_graph_connected(self.logr):
                estimator = "hybrid"
            else:
                # path-wise, aka the reparameterization trick
                estimator = "PW"
            logger.info("ELBO: Using %s estimator.", estimator)

        if use_lr:
            objective = self.logq * score_diff
        else:
            objective = self.logr * score_diff + self.logq - self.logp

        # guides with zero parameters give a constant objective
        if is_graph_connected(objective):
            objective.backward()

        grads = {}
        for name, node in self.params_seen.items():
            grads[name] = node.grad if node.grad is not None else torch.zeros_like(node)
        return grads, -score_diff

    def param(self, msg: Message) -> None:
        name = msg["name"]
        store = get_param_store()
        node = self.params_seen.get(name)
        if node is None:
            # creates the parameter on first use
            msg["fn"](*msg["args"], **msg["kwargs"])
            node = store.unconstrained(name).detach().clone().requires_grad_(True)
            self.params_seen[name] = node
        msg["value"] = transform_to(store.get_constraint(name))(node)
        msg["done"] = True

    def sample(self, msg: Message) -> None:
        fn, name = msg["fn"], msg["name"]
        guide, is_default = resolve_guide(fn, name, msg["infer"].get("guide"))
        if is_default and self.verbose and self.step == 0 and not self._mean_field_notice_issued:
            self._mean_field_notice_issued = True
            logger.info("ELBO: Defaulting to mean-field for one or more choices.")

        value = self._sample_guide(guide, msg["infer"].get("reparam"))
        if is_validation_enabled():
            self._check_support(fn, name, value)
        self.logp = self.logp + fn.score(value)

        msg["value"] = value
        msg["done"] = True

    def _sample_guide(self, guide, reparam):
        if reparam is not False and isinstance(guide, ReparameterizedDistribution):
            base = guide.base()
            z = base.sample()
            self.logr = self.logr + base.score(z)
            value = guide.transform(z)
            self.logq = self.logq + guide.score(value)
            self.pathwise_diverged = True
        elif reparam:
            raise UnsupportedOperation("{} does not support reparameterization.".format(guide))
        else:
            value = guide.sample()
            score = guide.score(value)
            self.logr = self.logr + score
            if self.pathwise_diverged:
                self.logq = self.logq + score
            else:
                self.logq = self.logr
        return value

    @staticmethod
    def _check_support(fn, name, value):
        try:
            support = fn.support
        except NotImplementedError:
            return
        if not bool(support.check(torch.as_tensor(value)).all()):
            raise ValueError(
                "Guide sample {} at site '{}' lies outside the support of {}".format(
                    value, name, fn
                )
            )

    def factor(self, msg: Message) -> None:
        self.logp = self.logp + msg["args"][0]
        msg["done"] = True

    def map_data_fetch(self, msg: Message) -> None:
        if self._checkpoint is not None:
            raise PreconditionViolation(
                "ELBO: map_data '{}' is nested inside another map_data scope.".format(msg["name"])
            )
        (data,) = msg["args"]
        size = len(data)
        batch_size = msg["infer"]["batch_size"]

        if batch_size == size:
            # Use all the data, in order.
            ix = []
        else:
            ix = torch.randint(0, size, (batch_size,)).tolist()

        # Totals at scope entry, to rescale what the minibatch contributes.
        self._checkpoint = MapDataCheckpoint(size / batch_size, self.logp, self.logq, self.logr)
        msg["value"] = ix
        msg["done"] = True

    def map_data_final(self, msg: Message) -> None:
        checkpoint = self._checkpoint
        if checkpoint is None:
            raise PreconditionViolation(
                "ELBO: map_data_final '{}' called outside a map_data scope.".format(msg["name"])
            )
        self._checkpoint = None

        if checkpoint.multiplier != 1:
            m = checkpoint.multiplier - 1
            self.logp = self.logp + m * (self.logp - checkpoint.logp)
            self.logq = self.logq + m * (self.logq - checkpoint.logq)
            if self.pathwise_diverged:
                self.logr = self.logr + m * (self.logr - checkpoint.logr)
            else:
                self.logr = self.logq

        msg["done"] = True
