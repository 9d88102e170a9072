# Copyright Contributors to the Vigrad project.
# SPDX-License-Identifier: Apache-2.0

"""
Default mean-field guides.

When a ``sample`` statement does not specify a guide, variational inference
draws the random choice from an independent guide of the same kind as the
model's distribution, with learnable parameters named after the site::

    Bernoulli    -> Bernoulli(probs="{name}.probs")
    Categorical  -> Categorical(probs="{name}.probs")
    Poisson      -> Poisson(rate="{name}.rate")
    continuous   -> TransformedNormal(loc="{name}.loc",
                                      scale="{name}.scale",
                                      support=<model support>)
"""

from typing import Optional, Tuple

import torch
from torch.distributions import biject_to, constraints

import vigrad.distributions as dist
from vigrad import settings
from vigrad.distributions.distribution import Distribution
from vigrad.primitives import param
from vigrad.util import UnsupportedOperation

_INIT_SCALE = 0.1


@settings.register("guide_init_scale", __name__, "_INIT_SCALE")
def _validate_init_scale(value):
    assert isinstance(value, float), "guide_init_scale must be a float"
    assert value > 0, "guide_init_scale must be positive"


_PROBS_EPS = 1e-3


def _init_probs(probs: torch.Tensor) -> torch.Tensor:
    return probs.detach().clamp(_PROBS_EPS, 1 - _PROBS_EPS)


def independent_guide(fn: Distribution, name: str) -> Distribution:
    """
    Constructs a mean-field guide for the random choice ``name`` drawn from
    ``fn`` under the model. Parameters are registered with
    :func:`~vigrad.primitives.param`, so an existing parameter of the same
    name is reused and a new one is initialized from ``fn``.

    :param fn: the model's distribution at the site.
    :param str name: the site address, used to name guide parameters.
    :raises UnsupportedOperation: if no default guide exists for ``fn``.
    """
    if isinstance(fn, dist.Bernoulli):
        probs = param(
            name + ".probs",
            lambda: _init_probs(fn.torch_dist.probs),
            constraint=constraints.unit_interval,
        )
        return dist.Bernoulli(probs=probs)

    if isinstance(fn, dist.Categorical):

        def init_probs():
            probs = _init_probs(fn.torch_dist.probs)
            return probs / probs.sum(-1, keepdim=True)

        probs = param(name + ".probs", init_probs, constraint=constraints.simplex)
        return dist.Categorical(probs=probs)

    if isinstance(fn, dist.Poisson):
        rate = param(
            name + ".rate",
            lambda: fn.torch_dist.rate.detach().clamp(min=_PROBS_EPS),
            constraint=constraints.positive,
        )
        return dist.Poisson(rate)

    try:
        support = fn.support
    except NotImplementedError as e:
        raise UnsupportedOperation(
            "No default guide for {} at site '{}'; pass guide= explicitly".format(fn, name)
        ) from e
    if support.is_discrete:
        raise UnsupportedOperation(
            "No default guide for discrete {} at site '{}'; pass guide= explicitly".format(
                fn, name
            )
        )

    loc = param(name + ".loc", lambda: biject_to(support).inv(fn.sample()).detach())
    scale = param(
        name + ".scale",
        lambda: torch.full(loc.shape, _INIT_SCALE),
        constraint=constraints.positive,
    )
    return dist.TransformedNormal(loc, scale, support)


def resolve_guide(
    fn: Distribution, name: str, guide: Optional[Distribution] = None
) -> Tuple[Distribution, bool]:
    """
    Returns the distribution a guide-driven strategy should draw site
    ``name`` from, and whether it is a default mean-field guide.

    :param fn: the model's distribution at the site.
    :param str name: the site address.
    :param guide: the explicit guide passed to ``sample``, if any.
    :rtype: tuple
    """
    if guide is not None:
        return guide, False
    return independent_guide(fn, name), True
