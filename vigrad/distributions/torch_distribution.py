# Copyright Contributors to the Vigrad project.
# SPDX-License-Identifier: Apache-2.0

import torch
import torch.distributions as tdist
from torch.distributions import biject_to

from vigrad.distributions.distribution import (
    Distribution,
    ReparameterizedDistribution,
)


def _as_value(value):
    if torch.is_tensor(value):
        return value
    return torch.tensor(value, dtype=torch.get_default_dtype())


class TorchDistribution(Distribution):
    """
    Adapts a :class:`torch.distributions.Distribution` to the Vigrad
    :class:`~vigrad.distributions.distribution.Distribution` interface.

    Derived classes set ``torch_class``; constructor arguments are forwarded
    to it unchanged.
    """

    torch_class = tdist.Distribution

    def __init__(self, *args, **kwargs):
        self.torch_dist = self.torch_class(*args, **kwargs)

    @property
    def support(self):
        return self.torch_dist.support

    def sample(self):
        return self.torch_dist.sample()

    def score(self, value):
        return self.torch_dist.log_prob(_as_value(value)).sum()

    def __repr__(self):
        params = []
        for name in self.torch_dist.arg_constraints:
            # Lazily computed parameterizations are not shown.
            if name in self.torch_dist.__dict__:
                value = self.torch_dist.__dict__[name]
                if torch.is_tensor(value):
                    value = value.detach().tolist()
                params.append("{}={}".format(name, value))
        return "{}({})".format(type(self).__name__, ", ".join(params))


class Bernoulli(TorchDistribution):
    torch_class = tdist.Bernoulli


class Categorical(TorchDistribution):
    torch_class = tdist.Categorical


class Poisson(TorchDistribution):
    torch_class = tdist.Poisson


class Gamma(TorchDistribution):
    torch_class = tdist.Gamma


class Beta(TorchDistribution):
    torch_class = tdist.Beta


class Normal(TorchDistribution, ReparameterizedDistribution):
    torch_class = tdist.Normal

    def base(self):
        shape = self.torch_dist.batch_shape
        return Normal(torch.zeros(shape), torch.ones(shape))

    def transform(self, z):
        return self.torch_dist.loc + self.torch_dist.scale * z


class Uniform(TorchDistribution, ReparameterizedDistribution):
    torch_class = tdist.Uniform

    def base(self):
        shape = self.torch_dist.batch_shape
        return Uniform(torch.zeros(shape), torch.ones(shape))

    def transform(self, z):
        low, high = self.torch_dist.low, self.torch_dist.high
        return low + (high - low) * z


class LogNormal(TorchDistribution, ReparameterizedDistribution):
    torch_class = tdist.LogNormal

    def base(self):
        shape = self.torch_dist.batch_shape
        return Normal(torch.zeros(shape), torch.ones(shape))

    def transform(self, z):
        return torch.exp(self.torch_dist.loc + self.torch_dist.scale * z)


class TransformedNormal(TorchDistribution, ReparameterizedDistribution):
    """
    A normal distribution in unconstrained space pushed forward through
    ``biject_to(support)``. This is the family used by default guides for
    continuous sample sites.

    :param torch.Tensor loc: unconstrained location.
    :param torch.Tensor scale: unconstrained scale.
    :param support: the constraint of the values produced.
    :type support: ~torch.distributions.constraints.Constraint
    """

    def __init__(self, loc, scale, support):
        self.loc = loc
        self.scale = scale
        self._support = support
        self.bijector = biject_to(support)
        self.torch_dist = tdist.TransformedDistribution(
            tdist.Normal(loc, scale), [self.bijector]
        )

    @property
    def support(self):
        return self._support

    def base(self):
        shape = self.torch_dist.base_dist.batch_shape
        return Normal(torch.zeros(shape), torch.ones(shape))

    def transform(self, z):
        return self.bijector(self.loc + self.scale * z)

    def __repr__(self):
        return "TransformedNormal(loc={}, scale={}, support={})".format(
            torch.as_tensor(self.loc).detach().tolist(),
            torch.as_tensor(self.scale).detach().tolist(),
            self._support,
        )
