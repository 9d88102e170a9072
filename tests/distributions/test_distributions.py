# Copyright Contributors to the Vigrad project.
# SPDX-License-Identifier: Apache-2.0

import math

import pytest
import torch
from torch.distributions import constraints

import vigrad.distributions as dist
from vigrad.distributions import Distribution, ReparameterizedDistribution
from tests.common import assert_equal

pytestmark = pytest.mark.stage("unit")

PRIMITIVE = [
    dist.Bernoulli(0.3),
    dist.Categorical(torch.tensor([0.2, 0.8])),
    dist.Poisson(2.0),
    dist.Gamma(2.0, 3.0),
    dist.Beta(2.0, 2.0),
]

REPARAMETERIZED = [
    dist.Normal(1.0, 2.0),
    dist.Uniform(-1.0, 3.0),
    dist.LogNormal(0.5, 0.2),
    dist.TransformedNormal(torch.tensor(0.0), torch.tensor(1.0), constraints.positive),
]


@pytest.mark.parametrize("d", PRIMITIVE, ids=repr)
def test_primitive_variant(d):
    assert isinstance(d, Distribution)
    assert not isinstance(d, ReparameterizedDistribution)
    x = d.sample()
    assert bool(d.support.check(x).all())
    assert d.score(x).shape == ()


@pytest.mark.parametrize("d", REPARAMETERIZED, ids=repr)
def test_reparameterized_variant(d):
    assert isinstance(d, ReparameterizedDistribution)
    z = d.base().sample()
    x = d.transform(z)
    assert bool(d.support.check(x).all())
    assert torch.isfinite(d.score(x))


@pytest.mark.parametrize("d", REPARAMETERIZED, ids=repr)
def test_base_is_standard(d):
    base = d.base()
    assert not isinstance(base, dist.TransformedNormal)
    assert not any(p.requires_grad for p in (base.torch_dist.mean, base.torch_dist.stddev))


def test_normal_transform():
    d = dist.Normal(2.0, 3.0)
    z = torch.tensor(0.5)
    assert_equal(d.transform(z), torch.tensor(3.5))


def test_uniform_transform():
    d = dist.Uniform(-1.0, 3.0)
    assert_equal(d.transform(torch.tensor(0.25)), torch.tensor(0.0))


def test_transform_is_differentiable():
    loc = torch.tensor(1.0, requires_grad=True)
    x = dist.Normal(loc, 1.0).transform(torch.tensor(0.3))
    x.backward()
    assert_equal(loc.grad, torch.tensor(1.0))


def test_score_sums_dims():
    d = dist.Normal(torch.zeros(3), torch.ones(3))
    expected = 3 * torch.distributions.Normal(0.0, 1.0).log_prob(torch.tensor(0.0))
    assert_equal(d.score(torch.zeros(3)), expected)


def test_score_accepts_numbers():
    assert_equal(dist.Bernoulli(0.3).score(1).item(), math.log(0.3))
    assert_equal(dist.Categorical(torch.tensor([0.2, 0.8])).score(1).item(), math.log(0.8))


def test_transformed_normal_real_support():
    d = dist.TransformedNormal(torch.tensor(1.0), torch.tensor(2.0), constraints.real)
    x = torch.tensor(0.3)
    assert_equal(d.score(x), dist.Normal(1.0, 2.0).score(x))
    assert_equal(d.transform(torch.tensor(0.5)), torch.tensor(2.0))


def test_transformed_normal_positive_support():
    d = dist.TransformedNormal(torch.tensor(0.5), torch.tensor(0.2), constraints.positive)
    x = torch.tensor(1.7)
    assert_equal(d.score(x), dist.LogNormal(0.5, 0.2).score(x))
    assert d.support is constraints.positive


def test_repr():
    assert repr(dist.Bernoulli(0.5)) == "Bernoulli(probs=0.5)"
    assert repr(dist.Normal(0.0, 1.0)) == "Normal(loc=0.0, scale=1.0)"


def test_call_samples():
    assert dist.Bernoulli(1.0)().item() == 1.0


def test_abstract():
    with pytest.raises(TypeError):
        Distribution()

    class Coin(Distribution):
        def sample(self):
            return 1

        def score(self, value):
            return torch.tensor(0.0)

    with pytest.raises(NotImplementedError):
        Coin().support
    assert repr(Coin()) == "Coin()"


def test_empirical_score():
    d = dist.Empirical([torch.tensor(0.0), torch.tensor(1.0), torch.tensor(1.0)])
    assert len(d) == 3
    assert_equal(d.score(torch.tensor(1.0)).item(), math.log(2 / 3))
    assert_equal(d.score(0.0).item(), math.log(1 / 3))
    assert d.score(torch.tensor(2.0)).item() == -math.inf


def test_empirical_weighted():
    d = dist.Empirical([0.0, 1.0], [0.0, math.log(3.0)])
    assert_equal(d.log_probs, torch.tensor([math.log(0.25), math.log(0.75)]))
    assert_equal(d.mean, torch.tensor(0.75))


def test_empirical_sample():
    d = dist.Empirical(["a", "b"], torch.tensor([0.0, -math.inf]))
    assert d.sample() == "a"
    assert d.score("b").item() == -math.inf


def test_empirical_invalid():
    with pytest.raises(ValueError):
        dist.Empirical([])
    with pytest.raises(ValueError):
        dist.Empirical([1, 2], [0.0])
