# Copyright Contributors to the Vigrad project.
# SPDX-License-Identifier: Apache-2.0

from vigrad.distributions.distribution import (
    Distribution,
    ReparameterizedDistribution,
)
from vigrad.distributions.empirical import Empirical
from vigrad.distributions.torch_distribution import (
    Bernoulli,
    Beta,
    Categorical,
    Gamma,
    LogNormal,
    Normal,
    Poisson,
    TorchDistribution,
    TransformedNormal,
    Uniform,
)

__all__ = [
    "Bernoulli",
    "Beta",
    "Categorical",
    "Distribution",
    "Empirical",
    "Gamma",
    "LogNormal",
    "Normal",
    "Poisson",
    "ReparameterizedDistribution",
    "TorchDistribution",
    "TransformedNormal",
    "Uniform",
]
