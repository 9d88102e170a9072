# Copyright Contributors to the Vigrad project.
# SPDX-License-Identifier: Apache-2.0

import torch

from vigrad.distributions.distribution import Distribution


def _same_value(x, y):
    if torch.is_tensor(x) or torch.is_tensor(y):
        x, y = torch.as_tensor(x), torch.as_tensor(y)
        return x.shape == y.shape and bool((x == y).all())
    return x == y


class Empirical(Distribution):
    """
    Empirical distribution over a collection of (possibly weighted) values,
    as returned by :func:`~vigrad.infer.infer.Infer`.

    Values may be arbitrary Python objects or tensors; two values are the
    same outcome when they compare equal elementwise.

    :param list values: the recorded values.
    :param log_weights: optional unnormalized log weights, one per value.
        Defaults to uniform weights.
    :type log_weights: torch.Tensor or list
    """

    def __init__(self, values, log_weights=None):
        if not values:
            raise ValueError("Empirical requires at least one value")
        self.values = list(values)
        if log_weights is None:
            log_weights = torch.zeros(len(self.values))
        log_weights = torch.as_tensor(log_weights, dtype=torch.get_default_dtype())
        if log_weights.shape != (len(self.values),):
            raise ValueError(
                "Expected {} log weights, actual shape {}".format(
                    len(self.values), tuple(log_weights.shape)
                )
            )
        self.log_weights = log_weights.detach()

    @property
    def log_probs(self):
        """
        :returns: normalized log probability of each recorded value.
        :rtype: torch.Tensor
        """
        return self.log_weights - self.log_weights.logsumexp(0)

    def sample(self):
        index = torch.multinomial(self.log_probs.exp(), 1).item()
        return self.values[index]

    def score(self, value):
        mask = torch.tensor([_same_value(v, value) for v in self.values])
        if not mask.any():
            return torch.tensor(-float("inf"))
        return self.log_probs[mask].logsumexp(0)

    @property
    def mean(self):
        """
        Weighted mean of numeric values.
        """
        values = torch.stack([torch.as_tensor(v) for v in self.values]).to(
            self.log_weights.dtype
        )
        probs = self.log_probs.exp().reshape((-1,) + (1,) * (values.dim() - 1))
        return (probs * values).sum(0)

    def __len__(self):
        return len(self.values)

    def __repr__(self):
        return "Empirical(num_values={})".format(len(self.values))
