# Copyright Contributors to the Vigrad project.
# SPDX-License-Identifier: Apache-2.0

from abc import ABCMeta, abstractmethod


class Distribution(metaclass=ABCMeta):
    """
    Base class for the distributions used at ``sample`` sites.

    Distributions in Vigrad are stochastic objects with a :meth:`sample`
    method that draws a value and a :meth:`score` method that evaluates the
    total log density of a value::

      d = dist.Bernoulli(0.3)
      x = d.sample()                         # Draws a random sample.
      s = d.score(x)                         # Evaluates its log density.

    Distributions deriving only from this class are scored with the
    likelihood-ratio estimator during variational inference. Distributions
    that can be written as a differentiable transform of a parameter free base
    distribution should derive from :class:`ReparameterizedDistribution`
    instead.

    **Implementing New Distributions**:

    Derived classes must implement :meth:`sample` and :meth:`score`, and
    should provide :attr:`support` if a default guide is to be constructed
    for them.
    """

    def __call__(self):
        """
        Samples a random value (just an alias for ``.sample()``).
        """
        return self.sample()

    @abstractmethod
    def sample(self):
        """
        Samples a random value. The result is not connected to the
        autograd graph of the distribution parameters.

        :rtype: torch.Tensor
        """
        raise NotImplementedError

    @abstractmethod
    def score(self, value):
        """
        Evaluates the log density of ``value``, summed over all dimensions.

        :param value: a value in the support of the distribution.
        :returns: a scalar log density.
        :rtype: torch.Tensor
        """
        raise NotImplementedError

    @property
    def support(self):
        """
        :returns: the constraint describing the support of the distribution.
        :rtype: ~torch.distributions.constraints.Constraint
        """
        raise NotImplementedError(
            "{} does not declare its support".format(type(self).__name__)
        )

    def __repr__(self):
        return type(self).__name__ + "()"


class ReparameterizedDistribution(Distribution):
    """
    Base class for distributions whose samples can be written as
    ``transform(z)`` with ``z ~ base()``, where ``base()`` does not depend on
    any parameter. Variational inference uses the path-wise gradient
    estimator at sites drawn from such distributions.
    """

    @abstractmethod
    def base(self):
        """
        :returns: a parameter free distribution of the noise variate.
        :rtype: Distribution
        """
        raise NotImplementedError

    @abstractmethod
    def transform(self, z):
        """
        Maps a draw of :meth:`base` to a draw of this distribution.

        :param torch.Tensor z: a draw from :meth:`base`.
        :rtype: torch.Tensor
        """
        raise NotImplementedError
