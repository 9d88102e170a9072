# Copyright Contributors to the Vigrad project.
# SPDX-License-Identifier: Apache-2.0

import logging
from typing import Callable, List, Optional

from tqdm.auto import tqdm

from vigrad.infer.elbo import ELBO
from vigrad.optim import Adam, VigradOptim, zero_grads
from vigrad.primitives import get_param_store
from vigrad.util import warn_if_nan

logger = logging.getLogger(__name__)


class Optimize:
    """
    Stochastic variational inference: fits the parameters of a model's
    guides by stochastic gradient ascent on the ELBO, as estimated by
    :class:`~vigrad.infer.elbo.ELBO`.

    Each :meth:`step` runs one estimator run against the current parameter
    values and hands the averaged gradient to ``optim``.

    :param callable model: a model containing Vigrad primitives.
    :param optim: a wrapped optimizer, defaults to ``Adam({"lr": 0.1})``.
    :type optim: ~vigrad.optim.optim.VigradOptim
    :param int samples: number of executions per gradient estimate.
    :param bool verbose: whether the estimator logs diagnostics on the first
        step.
    """

    def __init__(
        self,
        model: Callable,
        optim: Optional[VigradOptim] = None,
        samples: int = 1,
        verbose: bool = False,
    ) -> None:
        if optim is None:
            optim = Adam({"lr": 0.1})
        if not isinstance(optim, VigradOptim):
            raise ValueError("Optimizer should be an instance of vigrad.optim.VigradOptim class.")
        self.model = model
        self.optim = optim
        self.samples = samples
        self.verbose = verbose
        self.num_steps = 0

    def step(self, *args, **kwargs) -> float:
        """
        :returns: estimate of the ELBO before the update
        :rtype: float

        Take a gradient step. Any args or kwargs are passed to the model.
        """
        estimator = ELBO(
            self.model, samples=self.samples, verbose=self.verbose, step=self.num_steps
        )
        grads, elbo = estimator.run(*args, **kwargs)

        param_store = get_param_store()
        params = []
        for name, grad in grads.items():
            unconstrained_value = param_store.unconstrained(name)
            warn_if_nan(grad, "gradient of {}".format(name))
            unconstrained_value.grad = grad.detach().to(unconstrained_value.dtype)
            params.append(unconstrained_value)

        # torch.optim objects get instantiated for any params that haven't been seen yet
        self.optim(params)
        zero_grads(params)

        self.num_steps += 1
        return elbo


def optimize(
    model: Callable,
    *args,
    steps: int = 1,
    optim: Optional[VigradOptim] = None,
    samples: int = 1,
    verbose: bool = False,
    log_interval: int = 100,
    progress_bar: bool = False,
    **kwargs,
) -> List[float]:
    """
    Runs ``steps`` steps of :class:`Optimize`. Remaining args and kwargs are
    passed to the model.

    :param int steps: number of optimization steps.
    :param optim: a wrapped optimizer, see :class:`Optimize`.
    :param int samples: number of executions per gradient estimate.
    :param bool verbose: whether to log diagnostics and the ELBO every
        ``log_interval`` steps.
    :param int log_interval: steps between ELBO log messages.
    :param bool progress_bar: whether to display a :class:`~tqdm.tqdm`
        progress bar.
    :returns: the ELBO estimate of every step.
    :rtype: list
    """
    runner = Optimize(model, optim=optim, samples=samples, verbose=verbose)
    history = []
    with tqdm(total=steps, desc="optimize", disable=not progress_bar) as pbar:
        for step in range(steps):
            elbo = runner.step(*args, **kwargs)
            history.append(elbo)
            pbar.set_postfix(elbo="{:.4g}".format(elbo), refresh=False)
            pbar.update()
            if verbose and (step % log_interval == 0 or step == steps - 1):
                logger.info("Step %d: ELBO = %.4f", step, elbo)
    return history
