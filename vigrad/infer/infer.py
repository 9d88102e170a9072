# Copyright Contributors to the Vigrad project.
# SPDX-License-Identifier: Apache-2.0

"""
A single entry point for the family of inference methods. Each method has a
fixed set of options with defaults:

- ``enumerate``: ``max_executions`` (inf), ``strategy`` (``"likely_first"``,
  ``"depth_first"`` or ``"breadth_first"``)
- ``rejection``: ``samples`` (1), ``max_score`` (None), ``incremental`` (False)
- ``mcmc``: ``kernel`` (``"MH"``, ``"HMC"`` or ``{"HMC": {"steps": 5,
  "step_size": 0.1}}``), ``samples`` (100), ``lag`` (0), ``burn`` (0),
  ``verbose`` (False), ``just_sample`` (False), ``only_map`` (False)
- ``incremental_mh``: as ``mcmc`` without ``kernel``
- ``smc``: ``particles`` (100), ``rejuv_steps`` (0), ``rejuv_kernel`` (``"MH"``)
- ``optimize``: ``samples`` (1) drawn from the fitted guide, ``steps`` (1),
  ``optim`` (None), ``estimator`` (``{"samples": 1}``), ``verbose`` (False),
  ``progress_bar`` (False)
- ``forward``: ``samples`` (1), ``guide`` (False)

Only ``forward`` and ``optimize`` are provided by this package; the other
methods are validated and then rejected with :class:`NotImplementedError`.
"""

import math
from typing import Any, Callable, Dict, Optional

from vigrad.distributions.empirical import Empirical
from vigrad.infer.forward import Forward
from vigrad.infer.optimize import optimize
from vigrad.util import merge_defaults

_MCMC_DEFAULTS = {
    "samples": 100,
    "lag": 0,
    "burn": 0,
    "verbose": False,
    "just_sample": False,
    "only_map": False,
}

_METHOD_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "enumerate": {"max_executions": math.inf, "strategy": "likely_first"},
    "rejection": {"samples": 1, "max_score": None, "incremental": False},
    "mcmc": dict(_MCMC_DEFAULTS, kernel="MH"),
    "incremental_mh": dict(_MCMC_DEFAULTS),
    "smc": {"particles": 100, "rejuv_steps": 0, "rejuv_kernel": "MH"},
    "optimize": {
        "samples": 1,
        "steps": 1,
        "optim": None,
        "estimator": None,
        "verbose": False,
        "progress_bar": False,
    },
    "forward": {"samples": 1, "guide": False},
}

_ENUMERATE_STRATEGIES = ("likely_first", "depth_first", "breadth_first")
_ESTIMATOR_DEFAULTS = {"samples": 1}
_HMC_DEFAULTS = {"steps": 5, "step_size": 0.1}


def _normalize_kernel(kernel):
    if kernel == "MH":
        return {"MH": {}}
    if kernel == "HMC":
        return {"HMC": dict(_HMC_DEFAULTS)}
    if isinstance(kernel, dict) and list(kernel) == ["HMC"]:
        return {"HMC": merge_defaults(kernel["HMC"], _HMC_DEFAULTS, "HMC kernel")}
    raise ValueError(
        "Unknown kernel {!r}; expected 'MH', 'HMC' or {{'HMC': {{...}}}}".format(kernel)
    )


def _check_positive_int(options, *names):
    for name in names:
        value = options[name]
        if isinstance(value, bool) or not (isinstance(value, int) and value > 0):
            raise ValueError("Expected {} to be a positive int, actual {!r}".format(name, value))


def _validate(method, options):
    if method == "enumerate":
        if options["strategy"] not in _ENUMERATE_STRATEGIES:
            raise ValueError(
                "Unknown enumeration strategy {!r}; expected one of {}".format(
                    options["strategy"], _ENUMERATE_STRATEGIES
                )
            )
    elif method == "rejection":
        _check_positive_int(options, "samples")
    elif method in ("mcmc", "incremental_mh"):
        _check_positive_int(options, "samples")
        if "kernel" in options:
            options["kernel"] = _normalize_kernel(options["kernel"])
    elif method == "smc":
        _check_positive_int(options, "particles")
        options["rejuv_kernel"] = _normalize_kernel(options["rejuv_kernel"])
    elif method == "optimize":
        _check_positive_int(options, "samples", "steps")
        options["estimator"] = merge_defaults(
            options["estimator"], _ESTIMATOR_DEFAULTS, "the optimize estimator"
        )
        _check_positive_int(options["estimator"], "samples")
    elif method == "forward":
        _check_positive_int(options, "samples")
    return options


def _infer_forward(model, args, kwargs, options):
    values, log_weights = [], []
    for _ in range(options["samples"]):
        value, log_weight = Forward(model, guide=options["guide"]).run(*args, **kwargs)
        values.append(value)
        log_weights.append(log_weight)
    return Empirical(values, log_weights)


def _infer_optimize(model, args, kwargs, options):
    optimize(
        model,
        *args,
        steps=options["steps"],
        optim=options["optim"],
        samples=options["estimator"]["samples"],
        verbose=options["verbose"],
        progress_bar=options["progress_bar"],
        **kwargs,
    )
    return _infer_forward(model, args, kwargs, {"samples": options["samples"], "guide": True})


_METHODS = {
    "forward": _infer_forward,
    "optimize": _infer_optimize,
}


def Infer(
    model: Callable,
    *args,
    method: str = "optimize",
    options: Optional[Dict[str, Any]] = None,
    **kwargs,
) -> Empirical:
    """
    Runs inference method ``method`` on ``model`` and returns the resulting
    marginal distribution over the model's return value. Remaining args and
    kwargs are passed to the model.

    Example::

        posterior = Infer(model, data, method="optimize",
                          options={"steps": 1000, "samples": 100,
                                   "estimator": {"samples": 5}})

    :param callable model: a model containing Vigrad primitives.
    :param str method: one of the methods listed in this module's
        documentation.
    :param dict options: method options; missing options take defaults.
    :rtype: ~vigrad.distributions.empirical.Empirical
    :raises ValueError: on an unknown method or invalid options.
    :raises NotImplementedError: for methods not provided by this package.
    """
    if method not in _METHOD_DEFAULTS:
        raise ValueError(
            "Unknown inference method {!r}; expected one of {}".format(
                method, sorted(_METHOD_DEFAULTS)
            )
        )
    options = _validate(method, merge_defaults(options, _METHOD_DEFAULTS[method], method))
    if method not in _METHODS:
        raise NotImplementedError(
            "Inference method {!r} is not provided by vigrad".format(method)
        )
    return _METHODS[method](model, args, kwargs, options)
