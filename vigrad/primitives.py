# Copyright Contributors to the Vigrad project.
# SPDX-License-Identifier: Apache-2.0

from typing import Any, Callable, List, Optional, Sequence

import torch
from torch.distributions import constraints

from vigrad.distributions.distribution import Distribution
from vigrad.params.param_store import ParamStoreDict
from vigrad.poutine.runtime import _VIGRAD_PARAM_STORE, Message, apply_stack
from vigrad.util import PreconditionViolation


def get_param_store() -> ParamStoreDict:
    """
    Returns the global :class:`~vigrad.params.param_store.ParamStoreDict`.
    """
    return _VIGRAD_PARAM_STORE


def clear_param_store() -> None:
    """
    Clears the global :class:`~vigrad.params.param_store.ParamStoreDict`.

    We recommend calling this before each training loop (to avoid leaking
    parameters from past models), and before each unit test.
    """
    _VIGRAD_PARAM_STORE.clear()


def _no_op(*args, **kwargs) -> None:
    return None


def _use_all_data(data: Sequence) -> List[int]:
    # An empty selection means "all data, in order".
    return []


def param(
    name: str,
    init_tensor: Optional[torch.Tensor] = None,
    constraint: constraints.Constraint = constraints.real,
) -> torch.Tensor:
    """
    Saves the variable as a parameter in the param store, or retrieves it if
    it already exists.

    Under variational inference, the first read of a parameter during a model
    execution registers it as a parameter for which a gradient is estimated.

    :param str name: name of parameter
    :param init_tensor: initial tensor or lazy callable that returns a tensor.
        Only used the first time the parameter is created.
    :type init_tensor: torch.Tensor or callable
    :param constraint: torch constraint, defaults to ``constraints.real``.
    :type constraint: torch.distributions.constraints.Constraint
    :returns: A constrained parameter.
    :rtype: torch.Tensor
    """
    args = (name,) if init_tensor is None else (name, init_tensor)
    msg = Message(
        type="param",
        name=name,
        fn=_VIGRAD_PARAM_STORE.get_param,
        args=args,
        kwargs={"constraint": constraint},
        value=None,
        infer={},
        done=False,
    )
    apply_stack(msg)
    return msg["value"]


def sample(
    name: str,
    fn: Distribution,
    guide: Optional[Distribution] = None,
    reparam: Optional[bool] = None,
) -> Any:
    """
    Draws a value for the random choice ``name`` from ``fn``, with side
    effects depending on the active strategy (e.g. an inference algorithm).

    :param str name: address of the random choice.
    :param fn: the distribution of the random choice under the model.
    :type fn: ~vigrad.distributions.Distribution
    :param guide: optional guide distribution used instead of ``fn`` by
        variational inference. If omitted a mean-field guide is created.
    :type guide: ~vigrad.distributions.Distribution
    :param bool reparam: whether to use the reparameterized gradient
        estimator at this site; see :class:`~vigrad.poutine.runtime.InferDict`.
    :returns: sample
    """
    msg = Message(
        type="sample",
        name=name,
        fn=fn,
        args=(),
        kwargs={},
        value=None,
        infer={"guide": guide, "reparam": reparam},
        done=False,
    )
    apply_stack(msg)
    return msg["value"]


def factor(name: str, log_factor: torch.Tensor) -> None:
    """
    Factor statement to add an arbitrary log weight to the model's joint
    log density.

    :param str name: address of the factor.
    :param log_factor: a scalar log weight.
    :type log_factor: torch.Tensor or float
    """
    msg = Message(
        type="factor",
        name=name,
        fn=_no_op,
        args=(log_factor,),
        kwargs={},
        value=None,
        infer={},
        done=False,
    )
    apply_stack(msg)


def observe(name: str, fn: Distribution, value: Any) -> Any:
    """
    Conditions the model on ``value`` having been drawn from ``fn``. This is
    shorthand for ``factor(name, fn.score(value))``.

    :returns: ``value``
    """
    factor(name, fn.score(value))
    return value


def map_data(
    name: str,
    data: Sequence,
    fn: Callable[[Any, int], Any],
    batch_size: Optional[int] = None,
) -> List[Any]:
    """
    Maps ``fn(datum, index)`` over conditionally independent data.

    Under variational inference, when ``batch_size < len(data)`` only a
    random minibatch of ``batch_size`` indices (drawn uniformly with
    replacement) is visited and the log densities accumulated inside the
    scope are rescaled by ``len(data) / batch_size``. This is only correct if
    each datum contributes an independent term. Scopes may not be nested.

    Example::

        def model(data):
            loc = vigrad.sample("loc", dist.Normal(0.0, 10.0))
            vigrad.map_data(
                "data",
                data,
                lambda x, i: vigrad.observe("obs_{}".format(i), dist.Normal(loc, 1.0), x),
                batch_size=10,
            )

    :param str name: address of the scope.
    :param data: the data; anything supporting ``len()`` and integer indexing.
    :param callable fn: function of a datum and its index.
    :param int batch_size: minibatch size, ``0 < batch_size <= len(data)``.
        Defaults to ``len(data)``.
    :returns: the results of ``fn`` for the visited data, in visiting order.
    :rtype: list
    """
    size = len(data)
    if size == 0:
        raise PreconditionViolation("map_data '{}' requires non-empty data".format(name))
    if batch_size is None:
        batch_size = size
    if not 0 < batch_size <= size:
        raise PreconditionViolation(
            "map_data '{}' expected 0 < batch_size <= {}, actual {}".format(
                name, size, batch_size
            )
        )

    fetch = Message(
        type="map_data_fetch",
        name=name,
        fn=_use_all_data,
        args=(data,),
        kwargs={},
        value=None,
        infer={"batch_size": batch_size},
        done=False,
    )
    apply_stack(fetch)
    ix = fetch["value"]
    indices = range(size) if len(ix) == 0 else ix
    results = [fn(data[i], i) for i in indices]

    final = Message(
        type="map_data_final",
        name=name,
        fn=_no_op,
        args=(),
        kwargs={},
        value=None,
        infer={},
        done=False,
    )
    apply_stack(final)
    return results
