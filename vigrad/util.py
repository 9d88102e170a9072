# Copyright Contributors to the Vigrad project.
# SPDX-License-Identifier: Apache-2.0

import numbers
import random
import sys
import warnings
from typing import Any, Dict, Optional, Union

import numpy as np
import torch


class PreconditionViolation(ValueError):
    """
    Raised when inference is asked to proceed from a state it cannot
    handle, e.g. nested ``map_data`` scopes or a diverging model score.
    """

    pass


class UnsupportedOperation(NotImplementedError):
    """
    Raised when a distribution lacks a capability that was explicitly
    requested, e.g. reparameterized sampling.
    """

    pass


def set_rng_seed(rng_seed: int) -> None:
    """
    Sets seeds of `torch`, `random` and `numpy`.

    :param int rng_seed: The seed value.
    """
    torch.manual_seed(rng_seed)
    random.seed(rng_seed)
    np.random.seed(rng_seed)


def torch_isnan(x: Union[torch.Tensor, numbers.Number]) -> Union[bool, torch.Tensor]:
    """
    A convenient function to check if a Tensor contains any nan; also works with numbers
    """
    if isinstance(x, numbers.Number):
        return x != x
    return torch.isnan(x).any()


def warn_if_nan(
    value: Union[torch.Tensor, numbers.Number],
    msg: str = "",
    *,
    filename: Optional[str] = None,
    lineno: Optional[int] = None,
) -> Union[torch.Tensor, numbers.Number]:
    """
    A convenient function to warn if a Tensor contains any nan, also works
    with numbers.
    """
    if filename is None:
        try:
            frame = sys._getframe(1)
        except ValueError:
            filename = "sys"
            lineno = 1
        else:
            filename = frame.f_code.co_filename
            lineno = frame.f_lineno

    if torch_isnan(value):
        assert isinstance(lineno, int)
        warnings.warn_explicit(
            "Encountered NaN{}".format(": " + msg if msg else "."),
            UserWarning,
            filename,
            lineno,
        )

    return value


def merge_defaults(
    options: Optional[Dict[str, Any]], defaults: Dict[str, Any], context: str = ""
) -> Dict[str, Any]:
    """
    Returns a copy of ``defaults`` updated with ``options``.

    :param dict options: user supplied options, possibly ``None``.
    :param dict defaults: the complete set of allowed options and their
        default values.
    :param str context: a label used in error messages.
    :raises ValueError: if ``options`` contains a key not in ``defaults``.
    """
    options = {} if options is None else options
    unknown = sorted(set(options) - set(defaults))
    if unknown:
        raise ValueError(
            "Unknown option(s) {}{}; expected a subset of {}".format(
                ", ".join(unknown),
                " for " + context if context else "",
                sorted(defaults),
            )
        )
    result = defaults.copy()
    result.update(options)
    return result
