# Copyright Contributors to the Vigrad project.
# SPDX-License-Identifier: Apache-2.0

from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

from typing_extensions import TypedDict

from vigrad.params.param_store import ParamStoreDict

if TYPE_CHECKING:
    from vigrad.distributions.distribution import Distribution
    from vigrad.poutine.strategy import Strategy

# the global strategy stack; the last entry is the active strategy
_VIGRAD_STACK: List["Strategy"] = []

# the global ParamStore
_VIGRAD_PARAM_STORE = ParamStoreDict()


class InferDict(TypedDict, total=False):
    """
    Per-site options passed from primitives to the active strategy.

    Keys:
        guide (Distribution):
            An explicit guide distribution for a ``sample`` site. If missing
            or None, a default mean-field guide is constructed.
        reparam (bool):
            Whether to use the reparameterized (path-wise) estimator at a
            ``sample`` site. None means "whenever the guide supports it";
            True makes a guide without reparameterization an error; False
            forces the likelihood-ratio estimator.
        batch_size (int):
            The number of data points visited by a ``map_data`` scope.
    """

    guide: Optional["Distribution"]
    reparam: Optional[bool]
    batch_size: int


class Message(TypedDict, total=False):
    """
    Vigrad's internal message type, sent by a primitive to the active
    strategy.

    Keys:
        type (str):
            One of "sample", "factor", "param", "map_data_fetch" or
            "map_data_final".
        name (str):
            The address of the site. Strategies treat it as an opaque token.
        fn (callable):
            The distribution or function implementing the default behavior.
        args (tuple):
            Positional arguments to ``fn``.
        kwargs (dict):
            Keyword arguments to ``fn``.
        value:
            The result of the site, filled in by the strategy.
        infer (InferDict):
            Per-site inference options.
        done (bool):
            Whether the message has been handled.
    """

    type: str
    name: Optional[str]
    fn: Callable
    args: Tuple
    kwargs: Dict
    value: Any
    infer: InferDict
    done: bool


def default_process_message(msg: Message) -> None:
    """
    Default method for processing messages: forward execution.

    :param msg: a message to be processed
    :returns: None
    """
    if msg["done"]:
        return

    msg["value"] = msg["fn"](*msg["args"], **msg["kwargs"])

    # after fn has been called, update msg to prevent it from being called again.
    msg["done"] = True


def apply_stack(msg: Message) -> None:
    """
    Route a message to the active strategy, i.e. the most recently installed
    one, falling back to :func:`default_process_message` when no strategy is
    installed. Only the active strategy sees the message; strategies lower
    in the stack are suspended until it is removed.

    :param dict msg: the site message, updated in place
    :returns: ``None``
    """
    if _VIGRAD_STACK:
        _VIGRAD_STACK[-1]._process_message(msg)
    default_process_message(msg)


def am_i_wrapped() -> bool:
    """
    Checks whether the current computation runs under a strategy.

    :returns: bool
    """
    return len(_VIGRAD_STACK) > 0


def get_active_strategy() -> Optional["Strategy"]:
    """
    :returns: the active strategy, or None when running outside inference.
    """
    return _VIGRAD_STACK[-1] if _VIGRAD_STACK else None
