# Copyright Contributors to the Vigrad project.
# SPDX-License-Identifier: Apache-2.0

from vigrad.poutine.runtime import _VIGRAD_STACK, Message, default_process_message

_PROTOCOL = ("sample", "factor", "param", "map_data_fetch", "map_data_final")


class Strategy:
    """
    Context manager class implementing the execution protocol through which
    a model's primitive statements are routed during inference.

    This is the base Strategy class. It implements forward execution for
    all primitives: ``sample`` draws from the site distribution, ``factor`` is
    ignored, ``param`` reads the param store and ``map_data`` visits all data
    in order. Inference algorithms are implemented in subclasses, which
    override the protocol methods :meth:`sample`, :meth:`factor`,
    :meth:`param`, :meth:`map_data_fetch` and :meth:`map_data_final`. Each
    receives the site :class:`~vigrad.poutine.runtime.Message` and should set
    ``msg["value"]`` and ``msg["done"]``, or defer to the base behavior.

    Exactly one strategy is active at a time: the most recently entered.
    Entering a strategy suspends the previously active one and exiting it,
    normally or by an exception, resumes it. This allows a strategy to run a
    model under a different, nested strategy.
    """

    def __enter__(self):
        """
        Installs this strategy on top of the stack, making it active.

        :returns: self
        """
        if self in _VIGRAD_STACK:
            raise ValueError("cannot install a Strategy instance twice")
        _VIGRAD_STACK.append(self)
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        """
        Removes this strategy from the stack, reactivating the strategy that
        was active when it was entered.

        If an exception is raised, removes this strategy and everything
        installed after it.
        """
        if exc_type is None:
            if _VIGRAD_STACK[-1] is self:
                _VIGRAD_STACK.pop()
            else:
                raise ValueError("This Strategy is not on the top of the stack")
        else:
            if self in _VIGRAD_STACK:
                loc = _VIGRAD_STACK.index(self)
                del _VIGRAD_STACK[loc:]

    def _process_message(self, msg: Message) -> None:
        if msg["type"] not in _PROTOCOL:
            raise ValueError("Unknown message type '{}'".format(msg["type"]))
        getattr(self, msg["type"])(msg)

    def sample(self, msg: Message) -> None:
        default_process_message(msg)

    def factor(self, msg: Message) -> None:
        default_process_message(msg)

    def param(self, msg: Message) -> None:
        default_process_message(msg)

    def map_data_fetch(self, msg: Message) -> None:
        default_process_message(msg)

    def map_data_final(self, msg: Message) -> None:
        default_process_message(msg)
