# Copyright Contributors to the Vigrad project.
# SPDX-License-Identifier: Apache-2.0

from vigrad.poutine.runtime import (
    InferDict,
    Message,
    am_i_wrapped,
    apply_stack,
    get_active_strategy,
)
from vigrad.poutine.strategy import Strategy

__all__ = [
    "InferDict",
    "Message",
    "Strategy",
    "am_i_wrapped",
    "apply_stack",
    "get_active_strategy",
]
