# Copyright Contributors to the Vigrad project.
# SPDX-License-Identifier: Apache-2.0

from vigrad.params.param_store import ParamStoreDict
from vigrad.params.param_struct import merge_add, merge_divide_scalar

__all__ = [
    "ParamStoreDict",
    "merge_add",
    "merge_divide_scalar",
]
