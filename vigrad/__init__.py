# Copyright Contributors to the Vigrad project.
# SPDX-License-Identifier: Apache-2.0

from vigrad import settings
from vigrad.infer import ELBO, Infer, optimize
from vigrad.logger import log
from vigrad.primitives import (
    clear_param_store,
    factor,
    get_param_store,
    map_data,
    observe,
    param,
    sample,
)
from vigrad.util import set_rng_seed

version_prefix = "0.1.0"

__version__ = version_prefix

__all__ = [
    "ELBO",
    "Infer",
    "__version__",
    "clear_param_store",
    "factor",
    "get_param_store",
    "log",
    "map_data",
    "observe",
    "optimize",
    "param",
    "sample",
    "set_rng_seed",
    "settings",
]
