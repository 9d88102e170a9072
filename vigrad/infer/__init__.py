# Copyright Contributors to the Vigrad project.
# SPDX-License-Identifier: Apache-2.0

from vigrad.infer.elbo import ELBO
from vigrad.infer.forward import Forward
from vigrad.infer.guide import independent_guide, resolve_guide
from vigrad.infer.infer import Infer
from vigrad.infer.optimize import Optimize, optimize
from vigrad.infer.util import enable_validation, is_validation_enabled

__all__ = [
    "ELBO",
    "Forward",
    "Infer",
    "Optimize",
    "enable_validation",
    "independent_guide",
    "is_validation_enabled",
    "optimize",
    "resolve_guide",
]
