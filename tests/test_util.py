# Copyright Contributors to the Vigrad project.
# SPDX-License-Identifier: Apache-2.0

import warnings

import numpy as np
import pytest
import torch

from vigrad.util import merge_defaults, set_rng_seed, torch_isnan, warn_if_nan
from tests.common import assert_equal

pytestmark = pytest.mark.stage("unit")


def test_merge_defaults():
    defaults = {"samples": 1, "verbose": False}
    assert merge_defaults(None, defaults) == defaults
    assert merge_defaults({"samples": 5}, defaults) == {"samples": 5, "verbose": False}
    # defaults are not modified
    assert defaults == {"samples": 1, "verbose": False}


def test_merge_defaults_unknown_key():
    with pytest.raises(ValueError, match="lag.*for forward"):
        merge_defaults({"lag": 2}, {"samples": 1}, "forward")


def test_rng_seed():
    set_rng_seed(0)
    x = torch.randn(3)
    y = np.random.rand()
    set_rng_seed(0)
    assert_equal(torch.randn(3), x, prec=0)
    assert np.random.rand() == y


@pytest.mark.parametrize("value,expected", [
    (1.0, False),
    (float("nan"), True),
    (torch.tensor([0.0, 1.0]), False),
    (torch.tensor([0.0, float("nan")]), True),
])
def test_torch_isnan(value, expected):
    assert bool(torch_isnan(value)) == expected


def test_warn_if_nan():
    with warnings.catch_warnings(record=True) as w:
        warnings.simplefilter("always")
        assert warn_if_nan(1.0, "x") == 1.0
        assert len(w) == 0
        warn_if_nan(float("nan"), "elbo")
        assert len(w) == 1
        assert "Encountered NaN: elbo" in str(w[0].message)
