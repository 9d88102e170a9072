# Copyright Contributors to the Vigrad project.
# SPDX-License-Identifier: Apache-2.0

import pytest
import torch

import vigrad
import vigrad.optim as optim
from vigrad.optim import VigradOptim, zero_grads
from tests.common import assert_equal

pytestmark = pytest.mark.stage("unit")


def make_param(name, value, grad):
    vigrad.param(name, torch.tensor(value))
    p = vigrad.get_param_store().unconstrained(name)
    p.grad = torch.tensor(grad)
    return p


def test_wrappers():
    adam = optim.Adam({"lr": 0.1})
    assert isinstance(adam, VigradOptim)
    assert adam.pt_optim_constructor is torch.optim.Adam
    assert "SGD" in optim.__all__
    assert "LBFGS" not in optim.__all__


def test_lazy_per_param_optimizers():
    sgd = optim.SGD({"lr": 0.5})
    a = make_param("a", 1.0, 1.0)
    sgd([a])
    assert len(sgd.optim_objs) == 1
    b = make_param("b", 1.0, 2.0)
    sgd([a, b])
    assert len(sgd.optim_objs) == 2
    assert_equal(vigrad.param("a"), torch.tensor(0.0))
    assert_equal(vigrad.param("b"), torch.tensor(0.0))


def test_per_param_optim_args():
    def optim_args(param_name):
        return {"lr": 0.0 if param_name == "fixed" else 1.0}

    sgd = optim.SGD(optim_args)
    fixed = make_param("fixed", 1.0, 1.0)
    free = make_param("free", 1.0, 1.0)
    sgd([fixed, free])
    assert_equal(vigrad.param("fixed"), torch.tensor(1.0))
    assert_equal(vigrad.param("free"), torch.tensor(0.0))


@pytest.mark.parametrize("clip_args", [{"clip_value": 1.0}, {"clip_norm": 1.0}])
def test_clip_grad(clip_args):
    sgd = VigradOptim(torch.optim.SGD, {"lr": 1.0}, clip_args)
    w = make_param("w", 1.0, 10.0)
    sgd([w])
    assert_equal(vigrad.param("w"), torch.tensor(0.0), prec=1e-4)


def test_get_set_state():
    adam = optim.Adam({"lr": 0.1})
    w = make_param("w", 1.0, 1.0)
    adam([w])
    state = adam.get_state()
    assert list(state) == ["w"]

    new_adam = optim.Adam({"lr": 0.1})
    new_adam.set_state(state)
    w.grad = torch.tensor(1.0)
    new_adam([w])
    step = new_adam.get_state()["w"]["state"][0]["step"]
    assert float(step) == 2.0


def test_invalid_optim_args():
    with pytest.raises(AssertionError):
        VigradOptim(torch.optim.SGD, 0.1)
    with pytest.raises(AssertionError):
        VigradOptim(torch.optim.SGD, lambda name, other: {})


def test_zero_grads():
    w = make_param("w", 1.0, 3.0)
    v = make_param("v", 1.0, 0.0)
    v.grad = None
    zero_grads([w, v])
    assert_equal(w.grad, torch.tensor(0.0))
    assert v.grad is None
