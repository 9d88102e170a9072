# Copyright Contributors to the Vigrad project.
# SPDX-License-Identifier: Apache-2.0

from typing import (
    Callable,
    Dict,
    ItemsView,
    Iterator,
    KeysView,
    Optional,
    Tuple,
    Union,
)

import torch
from torch.distributions import constraints, transform_to
from typing_extensions import TypedDict


class StateDict(TypedDict):
    params: Dict[str, torch.Tensor]
    constraints: Dict[str, constraints.Constraint]


class ParamStoreDict:
    """
    Global store for parameters in Vigrad. This is basically a key-value
    store. Models and guides interact with it through the primitive
    :func:`vigrad.param`; optimizers update its unconstrained tensors in
    place.

    Some things to bear in mind when using parameters in Vigrad:

    - parameters must be assigned unique names
    - the `init_tensor` argument to `vigrad.param` is only used the first time
      that a given (named) parameter is registered.
    - for this reason, a user may need to use the `clear()` method if working
      in a REPL in order to get the desired behavior. this method can also be
      invoked with `vigrad.clear_param_store()`.
    - parameters are associated with both *constrained* and *unconstrained*
      values. for example, a parameter that is constrained to be positive is
      represented as an unconstrained tensor in log space. Gradient
      estimates are always taken with respect to the unconstrained tensor.
    """

    def __init__(self) -> None:
        """
        initialize ParamStore data structures
        """
        # dictionary from param name to unconstrained param
        self._params: Dict[str, torch.Tensor] = {}
        # dictionary from unconstrained param to param name
        self._param_to_name: Dict[torch.Tensor, str] = {}
        # dictionary from param name to constraint object
        self._constraints: Dict[str, constraints.Constraint] = {}

    def clear(self) -> None:
        """
        Clear the ParamStore
        """
        self._params = {}
        self._param_to_name = {}
        self._constraints = {}

    def items(self) -> Iterator[Tuple[str, torch.Tensor]]:
        """
        Iterate over ``(name, constrained_param)`` pairs.
        """
        for name in self._params:
            yield name, self[name]

    def keys(self) -> KeysView[str]:
        """
        Iterate over param names.
        """
        return self._params.keys()

    def values(self) -> Iterator[torch.Tensor]:
        """
        Iterate over constrained parameter values.
        """
        for name, constrained_param in self.items():
            yield constrained_param

    def __bool__(self) -> bool:
        return bool(self._params)

    def __len__(self) -> int:
        return len(self._params)

    def __contains__(self, name: str) -> bool:
        return name in self._params

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __delitem__(self, name: str) -> None:
        """
        Remove a parameter from the param store.
        """
        unconstrained_value = self._params.pop(name)
        self._param_to_name.pop(unconstrained_value)
        self._constraints.pop(name)

    def __getitem__(self, name: str) -> torch.Tensor:
        """
        Get the *constrained* value of a named parameter.
        """
        unconstrained_value = self._params[name]
        constraint = self._constraints[name]
        return transform_to(constraint)(unconstrained_value)

    def __setitem__(self, name: str, new_constrained_value: torch.Tensor) -> None:
        """
        Set the constrained value of an existing parameter, or the value of a
        new *unconstrained* parameter. To declare a new parameter with
        constraint, use :meth:`setdefault`.
        """
        constraint = self._constraints.setdefault(name, constraints.real)

        with torch.no_grad():
            new_constrained_value = torch.as_tensor(
                new_constrained_value, dtype=torch.get_default_dtype()
            )
            unconstrained_value = transform_to(constraint).inv(new_constrained_value)
            unconstrained_value = unconstrained_value.contiguous()
        unconstrained_value.requires_grad_(True)

        old_value = self._params.get(name)
        if old_value is not None:
            self._param_to_name.pop(old_value, None)
        self._params[name] = unconstrained_value
        self._param_to_name[unconstrained_value] = name

    def setdefault(
        self,
        name: str,
        init_constrained_value: Union[torch.Tensor, Callable[[], torch.Tensor]],
        constraint: constraints.Constraint = constraints.real,
    ) -> torch.Tensor:
        """
        Retrieve a *constrained* parameter value from the ``ParamStoreDict`` if
        it exists, otherwise set the initial value. If the parameter already
        exists, ``init_constrained_value`` is ignored; wrap it in a ``lambda``
        to avoid computing it needlessly.

        :param str name: parameter name
        :param init_constrained_value: initial constrained value
        :type init_constrained_value: torch.Tensor or callable returning a torch.Tensor
        :param constraint: torch constraint object
        :returns: constrained parameter value
        :rtype: torch.Tensor
        """
        if name not in self._params:
            self._constraints[name] = constraint
            if callable(init_constrained_value):
                init_constrained_value = init_constrained_value()
            self[name] = init_constrained_value
        return self[name]

    def named_parameters(self) -> ItemsView[str, torch.Tensor]:
        """
        Returns an iterator over ``(name, unconstrained_value)`` tuples for
        each parameter in the ParamStore.
        """
        return self._params.items()

    def get_param(
        self,
        name: str,
        init_tensor: Optional[torch.Tensor] = None,
        constraint: constraints.Constraint = constraints.real,
    ) -> torch.Tensor:
        """
        Get parameter from its name. If it does not yet exist in the
        ParamStore, it will be created and stored. The primitive
        :func:`vigrad.param` dispatches to this method.

        :param str name: parameter name
        :param torch.Tensor init_tensor: initial tensor
        :param constraint: torch constraint
        :returns: constrained parameter
        :rtype: torch.Tensor
        """
        if init_tensor is None:
            return self[name]
        return self.setdefault(name, init_tensor, constraint)

    def unconstrained(self, name: str) -> torch.Tensor:
        """
        :returns: the unconstrained leaf tensor stored under ``name``.
        """
        return self._params[name]

    def get_constraint(self, name: str) -> constraints.Constraint:
        return self._constraints[name]

    def param_name(self, p: torch.Tensor) -> Optional[str]:
        """
        Get parameter name from an unconstrained parameter tensor.
        """
        return self._param_to_name.get(p)

    def get_state(self) -> StateDict:
        """
        Get the ParamStore state.
        """
        params = self._params.copy()
        state: StateDict = {"params": params, "constraints": self._constraints.copy()}
        return state

    def set_state(self, state: StateDict) -> None:
        """
        Set the ParamStore state using state from a previous :meth:`get_state` call
        """
        assert isinstance(state, dict), "malformed ParamStore state"
        assert set(state.keys()) == set(
            ["params", "constraints"]
        ), "malformed ParamStore keys {}".format(state.keys())

        for param_name, param in state["params"].items():
            self._params[param_name] = param
            self._param_to_name[param] = param_name

        for param_name, constraint in state["constraints"].items():
            if isinstance(constraint, type(constraints.real)):
                # Work around lack of hash & equality comparison on constraints.
                constraint = constraints.real
            self._constraints[param_name] = constraint

    def save(self, filename: str) -> None:
        """
        Save parameters to file

        :param str filename: file name to save to
        """
        with open(filename, "wb") as output_file:
            torch.save(self.get_state(), output_file)

    def load(self, filename: str, map_location=None) -> None:
        """
        Loads parameters from file

        :param str filename: file name to load from
        :param map_location: specifies how to remap storage locations
        """
        with open(filename, "rb") as input_file:
            state = torch.load(input_file, map_location, weights_only=False)
        self.set_state(state)

