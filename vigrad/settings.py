# Copyright Contributors to the Vigrad project.
# SPDX-License-Identifier: Apache-2.0

"""
Global settings of Vigrad. Each setting is a module-level variable of the
module that uses it, registered here under an alias:

- ``guide_init_scale`` (``vigrad.infer.guide``, default ``0.1``): initial
  scale of the default mean-field guides of continuous sites.
- ``validate_infer`` (``vigrad.infer.util``, default ``False``): whether
  variational inference checks that every guide sample lies in the support
  of the model's distribution.

Example usage::

    vigrad.settings.get()                          # all settings
    vigrad.settings.set(guide_init_scale=0.05)

    with vigrad.settings.context(validate_infer=True):
        vigrad.optimize(model, steps=10)
"""

# This module must have no dependencies on other vigrad modules.
from collections import namedtuple
from contextlib import contextmanager
from importlib import import_module
from typing import Any, Callable, Dict, Iterator, Optional

_Setting = namedtuple("_Setting", ["module", "attribute", "validator"])

# alias -> where the value lives and how to check new values
_REGISTRY: Dict[str, _Setting] = {}


def _lookup(alias: str) -> _Setting:
    try:
        return _REGISTRY[alias]
    except KeyError:
        raise KeyError(
            "Unknown setting {!r}; registered settings are {}".format(alias, sorted(_REGISTRY))
        ) from None


def get(alias: Optional[str] = None) -> Any:
    """
    :param str alias: a registered setting, or None for all settings.
    :returns: the current value, or a dict of all current values.
    """
    if alias is None:
        return {name: get(name) for name in sorted(_REGISTRY)}
    setting = _lookup(alias)
    return getattr(import_module(setting.module), setting.attribute)


def set(**kwargs) -> None:
    r"""
    Sets one or more settings. All values are validated before any is set.

    :param \*\*kwargs: alias=value pairs.
    """
    settings = {alias: _lookup(alias) for alias in kwargs}
    for alias, setting in settings.items():
        if setting.validator is not None:
            setting.validator(kwargs[alias])
    for alias, setting in settings.items():
        setattr(import_module(setting.module), setting.attribute, kwargs[alias])


@contextmanager
def context(**kwargs) -> Iterator[None]:
    r"""
    Temporarily overrides one or more settings. Also works as a decorator.

    :param \*\*kwargs: alias=value pairs.
    """
    old = {alias: get(alias) for alias in kwargs}
    try:
        set(**kwargs)
        yield
    finally:
        set(**old)


def register(
    alias: str,
    modulename: str,
    attribute: str,
    validator: Optional[Callable[[Any], None]] = None,
) -> Callable:
    """
    Registers the module variable ``modulename.attribute`` as the setting
    ``alias``. Usually applied to a validator in the defining module::

        _INIT_SCALE = 0.1

        @settings.register("guide_init_scale", __name__, "_INIT_SCALE")
        def _validate_init_scale(value):
            assert value > 0

    The validator is called on the current value and on every value set
    later; it should raise on invalid values.

    :returns: the validator, or a decorator taking one.
    """
    assert alias.isidentifier(), alias
    _REGISTRY[alias] = _Setting(modulename, attribute, validator)
    if validator is None:
        return lambda validator: register(alias, modulename, attribute, validator)
    validator(get(alias))
    return validator
