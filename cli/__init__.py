"""Command line tools for the tremor tracker."""

from importlib import import_module
from types import ModuleType


def __getattr__(name: str) -> ModuleType:
    if name == "app":
        return import_module("cli.app")
    raise AttributeError(name)

# Tests patch attributes on the ``cli.app`` module, so the Typer instance is
# not re-exported here where it would shadow that module path.

__all__ = []
