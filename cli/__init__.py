"""CLI package for interacting with the node temperature aggregator service."""

from importlib import import_module
from types import ModuleType


def __getattr__(name: str) -> ModuleType:
    if name == "app":
        return import_module("cli.app")
    raise AttributeError(name)

# ``cli.app`` must stay the module, not the Typer instance, so that patching
# ``cli.app.ApiClient`` reaches the object the commands actually use.

__all__ = []
