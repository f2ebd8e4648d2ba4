"""Runner manifest definition for the plugin system."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass

from pydantic import BaseModel

from pester_test_adapter.runners.base import TestRunner


@dataclass(frozen=True, kw_only=True)
class RunnerManifest[ConfigT: BaseModel]:
    """Manifest describing a runner plugin.

    The manifest contains references to the configuration class and the
    runner factory function for lazy loading of runners based on their key.
    """

    config_cls: type[ConfigT]
    runner_factory: Callable[[ConfigT], AbstractAsyncContextManager[TestRunner]]
