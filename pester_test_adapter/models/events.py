"""Events published to the UI while loading and running tests."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from pester_test_adapter.models.report import SuiteState, TestState
from pester_test_adapter.models.tree import TestSuiteInfo


@dataclass(frozen=True, kw_only=True)
class TestLoadStartedEvent:
    """Discovery has started."""

    __test__ = False

    type: Literal["load-started"] = "load-started"


@dataclass(frozen=True, kw_only=True)
class TestLoadFinishedEvent:
    """Discovery has finished.

    When discovery failed, ``suite`` is the previous tree and ``error_message``
    describes the failure.
    """

    __test__ = False

    suite: TestSuiteInfo | None
    error_message: str | None = None
    type: Literal["load-finished"] = "load-finished"


@dataclass(frozen=True, kw_only=True)
class TestRunStartedEvent:
    """A run or debug session was requested for ``tests``."""

    __test__ = False

    tests: Sequence[str]
    type: Literal["run-started"] = "run-started"


@dataclass(frozen=True, kw_only=True)
class TestRunFinishedEvent:
    """The run started by the last run-started event is over."""

    __test__ = False

    type: Literal["run-finished"] = "run-finished"


@dataclass(frozen=True, kw_only=True)
class TestSuiteEvent:
    """State change of a suite."""

    __test__ = False

    suite: str
    state: SuiteState
    type: Literal["suite"] = "suite"


@dataclass(frozen=True, kw_only=True)
class TestEvent:
    """State change of a test."""

    __test__ = False

    test: str
    state: TestState
    type: Literal["test"] = "test"


@dataclass(frozen=True, kw_only=True)
class RetireEvent:
    """States of ``tests`` (and their descendants) are outdated."""

    tests: Sequence[str]
    type: Literal["retire"] = "retire"


type TestAdapterEvent = (
    TestLoadStartedEvent
    | TestLoadFinishedEvent
    | TestRunStartedEvent
    | TestRunFinishedEvent
    | TestSuiteEvent
    | TestEvent
    | RetireEvent
)
