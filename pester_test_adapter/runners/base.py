"""Abstract base class for external test runners."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from pester_test_adapter.models.target import RunTarget


@dataclass(frozen=True, kw_only=True)
class TestRunner(ABC):
    """Abstract base for the process that discovers and executes tests.

    Implementations own the external executable. The adapter only sees raw
    discovery output and the result file the runner writes.
    """

    __test__ = False

    @abstractmethod
    async def discover(self, paths: Sequence[str]) -> str:
        """Discover tests in the given files.

        Args:
            paths: Absolute paths of test files

        Returns:
            Raw process output containing the discovery JSON document

        """

    @abstractmethod
    async def run(self, target: RunTarget, output_path: Path) -> None:
        """Execute a target and write the result report to ``output_path``.

        Cancelling the awaiting task must stop the external process.
        """

    @abstractmethod
    async def debug(self, target: RunTarget, output_path: Path) -> None:
        """Execute a target in debug mode and write the result report."""
