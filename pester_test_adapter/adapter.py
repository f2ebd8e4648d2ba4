"""Test adapter wiring discovery, runs and result correlation together."""

import logging
from collections.abc import Sequence
from pathlib import Path

from pester_test_adapter.config import AdapterConfig
from pester_test_adapter.correlator import correlate, read_report
from pester_test_adapter.discovery import discover_tests
from pester_test_adapter.dispatcher import DispatchOutcome, RunDispatcher
from pester_test_adapter.errors import DiscoveryParseError, ReportParseError
from pester_test_adapter.events import EventChannel
from pester_test_adapter.merger import TestTree, find_node, iter_nodes
from pester_test_adapter.models.events import (
    RetireEvent,
    TestEvent,
    TestLoadFinishedEvent,
    TestLoadStartedEvent,
    TestRunFinishedEvent,
    TestRunStartedEvent,
    TestSuiteEvent,
)
from pester_test_adapter.models.tree import TestSuiteInfo
from pester_test_adapter.result_files import ResultFileWatcher, find_result_file
from pester_test_adapter.runners.base import TestRunner

log = logging.getLogger(__name__)


class TestAdapter:
    """A workspace session: one canonical tree, one runner, one event channel."""

    __test__ = False

    def __init__(
        self,
        *,
        config: AdapterConfig,
        runner: TestRunner,
        channel: EventChannel | None = None,
    ) -> None:
        self.config = config
        self.runner = runner
        self.channel = channel if channel is not None else EventChannel()
        self.tree = TestTree(config.root_label)
        self.dispatcher = RunDispatcher(
            runner=runner,
            tree=self.tree,
            test_root=config.test_root_path,
            output_path=config.result_path,
        )
        self._watcher: ResultFileWatcher | None = None

    def find_test_files(self) -> Sequence[str]:
        """Return the absolute paths of all test files under the test root."""
        root = self.config.test_root_path
        return sorted(
            str(path.resolve())
            for path in root.glob(self.config.test_file_pattern)
            if path.is_file()
        )

    async def load(self) -> TestSuiteInfo:
        """Discover all test files and replace the tree.

        If discovery fails the previous tree is kept and returned.
        """
        log.info("Loading Pester tests")
        self.channel.fire(TestLoadStartedEvent())

        paths = self.find_test_files()
        try:
            file_suites = await discover_tests(self.runner, paths)
        except DiscoveryParseError as e:
            log.warning("Discovery failed, keeping previous tests: %s", e)
            self.channel.fire(
                TestLoadFinishedEvent(suite=self.tree.root, error_message=str(e))
            )
            return self.tree.root

        self.tree.reset()
        root = self.tree.merge(file_suites)
        self.channel.fire(TestLoadFinishedEvent(suite=root))

        self.load_results()
        return root

    async def reload_files(self, paths: Sequence[str]) -> TestSuiteInfo:
        """Re-discover changed files and merge them into the tree."""
        log.info("Reloading %d test file(s)", len(paths))
        self.channel.fire(TestLoadStartedEvent())

        try:
            file_suites = await discover_tests(self.runner, paths)
        except DiscoveryParseError as e:
            log.warning("Discovery failed, keeping previous tests: %s", e)
            self.channel.fire(
                TestLoadFinishedEvent(suite=self.tree.root, error_message=str(e))
            )
            return self.tree.root

        root = self.tree.merge(file_suites)
        self.channel.fire(RetireEvent(tests=[suite.id for suite in file_suites]))
        self.channel.fire(TestLoadFinishedEvent(suite=root))
        return root

    async def run(self, node_ids: Sequence[str]) -> None:
        """Run the given nodes and publish their results."""
        await self._run(node_ids, debug=False)

    async def debug(self, node_ids: Sequence[str]) -> None:
        """Run the given nodes in debug mode and publish their results."""
        await self._run(node_ids, debug=True)

    async def _run(self, node_ids: Sequence[str], *, debug: bool) -> None:
        log.info("%s Pester tests %s", "Debugging" if debug else "Running", node_ids)
        self.channel.fire(TestRunStartedEvent(tests=list(node_ids)))

        outcome: DispatchOutcome | None = None
        try:
            self._fire_running(node_ids)
            outcome = await self.dispatcher.dispatch(node_ids, debug=debug)
            # A cancelled run leaves only the report of an earlier run behind
            if outcome == "completed":
                self.load_results(self.config.result_path)
        finally:
            # The newer run owns the run-finished event
            if outcome != "superseded":
                self.channel.fire(TestRunFinishedEvent())

    def _fire_running(self, node_ids: Sequence[str]) -> None:
        root = self.tree.root
        for requested in node_ids:
            node = find_node(root, requested)
            if node is None:
                continue
            for descendant in iter_nodes(node):
                if isinstance(descendant, TestSuiteInfo):
                    self.channel.fire(
                        TestSuiteEvent(suite=descendant.id, state="running")
                    )
                else:
                    self.channel.fire(TestEvent(test=descendant.id, state="running"))

    def load_results(self, path: Path | None = None) -> int:
        """Correlate a result report with the tree and publish the states.

        Without ``path`` the report is located in the workspace, and the call
        does nothing when there is none. An unreadable report is skipped until
        the next change.

        Returns:
            Number of events published

        Raises:
            AmbiguousResultFileError: If more than one report file matches

        """
        if path is None:
            path = find_result_file(self.config.workspace, self.config.result_file)
            if path is None:
                log.debug("No result report found")
                return 0

        try:
            report = read_report(path)
        except ReportParseError as e:
            log.warning("Skipping result report: %s", e)
            return 0

        events = correlate(self.tree.root, report)
        for event in events:
            self.channel.fire(event)
        log.info("Applied %d state(s) from %s", len(events), path)
        return len(events)

    def on_result_file_changed(self, path: Path) -> None:
        """Callback for ``ResultFileWatcher``."""
        self.load_results(path)

    def watch_results(self, poll_interval: float = 1.0) -> ResultFileWatcher:
        """Correlate the result file whenever it is rewritten."""
        if self._watcher is None:
            self._watcher = ResultFileWatcher(
                self.config.result_path, self.on_result_file_changed, poll_interval
            )
            self._watcher.start()
        return self._watcher

    def cancel(self) -> None:
        """Cancel the in-flight run, if any."""
        self.dispatcher.cancel()

    def dispose(self) -> None:
        """Cancel any run, stop watching results and drop all listeners."""
        self.cancel()
        if self._watcher is not None:
            self._watcher.cancel()
            self._watcher = None
        self.channel.dispose()
