"""Tests for the run dispatcher."""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from unittest.mock import Mock, call

import pytest

from pester_test_adapter.dispatcher import RunDispatcher, resolve_target
from pester_test_adapter.merger import TestTree
from pester_test_adapter.models.address import (
    FileAddress,
    LocatedAddress,
    NodeAddress,
    RootAddress,
)
from pester_test_adapter.models.target import RunTarget
from pester_test_adapter.models.tree import TestInfo, TestSuiteInfo
from pester_test_adapter.runners.base import TestRunner

TEST_ROOT = Path("/w")
OUTPUT = Path("/w/TestExplorerResults.xml")


@dataclass(frozen=True, kw_only=True)
class BlockingRunner(TestRunner):
    """Runner whose runs block until released, recording what happened."""

    started: list[RunTarget] = field(default_factory=list)
    cancelled: list[RunTarget] = field(default_factory=list)
    finished: list[RunTarget] = field(default_factory=list)
    release: asyncio.Event = field(default_factory=asyncio.Event)

    async def discover(self, paths: Sequence[str]) -> str:  # pragma: no cover
        """Return an empty discovery document."""
        return '{"type": "suite", "id": "root", "label": "Pester"}'

    async def run(self, target: RunTarget, output_path: Path) -> None:
        """Block until released or cancelled."""
        self.started.append(target)
        try:
            await self.release.wait()
        except asyncio.CancelledError:
            self.cancelled.append(target)
            raise
        self.finished.append(target)

    async def debug(self, target: RunTarget, output_path: Path) -> None:
        """Debug runs complete immediately."""
        self.finished.append(target)


def file_suite(path: str, *lines: int) -> TestSuiteInfo:
    """Build a file suite with one test per zero-based line."""
    return TestSuiteInfo(
        id=path,
        label=path.rsplit("/", 1)[-1],
        file=path,
        children=tuple(
            TestInfo(id=f"{path};{line + 1}", label=f"t{line}", file=path, line=line)
            for line in lines
        ),
    )


@pytest.fixture
def tree() -> TestTree:
    """Tree with two files."""
    tree = TestTree()
    tree.merge([file_suite("/w/a.Tests.ps1", 2, 5), file_suite("/w/b.Tests.ps1", 0)])
    return tree


@pytest.fixture
def runner_mock() -> Mock:
    """Create mock runner."""
    return Mock(spec=TestRunner)


@pytest.fixture
def dispatcher(runner_mock: Mock, tree: TestTree) -> RunDispatcher:
    """Create dispatcher with mock runner."""
    return RunDispatcher(
        runner=runner_mock, tree=tree, test_root=TEST_ROOT, output_path=OUTPUT
    )


@pytest.mark.parametrize(
    ("address", "expected"),
    [
        (RootAddress(), RunTarget(path="/w")),
        (FileAddress(path="/w/a.Tests.ps1"), RunTarget(path="/w/a.Tests.ps1")),
        (
            LocatedAddress(path="/w/a.Tests.ps1", line=3),
            RunTarget(path="/w/a.Tests.ps1", line=3),
        ),
    ],
)
def test_resolve_target(address: NodeAddress, expected: RunTarget) -> None:
    """Maps each address variant to a run target."""
    assert resolve_target(address, TEST_ROOT) == expected


class TestResolveTargets:
    """Tests for RunDispatcher.resolve_targets."""

    def test_root_is_one_workspace_target(self, dispatcher: RunDispatcher) -> None:
        """Running root runs the test root once, not every file."""
        assert dispatcher.resolve_targets(["root"]) == [RunTarget(path="/w")]

    def test_root_absorbs_other_requests(self, dispatcher: RunDispatcher) -> None:
        """Other ids requested together with root are not run separately."""
        targets = dispatcher.resolve_targets(["/w/a.Tests.ps1", "root"])

        assert targets == [RunTarget(path="/w")]

    def test_files_and_tests(self, dispatcher: RunDispatcher) -> None:
        """Resolves file ids to whole files and test ids to lines."""
        targets = dispatcher.resolve_targets(["/w/b.Tests.ps1", "/w/a.Tests.ps1;6"])

        assert targets == [
            RunTarget(path="/w/b.Tests.ps1"),
            RunTarget(path="/w/a.Tests.ps1", line=6),
        ]

    def test_drops_duplicates(self, dispatcher: RunDispatcher) -> None:
        """Requesting the same node twice runs it once."""
        targets = dispatcher.resolve_targets(["/w/a.Tests.ps1;3", "/w/a.Tests.ps1;3"])

        assert targets == [RunTarget(path="/w/a.Tests.ps1", line=3)]

    def test_skips_unknown_ids(
        self, dispatcher: RunDispatcher, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Ids missing from the tree are skipped with a warning."""
        with caplog.at_level(logging.WARNING):
            targets = dispatcher.resolve_targets(
                ["/w/deleted.Tests.ps1;3", "/w/b.Tests.ps1;1"]
            )

        assert targets == [RunTarget(path="/w/b.Tests.ps1", line=1)]
        assert "/w/deleted.Tests.ps1;3" in caplog.text


class TestDispatch:
    """Tests for RunDispatcher.dispatch."""

    async def test_runs_root_once(
        self, dispatcher: RunDispatcher, runner_mock: Mock
    ) -> None:
        """Dispatching root invokes the runner once for the test root."""
        assert await dispatcher.dispatch(["root"]) == "completed"

        runner_mock.run.assert_called_once_with(RunTarget(path="/w"), OUTPUT)
        runner_mock.debug.assert_not_called()

    async def test_runs_targets_in_order(
        self, dispatcher: RunDispatcher, runner_mock: Mock
    ) -> None:
        """Runs every target of the batch sequentially."""
        await dispatcher.dispatch(["/w/a.Tests.ps1;3", "/w/b.Tests.ps1"])

        assert runner_mock.run.call_args_list == [
            call(RunTarget(path="/w/a.Tests.ps1", line=3), OUTPUT),
            call(RunTarget(path="/w/b.Tests.ps1"), OUTPUT),
        ]

    async def test_stale_id_completes_batch(
        self, dispatcher: RunDispatcher, runner_mock: Mock
    ) -> None:
        """A stale id does not fail the batch."""
        await dispatcher.dispatch(["/w/deleted.Tests.ps1", "/w/b.Tests.ps1"])

        runner_mock.run.assert_called_once_with(
            RunTarget(path="/w/b.Tests.ps1"), OUTPUT
        )

    async def test_nothing_to_run(
        self, dispatcher: RunDispatcher, runner_mock: Mock
    ) -> None:
        """Does not start the runner when no id resolves."""
        await dispatcher.dispatch(["/w/deleted.Tests.ps1"])

        runner_mock.run.assert_not_called()

    async def test_debug_uses_debug_entry_point(
        self, dispatcher: RunDispatcher, runner_mock: Mock
    ) -> None:
        """Debug runs go through the runner's debug method."""
        await dispatcher.dispatch(["/w/a.Tests.ps1;6"], debug=True)

        runner_mock.debug.assert_called_once_with(
            RunTarget(path="/w/a.Tests.ps1", line=6), OUTPUT
        )
        runner_mock.run.assert_not_called()

    async def test_propagates_runner_errors(
        self, dispatcher: RunDispatcher, runner_mock: Mock
    ) -> None:
        """Errors of the runner reach the caller."""
        runner_mock.run.side_effect = RuntimeError("pwsh crashed")

        with pytest.raises(RuntimeError, match="pwsh crashed"):
            await dispatcher.dispatch(["root"])


class TestCancellation:
    """Tests for the single in-flight run policy."""

    async def test_new_dispatch_cancels_previous(self, tree: TestTree) -> None:
        """Starting a run cancels the one still in flight."""
        runner = BlockingRunner()
        dispatcher = RunDispatcher(
            runner=runner, tree=tree, test_root=TEST_ROOT, output_path=OUTPUT
        )

        first = asyncio.create_task(dispatcher.dispatch(["/w/a.Tests.ps1"]))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        second = asyncio.create_task(dispatcher.dispatch(["/w/b.Tests.ps1"]))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        runner.release.set()
        outcomes = await asyncio.gather(first, second)

        assert outcomes == ["superseded", "completed"]
        assert runner.cancelled == [RunTarget(path="/w/a.Tests.ps1")]
        assert runner.finished == [RunTarget(path="/w/b.Tests.ps1")]

    async def test_cancel_stops_run(self, tree: TestTree) -> None:
        """cancel() stops the in-flight run and dispatch returns quietly."""
        runner = BlockingRunner()
        dispatcher = RunDispatcher(
            runner=runner, tree=tree, test_root=TEST_ROOT, output_path=OUTPUT
        )

        running = asyncio.create_task(dispatcher.dispatch(["root"]))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        dispatcher.cancel()

        assert await running == "cancelled"
        assert runner.cancelled == [RunTarget(path="/w")]
        assert runner.finished == []

    async def test_cancel_without_run_is_noop(self, dispatcher: RunDispatcher) -> None:
        """cancel() does nothing when no run is in flight."""
        dispatcher.cancel()

    async def test_cancelling_caller_cancels_run(self, tree: TestTree) -> None:
        """Cancelling the awaiting task also stops the runner."""
        runner = BlockingRunner()
        dispatcher = RunDispatcher(
            runner=runner, tree=tree, test_root=TEST_ROOT, output_path=OUTPUT
        )

        running = asyncio.create_task(dispatcher.dispatch(["root"]))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        running.cancel()
        with pytest.raises(asyncio.CancelledError):
            await running
        await asyncio.sleep(0)

        assert runner.cancelled == [RunTarget(path="/w")]
