"""Dispatch run requests for tree nodes to the runner."""

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Literal

from pester_test_adapter.errors import UnresolvedNodeIdError
from pester_test_adapter.merger import TestTree
from pester_test_adapter.models.address import (
    FileAddress,
    LocatedAddress,
    NodeAddress,
    RootAddress,
    parse_address,
)
from pester_test_adapter.models.target import RunTarget
from pester_test_adapter.runners.base import TestRunner

log = logging.getLogger(__name__)

type DispatchOutcome = Literal["completed", "cancelled", "superseded"]


def resolve_target(address: NodeAddress, test_root: Path) -> RunTarget:
    """Turn a node address into what the runner executes."""
    match address:
        case RootAddress():
            return RunTarget(path=str(test_root))
        case LocatedAddress(path=path, line=line):
            return RunTarget(path=path, line=line)
        case FileAddress(path=path):
            return RunTarget(path=path)
    raise TypeError(f"Unsupported address: {address!r}")


class RunDispatcher:
    """Runs tree nodes, with at most one normal run in flight.

    A new dispatch cancels the run started by the previous one. Debug runs
    are awaited directly and are not tracked.
    """

    def __init__(
        self,
        *,
        runner: TestRunner,
        tree: TestTree,
        test_root: Path,
        output_path: Path,
    ) -> None:
        self.runner = runner
        self.tree = tree
        self.test_root = test_root
        self.output_path = output_path
        self._current: asyncio.Task[None] | None = None
        self._dispatches = 0

    def resolve_targets(self, node_ids: Sequence[str]) -> Sequence[RunTarget]:
        """Resolve node ids against the current tree.

        Ids missing from the tree are skipped. Requesting the root yields a
        single whole-root target, whatever else was requested.
        """
        targets: list[RunTarget] = []
        for requested in node_ids:
            try:
                address = self._resolve_address(requested)
            except UnresolvedNodeIdError as e:
                log.warning("Skipping run request: %s", e)
                continue

            target = resolve_target(address, self.test_root)
            if isinstance(address, RootAddress):
                return [target]
            if target not in targets:
                targets.append(target)

        return targets

    def _resolve_address(self, requested: str) -> NodeAddress:
        node = self.tree.find(requested)
        if node is None:
            raise UnresolvedNodeIdError(requested)
        return parse_address(node.id)

    async def dispatch(
        self, node_ids: Sequence[str], *, debug: bool = False
    ) -> DispatchOutcome:
        """Run the given nodes and wait for the runner to finish.

        Returns "superseded" when a newer dispatch cancelled this run and
        "cancelled" when it was stopped through :meth:`cancel`.
        """
        targets = self.resolve_targets(node_ids)
        if not targets:
            log.info("Nothing to run")
            return "completed"

        if debug:
            for target in targets:
                await self.runner.debug(target, self.output_path)
            return "completed"

        self.cancel()
        self._dispatches += 1
        generation = self._dispatches
        task = asyncio.create_task(self._run_targets(targets))
        self._current = task

        try:
            await asyncio.wait([task])
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            if self._current is task:
                self._current = None

        if task.cancelled():
            if generation != self._dispatches:
                log.info("Run of %d target(s) was superseded", len(targets))
                return "superseded"
            log.info("Run of %d target(s) was cancelled", len(targets))
            return "cancelled"

        task.result()
        return "completed"

    def cancel(self) -> None:
        """Cancel the in-flight run, if any."""
        if self._current is not None and not self._current.done():
            log.info("Cancelling in-flight run")
            self._current.cancel()

    async def _run_targets(self, targets: Sequence[RunTarget]) -> None:
        for target in targets:
            await self.runner.run(target, self.output_path)
