"""CLI entry point for the Pester test adapter."""

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from pester_test_adapter.adapter import TestAdapter
from pester_test_adapter.config import AdapterConfig
from pester_test_adapter.errors import PesterAdapterError
from pester_test_adapter.models.address import ROOT_ID
from pester_test_adapter.models.events import (
    TestAdapterEvent,
    TestEvent,
    TestRunStartedEvent,
)
from pester_test_adapter.runners.loading import load_runner_manifest

STATE_SYMBOLS = {
    "passed": "✅",
    "failed": "❌",
    "skipped": "⏭️",
    "errored": "❗",
}


class EventPrinter:
    """Listener printing events as JSON lines.

    Also records the state of every test reported since the last run started.
    """

    def __init__(self) -> None:
        self.states: dict[str, str] = {}

    def __call__(self, event: TestAdapterEvent) -> None:
        if isinstance(event, TestRunStartedEvent):
            self.states.clear()
        elif isinstance(event, TestEvent) and event.state != "running":
            self.states[event.test] = event.state
        print(json.dumps(event_to_dict(event)), flush=True)


def event_to_dict(event: TestAdapterEvent) -> dict[str, Any]:
    """Convert an event to a JSON-serializable dict."""
    data: dict[str, Any] = {}
    for field in dataclasses.fields(event):
        value = getattr(event, field.name)
        if hasattr(value, "model_dump"):
            value = value.model_dump(mode="json")
        elif isinstance(value, Sequence) and not isinstance(value, str):
            value = list(value)
        data[field.name] = value
    return data


def log_results_summary(log: logging.Logger, states: dict[str, str]) -> None:
    """Log a formatted summary of the final test states."""
    log.info("=" * 80)
    log.info("Test Results Summary:")
    log.info("=" * 80)

    for test_id, state in states.items():
        symbol = STATE_SYMBOLS.get(state, "?")
        log.info("%s %s: %s", symbol, test_id, state)

    log.info(
        "%d passed, %d failed, %d skipped",
        sum(1 for s in states.values() if s == "passed"),
        sum(1 for s in states.values() if s == "failed"),
        sum(1 for s in states.values() if s == "skipped"),
    )


async def run(
    command: str,
    config: AdapterConfig,
    runner_key: str,
    runner_config_json: str,
    node_ids: Sequence[str] = (),
) -> int:
    """Run a CLI command and return exit code."""
    log = logging.getLogger("pester_test_adapter")

    log.info("Loading runner: %s", runner_key)
    manifest = load_runner_manifest(runner_key)

    runner_config_dict = json.loads(runner_config_json)
    runner_config = manifest.config_cls(**runner_config_dict)

    async with manifest.runner_factory(runner_config) as runner:
        adapter = TestAdapter(config=config, runner=runner)

        if command == "discover":
            root = await adapter.load()
            print(json.dumps(root.model_dump(mode="json"), indent=2))
            return 0

        printer = EventPrinter()
        adapter.channel.subscribe(printer)
        try:
            await adapter.load()
            requested = list(node_ids) or [ROOT_ID]
            if command == "debug":
                await adapter.debug(requested)
            else:
                await adapter.run(requested)
        finally:
            adapter.dispose()

    log_results_summary(log, printer.states)

    return 1 if "failed" in printer.states.values() else 0


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Discover and run Pester tests")
    parser.add_argument(
        "command",
        choices=["discover", "run", "debug"],
        help="Discover tests, or run/debug the given node ids",
    )
    parser.add_argument(
        "node_ids",
        nargs="*",
        help="Node ids to run (default: root, i.e. every test)",
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        default=Path.cwd(),
        help="Workspace directory (default: current directory)",
    )
    parser.add_argument(
        "--test-root",
        type=Path,
        default=None,
        help="Directory containing the tests, relative to the workspace",
    )
    parser.add_argument(
        "--result-file",
        default="TestExplorerResults.xml",
        help="Result report path, relative to the workspace",
    )
    parser.add_argument(
        "--runner",
        default="pwsh",
        help="Runner key (pwsh)",
    )
    parser.add_argument(
        "--runner-config",
        default="{}",
        help="JSON configuration for the runner",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    config = AdapterConfig(
        workspace=args.workspace.resolve(),
        test_root=args.test_root,
        result_file=args.result_file,
    )

    try:
        exit_code = asyncio.run(
            run(
                command=args.command,
                config=config,
                runner_key=args.runner,
                runner_config_json=args.runner_config,
                node_ids=args.node_ids,
            )
        )
    except PesterAdapterError as e:
        logging.getLogger("pester_test_adapter").error("%s", e)
        exit_code = 2

    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
