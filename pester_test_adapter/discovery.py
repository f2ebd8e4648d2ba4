"""Build file suites from the output of the discovery script."""

import json
import logging
from collections.abc import Sequence
from typing import Literal

from pydantic import Field, ValidationError

from pester_test_adapter.errors import DiscoveryParseError
from pester_test_adapter.models.address import (
    ROOT_ID,
    FileAddress,
    format_address,
    node_id,
)
from pester_test_adapter.models.base import Model
from pester_test_adapter.models.tree import TestInfo, TestNode, TestSuiteInfo
from pester_test_adapter.runners.base import TestRunner

log = logging.getLogger(__name__)


class DiscoveredNode(Model):
    """A node as printed by the discovery script."""

    type: Literal["suite", "test"]
    id: str
    label: str
    file: str | None = None
    line: int | None = None
    children: tuple["DiscoveredNode", ...] = Field(default=())


async def discover_tests(
    runner: TestRunner, paths: Sequence[str]
) -> Sequence[TestSuiteInfo]:
    """Discover the tests of ``paths`` and return one suite per file.

    Raises:
        DiscoveryParseError: If the runner output holds no valid document

    """
    if not paths:
        log.info("No test files to discover")
        return []

    log.info("Discovering tests in %d file(s)", len(paths))
    output = await runner.discover(paths)
    document = parse_discovery_output(output)
    file_suites = build_file_suites(document)
    log.info("Discovered %d file suite(s)", len(file_suites))
    return file_suites


def parse_discovery_output(output: str) -> DiscoveredNode:
    """Decode the discovery document embedded in ``output``.

    PowerShell may print warnings or module banners around the document, and
    those may contain braces of their own. Every ``{`` is tried in turn and
    the first complete object that validates as the root suite wins.
    """
    start = output.find("{")
    if start == -1:
        raise DiscoveryParseError("No JSON document found in discovery output")

    decoder = json.JSONDecoder()
    error: Exception | None = None
    while start != -1:
        try:
            document, end = decoder.raw_decode(output, start)
        except json.JSONDecodeError as e:
            error = error or e
            start = output.find("{", start + 1)
            continue

        try:
            node = DiscoveredNode.model_validate(document)
        except ValidationError as e:
            error = e
        else:
            if node.id == ROOT_ID:
                return node
            error = ValueError(f"expected the root suite, got '{node.id}'")
        # nested objects of a rejected document are not candidates
        start = output.find("{", end)

    raise DiscoveryParseError(f"Invalid discovery document: {error}") from error


def build_file_suites(document: DiscoveredNode) -> Sequence[TestSuiteInfo]:
    """Convert the children of the discovered root into file suites."""
    return [_build_file_suite(child) for child in document.children]


def _build_file_suite(node: DiscoveredNode) -> TestSuiteInfo:
    file = node.file or node.id
    seen_ids: set[str] = set()
    return TestSuiteInfo(
        id=format_address(FileAddress(path=file)),
        label=node.label,
        file=file,
        children=_build_children(node.children, file, seen_ids),
    )


def _build_children(
    nodes: Sequence[DiscoveredNode], file: str, seen_ids: set[str]
) -> tuple[TestNode, ...]:
    children: list[TestNode] = []
    for node in nodes:
        built = _build_node(node, file, seen_ids)
        if built is not None:
            children.append(built)
    return tuple(children)


def _build_node(
    node: DiscoveredNode, file: str, seen_ids: set[str]
) -> TestNode | None:
    node_file = node.file or file
    if node.line is None:
        # Without a location there is nothing to derive an id from.
        identifier = node.id
        line = 0
    else:
        identifier = node_id(node_file, node.line)
        line = node.line

    # Data-driven blocks expand to siblings at the same location
    if identifier in seen_ids:
        log.debug("Skipping duplicate %s %s (%s)", node.type, identifier, node.label)
        return None
    seen_ids.add(identifier)

    if node.type == "suite":
        return TestSuiteInfo(
            id=identifier,
            label=node.label,
            file=node_file,
            line=line,
            children=_build_children(node.children, node_file, seen_ids),
        )

    return TestInfo(id=identifier, label=node.label, file=node_file, line=line)
