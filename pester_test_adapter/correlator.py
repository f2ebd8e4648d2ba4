"""Map NUnit result reports back onto the test tree."""

import logging
import xml.etree.ElementTree as ET
from collections.abc import Mapping, Sequence
from pathlib import Path

from pester_test_adapter.errors import ReportParseError
from pester_test_adapter.models.events import TestEvent, TestSuiteEvent
from pester_test_adapter.models.report import ReportNode, TestState
from pester_test_adapter.models.tree import TestNode, TestSuiteInfo

log = logging.getLogger(__name__)

RESULT_TO_STATE: Mapping[str, TestState] = {
    "Failure": "failed",
    "Success": "passed",
    "Ignored": "skipped",
    "Inconclusive": "skipped",
}

REPORT_NODE_TAGS = frozenset(["test-suite", "test-case"])


def map_result(token: str) -> TestState:
    """Map a raw result token to a test state.

    Unknown tokens map to "skipped" so that newer runner versions never turn
    into failures.
    """
    return RESULT_TO_STATE.get(token, "skipped")


def read_report(path: Path) -> ReportNode:
    """Read and parse the report at ``path``."""
    try:
        content = path.read_bytes()
    except OSError as e:
        raise ReportParseError(f"Cannot read result report {path}: {e}") from e
    return parse_report(content)


def parse_report(content: str | bytes) -> ReportNode:
    """Parse an NUnit report into its top-level suite.

    Raises:
        ReportParseError: If the content is not a `test-results` document
            with a top-level `test-suite`

    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise ReportParseError(f"Malformed result report: {e}") from e

    if root.tag != "test-results":
        raise ReportParseError(f"Unexpected report root element: {root.tag}")

    suite = root.find("test-suite")
    if suite is None:
        raise ReportParseError("Result report has no top-level test-suite")

    return _to_report_node(suite)


def _to_report_node(element: ET.Element) -> ReportNode:
    results = element.find("results")
    children = (
        ()
        if results is None
        else tuple(
            _to_report_node(child)
            for child in results
            if child.tag in REPORT_NODE_TAGS
        )
    )
    return ReportNode(
        description=element.get("description", ""),
        result=element.get("result"),
        children=children,
    )


def correlate(
    root: TestSuiteInfo, report: ReportNode
) -> Sequence[TestSuiteEvent | TestEvent]:
    """Walk the tree and the report together and return state events.

    Events follow tree order: each suite reports "completed" before any of
    its children. Tree nodes without a matching report node produce nothing.
    """
    events: list[TestSuiteEvent | TestEvent] = []
    _correlate_suite(root, report, events)
    return events


def _correlate_suite(
    suite: TestSuiteInfo,
    report: ReportNode,
    events: list[TestSuiteEvent | TestEvent],
) -> None:
    events.append(TestSuiteEvent(suite=suite.id, state="completed"))

    for child in suite.children:
        matched = find_report_child(report, child, suite.label)
        if matched is None:
            continue

        if isinstance(child, TestSuiteInfo):
            _correlate_suite(child, matched, events)
        elif matched.result is not None:
            state = map_result(matched.result)
            events.append(TestEvent(test=child.id, state=state))


def find_report_child(
    report: ReportNode, child: TestNode, parent_label: str
) -> ReportNode | None:
    """Find the report child describing ``child``.

    Candidates are tried by id, then label, then "parent.label", each across
    all report children before falling back to the next one.
    """
    for description in (child.id, child.label, f"{parent_label}.{child.label}"):
        for candidate in report.children:
            if candidate.description == description:
                return candidate
    return None
