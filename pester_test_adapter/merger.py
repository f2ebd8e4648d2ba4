"""The canonical test tree and its incremental merge."""

import logging
from collections.abc import Iterator, Sequence

from pester_test_adapter.models.tree import (
    ROOT_LABEL,
    TestNode,
    TestSuiteInfo,
    empty_root,
)

log = logging.getLogger(__name__)


def merge(root: TestSuiteInfo, file_suites: Sequence[TestSuiteInfo]) -> TestSuiteInfo:
    """Fold file suites into the children of ``root``.

    A child with the same id is replaced in place, children included; new
    suites are appended. Children missing from ``file_suites`` are kept, so
    re-discovering one file leaves the rest of the tree alone.
    """
    children: list[TestNode] = list(root.children)

    for file_suite in file_suites:
        for index, existing in enumerate(children):
            if existing.id == file_suite.id:
                children[index] = file_suite
                break
        else:
            children.append(file_suite)

    return root.model_copy(update={"children": tuple(children)})


def find_node(root: TestNode, node_id: str) -> TestNode | None:
    """Return the node with ``node_id``, searching depth-first."""
    for node in iter_nodes(root):
        if node.id == node_id:
            return node
    return None


def iter_nodes(root: TestNode) -> Iterator[TestNode]:
    """Yield ``root`` and its descendants in tree order."""
    stack: list[TestNode] = [root]
    while stack:
        node = stack.pop()
        yield node
        if isinstance(node, TestSuiteInfo):
            stack.extend(reversed(node.children))


class TestTree:
    """Owner of the canonical tree.

    Only this class replaces the root. Readers get immutable snapshots through
    ``root``, and every write happens in one synchronous step.
    """

    __test__ = False

    def __init__(self, label: str = ROOT_LABEL) -> None:
        self._label = label
        self._root = empty_root(label)

    @property
    def root(self) -> TestSuiteInfo:
        """Current snapshot of the tree."""
        return self._root

    def merge(self, file_suites: Sequence[TestSuiteInfo]) -> TestSuiteInfo:
        """Merge file suites into the tree and return the new snapshot."""
        self._root = merge(self._root, file_suites)
        log.debug(
            "Merged %d file suite(s), tree has %d file(s)",
            len(file_suites),
            len(self._root.children),
        )
        return self._root

    def reset(self) -> None:
        """Start again from an empty root."""
        self._root = empty_root(self._label)

    def find(self, node_id: str) -> TestNode | None:
        """Return the node with ``node_id`` in the current snapshot."""
        return find_node(self._root, node_id)
