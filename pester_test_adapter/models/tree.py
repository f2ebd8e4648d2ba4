"""Models for the discovered test tree."""

from typing import Literal

from pydantic import Field

from pester_test_adapter.models.address import ROOT_ID
from pester_test_adapter.models.base import Model

ROOT_LABEL = "Pester"


class TestInfo(Model):
    """A single `It` block."""

    __test__ = False

    type: Literal["test"] = "test"
    id: str = Field(..., description="Node id, see models.address")
    label: str = Field(..., description="Test name as declared in source")
    file: str = Field(..., description="Absolute path of the defining file")
    line: int = Field(..., description="Zero-based line of the definition")


class TestSuiteInfo(Model):
    """A container node: the root, a file, or a `Describe`/`Context` block."""

    __test__ = False

    type: Literal["suite"] = "suite"
    id: str = Field(..., description="Node id, see models.address")
    label: str = Field(..., description="Display name")
    file: str | None = Field(default=None, description="Absent for the root")
    line: int | None = Field(
        default=None, description="Zero-based line, absent for root and files"
    )
    children: tuple["TestSuiteInfo | TestInfo", ...] = Field(
        default=(), description="Ordered child nodes"
    )


type TestNode = TestSuiteInfo | TestInfo


def empty_root(label: str = ROOT_LABEL) -> TestSuiteInfo:
    """Create the root suite of a fresh tree."""
    return TestSuiteInfo(id=ROOT_ID, label=label)
