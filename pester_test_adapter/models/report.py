"""Models for parsed NUnit result reports."""

from typing import Literal

from pydantic import Field

from pester_test_adapter.models.base import Model

type TestState = Literal["running", "passed", "failed", "skipped", "errored"]
type SuiteState = Literal["running", "completed"]


class ReportNode(Model):
    """A `test-suite` or `test-case` element of a result report.

    Children from the element's `results` grouping are always a tuple, whether
    the XML held one element or many.
    """

    description: str = Field(..., description="Label-like description")
    result: str | None = Field(
        default=None, description="Raw result token, None when not executed"
    )
    children: tuple["ReportNode", ...] = Field(default=())
