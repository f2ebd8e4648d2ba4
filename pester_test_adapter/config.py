"""Configuration for the test adapter."""

from pathlib import Path

from pydantic import BaseModel

from pester_test_adapter.models.tree import ROOT_LABEL


class AdapterConfig(BaseModel):
    """Configuration for a workspace session."""

    workspace: Path
    # None means the workspace itself
    test_root: Path | None = None
    test_file_pattern: str = "**/*.[tT]ests.ps1"
    # Output path of runs, also matched as a glob when locating results
    result_file: str = "TestExplorerResults.xml"
    root_label: str = ROOT_LABEL

    @property
    def test_root_path(self) -> Path:
        """Directory searched for test files and run for the root node."""
        if self.test_root is None:
            return self.workspace
        return self.workspace / self.test_root

    @property
    def result_path(self) -> Path:
        """Where runs write their result report."""
        return self.workspace / self.result_file
