"""Configuration for the PowerShell runner."""

from collections.abc import Sequence
from typing import Literal

from pydantic import BaseModel

type Verbosity = Literal["None", "Normal", "Detailed", "Diagnostic"]


class PwshRunnerConfig(BaseModel):
    """Configuration for the PowerShell runner."""

    # None means look up "pwsh", then "powershell", on PATH
    executable: str | None = None
    shell_args: Sequence[str] = ("-NoLogo", "-NoProfile", "-NonInteractive")
    minimum_pester_version: str = "5.0.0"
    output_verbosity: Verbosity = "Normal"
    debug_verbosity: Verbosity = "Diagnostic"
