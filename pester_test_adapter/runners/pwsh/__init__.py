"""PowerShell runner module."""

from pester_test_adapter.runners.pwsh.config import PwshRunnerConfig
from pester_test_adapter.runners.pwsh.manifest import pwsh_manifest
from pester_test_adapter.runners.pwsh.runner import PwshRunner

__all__ = ["PwshRunner", "PwshRunnerConfig", "pwsh_manifest"]
