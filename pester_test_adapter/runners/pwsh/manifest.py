"""PowerShell runner manifest."""

from pester_test_adapter.runners.manifest import RunnerManifest
from pester_test_adapter.runners.pwsh.config import PwshRunnerConfig
from pester_test_adapter.runners.pwsh.runner import PwshRunner

pwsh_manifest = RunnerManifest(
    config_cls=PwshRunnerConfig,
    runner_factory=PwshRunner.from_config,
)
