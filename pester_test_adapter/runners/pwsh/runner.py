"""PowerShell runner implementation."""

import asyncio
import logging
import shutil
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

from pester_test_adapter.errors import DiscoveryParseError, MissingRunnerError
from pester_test_adapter.models.target import RunTarget
from pester_test_adapter.runners.base import TestRunner
from pester_test_adapter.runners.pwsh.config import PwshRunnerConfig, Verbosity
from pester_test_adapter.runners.pwsh.scripts import discovery_script, invoke_script

log = logging.getLogger(__name__)

EXECUTABLE_CANDIDATES = ("pwsh", "powershell")


def find_executable(config: PwshRunnerConfig) -> str:
    """Resolve the PowerShell executable to use.

    Raises:
        MissingRunnerError: If no executable can be found

    """
    candidates = (config.executable,) if config.executable else EXECUTABLE_CANDIDATES
    for candidate in candidates:
        if (resolved := shutil.which(candidate)) is not None:
            return resolved

    raise MissingRunnerError(
        f"PowerShell executable not found (tried: {', '.join(candidates)})"
    )


@dataclass(frozen=True, kw_only=True)
class PwshRunner(TestRunner):
    """Runs Pester through a PowerShell child process."""

    config: PwshRunnerConfig
    executable: str

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: PwshRunnerConfig
    ) -> AsyncGenerator["PwshRunner", None]:
        """Create runner after resolving the executable."""
        executable = find_executable(config)
        log.info("Using PowerShell executable %s", executable)
        yield cls(config=config, executable=executable)

    async def discover(self, paths: Sequence[str]) -> str:
        """Run the discovery script and return its stdout."""
        script = discovery_script(paths, self.config.minimum_pester_version)
        process = await self._spawn(
            script,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await process.communicate()

        if stderr:
            log.warning("Discovery stderr: %s", stderr.decode(errors="replace").strip())

        if process.returncode != 0:
            raise DiscoveryParseError(
                f"Discovery exited with code {process.returncode}"
            )

        # Windows PowerShell writes in the console code page, not UTF-8
        return stdout.decode(errors="replace")

    async def run(self, target: RunTarget, output_path: Path) -> None:
        """Run a target with the configured output verbosity."""
        await self._invoke(target, output_path, self.config.output_verbosity)

    async def debug(self, target: RunTarget, output_path: Path) -> None:
        """Run a target with the debug verbosity."""
        await self._invoke(target, output_path, self.config.debug_verbosity)

    async def _invoke(
        self, target: RunTarget, output_path: Path, verbosity: Verbosity
    ) -> None:
        script = invoke_script(
            target.path,
            str(output_path),
            self.config.minimum_pester_version,
            verbosity,
            target.line,
        )
        log.info("Running %s (line=%s)", target.path, target.line)
        process = await self._spawn(
            script,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )

        try:
            assert process.stdout is not None
            async for raw_line in process.stdout:
                log.info("pester: %s", raw_line.decode(errors="replace").rstrip())
            returncode = await process.wait()
        except asyncio.CancelledError:
            if process.returncode is None:
                log.info("Terminating run of %s", target.path)
                process.terminate()
                await process.wait()
            raise

        # Pester reports failing tests through the result file, not the exit code
        log.info("Run of %s exited with code %d", target.path, returncode)

    async def _spawn(
        self, script: str, *, stdout: int, stderr: int
    ) -> asyncio.subprocess.Process:
        return await asyncio.create_subprocess_exec(
            self.executable,
            *self.config.shell_args,
            "-Command",
            script,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=stdout,
            stderr=stderr,
        )
