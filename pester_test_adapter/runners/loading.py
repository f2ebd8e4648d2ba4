"""Resolve runners registered by installed packages."""

from importlib.metadata import entry_points
from typing import Any

from pester_test_adapter.errors import MissingRunnerError
from pester_test_adapter.runners.manifest import RunnerManifest

ENTRY_POINT_GROUP = "pester_test_adapter.runners"


def load_runner_manifest(key: str) -> RunnerManifest[Any]:
    """Return the manifest of the runner registered under ``key``.

    Runners are entry points of the ``pester_test_adapter.runners`` group
    whose object is a :class:`RunnerManifest`. This package registers its
    PowerShell runner as ``pwsh``; other packages may add their own.

    Raises:
        MissingRunnerError: If no installed package registers ``key``

    """
    registered = {entry.name: entry for entry in entry_points(group=ENTRY_POINT_GROUP)}

    entry = registered.get(key)
    if entry is None:
        raise MissingRunnerError(
            f"Runner '{key}' not found. Available runners: {sorted(registered)}. "
            f"Install a package registering it in the '{ENTRY_POINT_GROUP}' "
            "entry point group"
        )

    manifest: RunnerManifest[Any] = entry.load()
    return manifest
