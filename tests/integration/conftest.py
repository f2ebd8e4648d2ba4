"""Fixtures for integration tests."""

import stat
from pathlib import Path
from typing import Protocol

import pytest

from pester_test_adapter.runners.pwsh import PwshRunner, PwshRunnerConfig


class CreateStubFn(Protocol):
    """Protocol for stub executable creation function."""

    def __call__(self, body: str) -> Path:
        """Create an executable shell script and return its path."""


class CreateRunnerFn(Protocol):
    """Protocol for runner creation function."""

    def __call__(self, body: str) -> PwshRunner:
        """Create a runner whose executable runs the given shell body."""


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a workspace directory."""
    workspace = tmp_path.resolve() / "workspace"
    workspace.mkdir()
    return workspace


@pytest.fixture
def create_stub(tmp_path: Path) -> CreateStubFn:
    """Return a function to create stand-ins for the PowerShell executable.

    The stub is called without shell arguments, so the script is ``$2``.
    """

    def _create(body: str) -> Path:
        stub = tmp_path / "fake-pwsh"
        stub.write_text(f"#!/bin/sh\n{body}\n")
        stub.chmod(stub.stat().st_mode | stat.S_IXUSR)
        return stub

    return _create


@pytest.fixture
def create_runner(create_stub: CreateStubFn) -> CreateRunnerFn:
    """Return a function to create runners backed by a stub executable."""

    def _create(body: str) -> PwshRunner:
        stub = create_stub(body)
        return PwshRunner(
            config=PwshRunnerConfig(executable=str(stub), shell_args=()),
            executable=str(stub),
        )

    return _create
