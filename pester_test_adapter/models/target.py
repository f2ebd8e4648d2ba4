"""Models for run targets handed to a runner."""

from dataclasses import dataclass


@dataclass(frozen=True, kw_only=True)
class RunTarget:
    """What the runner should execute.

    ``path`` is a file or directory. ``line`` is the one-based line filter; when
    it is None the whole path runs.
    """

    path: str
    line: int | None = None
