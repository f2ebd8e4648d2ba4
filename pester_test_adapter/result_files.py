"""Locating and watching result report files."""

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

from pester_test_adapter.errors import AmbiguousResultFileError

log = logging.getLogger(__name__)

type ChangeCallback = Callable[[Path], None]


def find_result_file(directory: Path, pattern: str) -> Path | None:
    """Return the single result file matching ``pattern`` under ``directory``.

    Returns:
        The matching file, or None when there is none yet

    Raises:
        AmbiguousResultFileError: If more than one file matches

    """
    matches = sorted(path for path in directory.glob(pattern) if path.is_file())

    if len(matches) > 1:
        raise AmbiguousResultFileError(
            f"More than one result file matches '{pattern}': "
            f"{', '.join(str(m) for m in matches)}"
        )

    return matches[0] if matches else None


class ResultFileWatcher:
    """Invoke a callback whenever a result file is written.

    The file is polled for changes of its modification stamp, so the watcher
    works the same with every runner and file system.
    """

    def __init__(
        self,
        path: Path,
        callback: ChangeCallback,
        poll_interval: float = 1.0,
    ) -> None:
        self.path = path
        self.callback = callback
        self.poll_interval = poll_interval
        self._task: asyncio.Task[None] | None = None
        self._last_stamp = self._stamp()

    def start(self) -> None:
        """Start polling in the background."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._poll())

    def cancel(self) -> None:
        """Stop polling without waiting for the poll task."""
        if self._task is not None:
            self._task.cancel()

    async def stop(self) -> None:
        """Stop polling and wait for the poll task to end."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    def check(self) -> bool:
        """Invoke the callback if the file changed since the last check."""
        stamp = self._stamp()
        if stamp is None or stamp == self._last_stamp:
            self._last_stamp = stamp
            return False

        self._last_stamp = stamp
        log.debug("Result file changed: %s", self.path)
        self.callback(self.path)
        return True

    async def _poll(self) -> None:
        while True:
            try:
                self.check()
            except Exception as e:
                log.error("Result file callback failed: %s", e, exc_info=e)
            await asyncio.sleep(self.poll_interval)

    def _stamp(self) -> tuple[int, int] | None:
        try:
            stat = self.path.stat()
        except FileNotFoundError:
            return None
        return (stat.st_mtime_ns, stat.st_size)
