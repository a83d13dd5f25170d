"""Scoped cleanup of the online-mode temporary file.

The temporary file claims nearly all free space of a live filesystem, so
it must not outlive the run: it is removed, and the disks synced, on
success, on any error, and on interrupt.
"""

import logging
import signal
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from types import TracebackType

from trimctl.core.errors import AllocationFailedError
from trimctl.utils.formatting import console

logger = logging.getLogger(__name__)

# Signals that abort a run through the cleanup path.
ABORT_SIGNALS = (signal.SIGINT, signal.SIGTERM, signal.SIGHUP, signal.SIGQUIT)


def sync_disks(sync: Callable[[], None]) -> None:
    """Flush filesystem buffers, reporting progress."""
    console.print("Syncing disks.. ", end="")
    sync()
    console.print()


class TempFileGuard:
    """Context manager owning the temporary file.

    Example:
        >>> with TempFileGuard(Path("/mnt/TRIMCTL_TMPFILE.42"), os.sync) as path:
        ...     allocate(path)
    """

    def __init__(self, path: Path, sync: Callable[[], None]) -> None:
        self.path = path
        self._sync = sync

    def __enter__(self) -> Path:
        """Remove a stale file of the same name and hand out the path.

        Raises:
            AllocationFailedError: If a stale file cannot be removed.
        """
        if self.path.exists():
            try:
                self.path.unlink()
            except OSError as e:
                raise AllocationFailedError(
                    f"{self.path}: already exists and could not be removed"
                ) from e
        return self.path

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()

    def release(self) -> None:
        """Remove the file if present and sync."""
        if self.path.exists():
            console.print("Removing temporary file..")
            try:
                self.path.unlink()
            except OSError as e:
                logger.error("Could not remove %s: %s", self.path, e)
        sync_disks(self._sync)


class RunInterrupted(KeyboardInterrupt):
    """Raised from a signal handler to unwind a run."""

    def __init__(self, signum: int) -> None:
        super().__init__(signal.Signals(signum).name)
        self.signum = signum


def _raise_interrupt(signum: int, frame: object) -> None:
    raise RunInterrupted(signum)


@contextmanager
def abort_on_signals() -> Iterator[None]:
    """Turn termination signals into RunInterrupted for the enclosed block.

    Unwinding runs every enclosing cleanup; the previous handlers are
    restored on exit.
    """
    previous = {}
    for signum in ABORT_SIGNALS:
        previous[signum] = signal.signal(signum, _raise_interrupt)
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)
