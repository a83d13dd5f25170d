"""xfs_db / xfs_repair adapter for xfs."""

import logging
from collections.abc import Iterator

from trimctl.core.errors import MetadataUnavailableError
from trimctl.tools.base import XfsTool, tool_failures
from trimctl.utils.shell import CommandResult, command_exists, run_command

logger = logging.getLogger(__name__)


def _last_value(result: CommandResult, field: int = -1) -> int | None:
    """Extract an integer from the last output line.

    xfs_db prints 'name = value' for `print` and 'hex (decimal)' for
    `convert`; both are handled by stripping parentheses and blanks.
    """
    lines = [line for line in result.lines() if line.strip()]
    if not result.success or not lines:
        return None
    fields = lines[-1].split()
    try:
        raw = fields[field]
    except IndexError:
        return None
    raw = raw.strip("( )")
    return int(raw) if raw.isdigit() else None


class XfsTools(XfsTool):
    """xfs metadata queries through xfs_db (read-only) and xfs_repair -n."""

    def __init__(
        self,
        xfs_db: str = "xfs_db",
        xfs_repair: str = "xfs_repair",
        timeout: float = 120.0,
    ) -> None:
        self.xfs_db = xfs_db
        self.xfs_repair = xfs_repair
        self._timeout = timeout

    def is_available(self) -> bool:
        """Check if both xfs_db and xfs_repair are available."""
        return command_exists(self.xfs_db) and command_exists(self.xfs_repair)

    def _db(self, fs_device: str, *commands: str, timeout: float | None = None) -> CommandResult:
        args = [self.xfs_db, "-r"]
        for command in commands:
            args.extend(["-c", command])
        args.append(fs_device)
        with tool_failures(MetadataUnavailableError, f"xfs_db {fs_device}"):
            return run_command(args, timeout=timeout)

    def is_clean(self, fs_device: str) -> bool:
        """Run xfs_repair in no-modify mode."""
        # A full check of a large filesystem can take a while.
        with tool_failures(MetadataUnavailableError, f"xfs_repair -n {fs_device}"):
            result = run_command([self.xfs_repair, "-n", fs_device], timeout=None)
        if not result.success:
            logger.debug("xfs_repair -n %s: %s", fs_device, result.stdout[-500:])
        return result.success

    def ag_count(self, fs_device: str) -> int | None:
        """Return the superblock agcount."""
        return _last_value(self._db(fs_device, "sb", "print agcount", timeout=self._timeout))

    def ag_offset(self, fs_device: str, ag_index: int) -> int | None:
        """Return the daddr (sector) of the first block of an AG."""
        result = self._db(fs_device, "sb", f"convert agno {ag_index} daddr", timeout=self._timeout)
        return _last_value(result, field=1)

    def block_size(self, fs_device: str) -> int | None:
        """Return the superblock blocksize."""
        return _last_value(self._db(fs_device, "sb", "print blocksize", timeout=self._timeout))

    def free_space_listing(self, fs_device: str) -> Iterator[str]:
        """Yield the `freesp -d` report."""
        result = self._db(fs_device, "freesp -d")
        if not result.success:
            logger.debug("xfs_db freesp -d %s exited with %d", fs_device, result.returncode)
        yield from result.lines()
