"""hdparm adapter for device-level operations.

hdparm provides the TRIM capability query (-I), partition geometry (-g),
space allocation (--fallocate), extent maps (--fibmap) and the TRIM
command itself (--trim-sector-ranges).
"""

import logging
import re
from collections.abc import Iterator
from pathlib import Path

from trimctl.core.errors import (
    AllocationFailedError,
    DeviceResolutionError,
    EnvironmentCheckError,
    MetadataUnavailableError,
    TrimCommandFailedError,
)
from trimctl.models.extent import FreeExtent
from trimctl.tools.base import DiskTool, tool_failures
from trimctl.utils.shell import CommandResult, command_exists, run_command

logger = logging.getLogger(__name__)

_TRIM_SUPPORTED = re.compile(r"[ \t]\*[ \t]*Data Set Management TRIM supported", re.IGNORECASE)
_VERSION = re.compile(r"v?(\d+(?:\.\d+)*)")


def parse_fibmap(lines: list[str]) -> Iterator[FreeExtent]:
    """Parse `hdparm --fibmap` output into extents.

    Data rows have four columns: byte_offset begin_LBA end_LBA sectors.
    Header and summary lines are ignored.

    Args:
        lines: Output lines of hdparm --fibmap.

    Yields:
        FreeExtent for each data row with a positive sector count.
    """
    for line in lines:
        fields = line.split()
        if len(fields) != 4 or not fields[1].isdigit() or not fields[3].isdigit():
            continue
        count = int(fields[3])
        if count == 0:
            logger.debug("Skipping empty fibmap row: %r", line)
            continue
        yield FreeExtent(lba=int(fields[1]), count=count)


class Hdparm(DiskTool):
    """Device operations through hdparm.

    Attributes:
        executable: hdparm command name or path.
    """

    def __init__(self, executable: str = "hdparm", timeout: float = 120.0) -> None:
        """Initialize the adapter.

        Args:
            executable: hdparm command name or path.
            timeout: Timeout in seconds for read-only queries.
        """
        self.executable = executable
        self._timeout = timeout

    def is_available(self) -> bool:
        """Check if hdparm is available."""
        return command_exists(self.executable)

    def version(self) -> str | None:
        """Return the hdparm version, e.g. '9.60'."""
        with tool_failures(EnvironmentCheckError, "hdparm -V"):
            result = run_command([self.executable, "-V"], timeout=self._timeout)
        fields = result.stdout.split()
        if len(fields) < 2:
            return None
        match = _VERSION.match(fields[1])
        return match.group(1) if match else None

    def supports_trim(self, raw_device: str) -> bool:
        """Check the IDENTIFY data for the DSM/TRIM feature bit."""
        with tool_failures(DeviceResolutionError, f"hdparm -I {raw_device}"):
            result = run_command([self.executable, "-I", raw_device], timeout=self._timeout)
        return bool(_TRIM_SUPPORTED.search(result.stdout))

    def start_sector(self, fs_device: str) -> int | None:
        """Return the `start = N` value of the geometry report."""
        with tool_failures(DeviceResolutionError, f"hdparm -g {fs_device}"):
            result = run_command([self.executable, "-g", fs_device], timeout=self._timeout)
        lines = [line for line in result.lines() if line.strip()]
        if not result.success or not lines:
            logger.debug("hdparm -g %s failed: %s", fs_device, result.stderr.strip())
            return None
        last_field = lines[-1].split()[-1]
        return int(last_field) if last_field.isdigit() else None

    def allocate(self, path: Path, size_kb: int) -> None:
        """Allocate the temporary file with --fallocate."""
        with tool_failures(AllocationFailedError, f"hdparm --fallocate {path}"):
            result = run_command(
                [self.executable, "--fallocate", str(size_kb), path.name],
                timeout=None,
                cwd=str(path.parent),
            )
        if not result.success:
            msg = result.stderr.strip() or f"hdparm --fallocate exited with {result.returncode}"
            raise AllocationFailedError(msg, exit_code=result.returncode)

    def extent_map(self, path: Path) -> Iterator[FreeExtent]:
        """Yield the extents of a file from --fibmap."""
        with tool_failures(MetadataUnavailableError, f"hdparm --fibmap {path}"):
            result = run_command(
                [self.executable, "--fibmap", path.name],
                timeout=None,
                cwd=str(path.parent),
            )
        if not result.success:
            reason = result.stderr.strip() or f"exit status {result.returncode}"
            raise MetadataUnavailableError(f"{path}: unable to read extent map: {reason}")
        yield from parse_fibmap(result.lines())

    def trim_command(self, raw_device: str, ranges: str) -> list[str]:
        """Return the --trim-sector-ranges command line."""
        return [
            self.executable,
            "--please-destroy-my-drive",
            "--trim-sector-ranges",
            *ranges.split(),
            raw_device,
        ]

    def trim(self, raw_device: str, ranges: str) -> CommandResult:
        """Issue one TRIM command over the encoded ranges."""
        with tool_failures(TrimCommandFailedError, f"hdparm --trim-sector-ranges {raw_device}"):
            return run_command(self.trim_command(raw_device, ranges), timeout=None)
