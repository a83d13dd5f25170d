"""df adapter for free space and root device queries."""

from trimctl.core.errors import MetadataUnavailableError, ModeResolutionError
from trimctl.tools.base import SpaceQuery, tool_failures
from trimctl.utils.shell import run_command


class Df(SpaceQuery):
    """Free space queries through POSIX-format df output."""

    def __init__(self, executable: str = "df", timeout: float = 120.0) -> None:
        self.executable = executable
        self._timeout = timeout

    def root_device(self) -> str | None:
        """Return the first device path df reports for '/'."""
        with tool_failures(ModeResolutionError, "df -P /"):
            result = run_command([self.executable, "-P", "/"], timeout=self._timeout)
        for line in result.lines():
            if line.startswith("/"):
                return line.split()[0]
        return None

    def free_kb(self, path: str, fs_device: str) -> int | None:
        """Return the 'Available' column (1K blocks) for the device's row."""
        with tool_failures(MetadataUnavailableError, f"df {path}"):
            result = run_command(
                [self.executable, "-P", "-B", "1024", path],
                timeout=self._timeout,
            )
        available: int | None = None
        for line in result.lines():
            fields = line.split()
            if len(fields) >= 4 and fields[0] == fs_device and fields[3].isdigit():
                available = int(fields[3])
        return available
