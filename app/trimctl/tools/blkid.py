"""blkid adapter for filesystem type detection."""

import re

from trimctl.core.errors import FilesystemTypeUnknownError
from trimctl.tools.base import FilesystemProbe, tool_failures
from trimctl.utils.shell import run_command

_TYPE_FIELD = re.compile(r'\sTYPE="([^"]*)"')


class Blkid(FilesystemProbe):
    """Filesystem signature inspection through blkid.

    The cache is bypassed so the result reflects the device contents.
    """

    def __init__(self, executable: str = "blkid", timeout: float = 120.0) -> None:
        self.executable = executable
        self._timeout = timeout

    def filesystem_type(self, fs_device: str) -> str | None:
        """Return the TYPE value of the device, or None."""
        with tool_failures(FilesystemTypeUnknownError, f"blkid {fs_device}"):
            result = run_command(
                [self.executable, "-w", "/dev/null", "-c", "/dev/null", fs_device],
                timeout=self._timeout,
            )
        match = _TYPE_FIELD.search(result.stdout)
        if match is None or not match.group(1):
            return None
        return match.group(1)
