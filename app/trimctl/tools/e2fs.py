"""dumpe2fs adapter for the ext2/ext3/ext4 family."""

import logging
import re
from collections.abc import Iterator

from trimctl.core.errors import MetadataUnavailableError
from trimctl.tools.base import ExtTool, tool_failures
from trimctl.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)

_STATE_LINE = re.compile(r"^[Ff]ilesystem state:")


class Dumpe2fs(ExtTool):
    """ext metadata queries through dumpe2fs."""

    def __init__(self, executable: str = "dumpe2fs", timeout: float = 120.0) -> None:
        self.executable = executable
        self._timeout = timeout

    def is_available(self) -> bool:
        """Check if dumpe2fs is available."""
        return command_exists(self.executable)

    def filesystem_state(self, fs_device: str) -> str | None:
        """Return the last word of the 'Filesystem state:' header line."""
        with tool_failures(MetadataUnavailableError, f"dumpe2fs -h {fs_device}"):
            result = run_command([self.executable, "-h", fs_device], timeout=self._timeout)
        state: str | None = None
        for line in result.lines():
            if _STATE_LINE.match(line):
                fields = line.split()
                state = fields[-1] if len(fields) > 2 else None
        return state

    def free_space_listing(self, fs_device: str) -> Iterator[str]:
        """Yield the full dumpe2fs report, including per-group free blocks."""
        # Free block lists can be large; no timeout.
        with tool_failures(MetadataUnavailableError, f"dumpe2fs {fs_device}"):
            result = run_command([self.executable, fs_device], timeout=None)
        if not result.success:
            logger.debug("dumpe2fs %s exited with %d", fs_device, result.returncode)
        yield from result.lines()
