"""/proc/mounts adapter for the mount registry."""

import logging
from pathlib import Path

from trimctl.core.errors import ModeResolutionError
from trimctl.models.mount import MountInfo
from trimctl.tools.base import MountRegistry

logger = logging.getLogger(__name__)


def _unescape(field: str) -> str:
    """Decode the octal escapes the kernel uses for blanks and tabs."""
    if "\\" not in field:
        return field
    return (
        field.replace("\\040", " ")
        .replace("\\011", "\t")
        .replace("\\012", "\n")
        .replace("\\134", "\\")
    )


def parse_mounts(text: str) -> list[MountInfo]:
    """Parse mount table text in /proc/mounts format.

    Args:
        text: Contents of the mount table.

    Returns:
        Entries in table order. Malformed lines are skipped.
    """
    entries: list[MountInfo] = []
    for line in text.splitlines():
        fields = line.split()
        if len(fields) < 4:
            if line.strip():
                logger.debug("Skipping malformed mount line: %r", line[:100])
            continue
        entries.append(
            MountInfo(
                device=_unescape(fields[0]),
                mount_path=_unescape(fields[1]),
                fstype=fields[2],
                options=tuple(fields[3].split(",")),
            )
        )
    return entries


class ProcMountRegistry(MountRegistry):
    """Mount registry backed by the kernel's mount table.

    The table is re-read on every query so that results reflect the
    live state.
    """

    def __init__(self, path: str = "/proc/mounts") -> None:
        """Initialize the registry.

        Args:
            path: Mount table file to read.
        """
        self._path = Path(path)

    def entries(self) -> list[MountInfo]:
        """Return all mount table entries in table order."""
        try:
            text = self._path.read_text()
        except OSError as e:
            raise ModeResolutionError(f"{self._path}: unable to read mount table: {e}") from e
        return parse_mounts(text)
