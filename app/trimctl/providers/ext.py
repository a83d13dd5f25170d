"""Offline free-space provider for the ext2/ext3/ext4 family.

Free space comes from the dumpe2fs report: a 'Block size:' header field
and per-group 'Free blocks:' lists of inclusive block ranges.
"""

import logging
import re
from collections.abc import Iterable, Iterator

from trimctl.core.errors import EnvironmentCheckError, NotCleanError
from trimctl.models.device import Device, FilesystemDescriptor
from trimctl.models.extent import FreeExtent
from trimctl.models.mode import OperatingMode
from trimctl.providers.base import FreeSpaceProvider
from trimctl.tools.base import ExtTool

logger = logging.getLogger(__name__)

SECTOR_SIZE = 512

_BLOCK_SIZE = re.compile(r"^Block size:\s*(\d+)")
_FREE_BLOCKS = re.compile(r"^\s*Free blocks:\s+(\d.*)$")
_RANGE = re.compile(r"^(\d+)-(\d+)$")
_SEPARATOR = re.compile(r",*\s+")


def parse_free_blocks(lines: Iterable[str], fs_offset: int) -> Iterator[FreeExtent]:
    """Convert a dumpe2fs report into absolute free extents.

    Only `first-last` range tokens are used. Bare numbers, such as the
    total free block count of the superblock header, are ignored.
    'Free blocks:' lines before the 'Block size:' field are skipped.

    Args:
        lines: Lines of the dumpe2fs report.
        fs_offset: Starting sector of the filesystem on the raw device.

    Yields:
        FreeExtent for each free block range.
    """
    sectors_per_block = 0
    for line in lines:
        size_match = _BLOCK_SIZE.match(line)
        if size_match:
            sectors_per_block = int(size_match.group(1)) // SECTOR_SIZE
            continue

        free_match = _FREE_BLOCKS.match(line)
        if not free_match or not sectors_per_block:
            continue

        for token in _SEPARATOR.split(free_match.group(1).strip()):
            range_match = _RANGE.match(token.rstrip(","))
            if not range_match:
                continue
            first, last = int(range_match.group(1)), int(range_match.group(2))
            if last < first:
                logger.debug("Skipping inverted block range %r", token)
                continue
            yield FreeExtent(
                lba=first * sectors_per_block + fs_offset,
                count=(last - first + 1) * sectors_per_block,
            )


class ExtFreeSpaceProvider(FreeSpaceProvider):
    """Reads free space of an unmounted (or read-only) ext filesystem."""

    def __init__(self, device: Device, filesystem: FilesystemDescriptor, tool: ExtTool) -> None:
        super().__init__(device, filesystem)
        self._tool = tool

    @property
    def mode(self) -> OperatingMode:
        """Return OFFLINE."""
        return OperatingMode.OFFLINE

    def is_available(self) -> bool:
        """Check if dumpe2fs is available."""
        return self._tool.is_available()

    def prepare(self) -> None:
        """Require the filesystem to be clean.

        Raises:
            EnvironmentCheckError: If dumpe2fs is not available.
            NotCleanError: If the filesystem state is not 'clean'.
        """
        if not self.is_available():
            raise EnvironmentCheckError("dumpe2fs: needed but not found")

        fs_device = self.device.fs_device
        state = self._tool.filesystem_state(fs_device)
        logger.debug("%s: filesystem state %r", fs_device, state)
        if state != "clean":
            raise NotCleanError(
                f'{fs_device}: filesystem not clean, please run "e2fsck {fs_device}" first'
            )

    def extents(self) -> Iterator[FreeExtent]:
        """Yield free block ranges from dumpe2fs."""
        listing = self._tool.free_space_listing(self.device.fs_device)
        yield from parse_free_blocks(listing, self.device.offset)
