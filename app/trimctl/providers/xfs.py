"""Offline free-space provider for xfs.

xfs_db reports free space per allocation group (AG) as
`ag_index block_offset block_count` records relative to that AG, so the
sector offset of every AG must be known before records can be converted.
"""

import logging
from collections.abc import Iterable, Iterator, Sequence

from trimctl.core.errors import (
    EnvironmentCheckError,
    InconsistentMetadataError,
    MetadataUnavailableError,
    NotCleanError,
)
from trimctl.models.device import Device, FilesystemDescriptor
from trimctl.models.extent import FreeExtent
from trimctl.models.mode import OperatingMode
from trimctl.providers.base import FreeSpaceProvider
from trimctl.tools.base import XfsTool

logger = logging.getLogger(__name__)

SECTOR_SIZE = 512


def validate_ag_offsets(offsets: Sequence[int]) -> None:
    """Require AG offsets to be strictly increasing.

    Anything else means the offsets were misread or the layout is not
    one this tool understands.

    Raises:
        InconsistentMetadataError: On the first non-increasing offset.
    """
    for index in range(1, len(offsets)):
        if offsets[index] <= offsets[index - 1]:
            raise InconsistentMetadataError(
                f"AG {index} offset {offsets[index]} does not follow "
                f"AG {index - 1} offset {offsets[index - 1]}"
            )


def parse_freesp(
    lines: Iterable[str],
    ag_offsets: Sequence[int],
    sectors_per_block: int,
    fs_offset: int,
) -> Iterator[FreeExtent]:
    """Convert `freesp -d` records into absolute free extents.

    Only lines of exactly three unsigned integers with a known AG index
    are records; histogram and summary lines are ignored.

    Args:
        lines: Lines of the xfs_db freesp report.
        ag_offsets: Sector offset of each AG within the filesystem device.
        sectors_per_block: Filesystem block size in sectors.
        fs_offset: Starting sector of the filesystem on the raw device.

    Yields:
        FreeExtent for each record.
    """
    for line in lines:
        fields = line.split()
        if len(fields) != 3 or not all(f.isdigit() for f in fields):
            continue
        ag_index, block_offset, block_count = (int(f) for f in fields)
        if ag_index >= len(ag_offsets) or block_count == 0:
            continue
        yield FreeExtent(
            lba=ag_offsets[ag_index] + block_offset * sectors_per_block + fs_offset,
            count=block_count * sectors_per_block,
        )


class XfsFreeSpaceProvider(FreeSpaceProvider):
    """Reads free space of an unmounted (or read-only) xfs filesystem."""

    def __init__(self, device: Device, filesystem: FilesystemDescriptor, tool: XfsTool) -> None:
        super().__init__(device, filesystem)
        self._tool = tool
        self.ag_offsets: list[int] = []
        self.sectors_per_block = 0

    @property
    def mode(self) -> OperatingMode:
        """Return OFFLINE."""
        return OperatingMode.OFFLINE

    def is_available(self) -> bool:
        """Check if xfs_db and xfs_repair are available."""
        return self._tool.is_available()

    def prepare(self) -> None:
        """Check the filesystem and read the AG layout and block size.

        Raises:
            EnvironmentCheckError: If the xfs tools are not available.
            NotCleanError: If xfs_repair -n reports problems.
            MetadataUnavailableError: If AG count, offsets or block size
                cannot be read.
            InconsistentMetadataError: If AG offsets are not strictly
                increasing.
        """
        if not self.is_available():
            raise EnvironmentCheckError("xfs_db/xfs_repair: needed but not found")

        fs_device = self.device.fs_device
        if not self._tool.is_clean(fs_device):
            raise NotCleanError(
                f'{fs_device}: filesystem not clean, please run "xfs_repair {fs_device}" first'
            )

        ag_count = self._tool.ag_count(fs_device)
        if not ag_count or ag_count <= 0:
            raise MetadataUnavailableError(
                f"{fs_device}: unable to determine xfs filesystem agcount"
            )

        offsets: list[int] = []
        for ag_index in range(ag_count):
            offset = self._tool.ag_offset(fs_device, ag_index)
            if offset is None:
                raise MetadataUnavailableError(
                    f"{fs_device}: unable to determine xfs filesystem agoffset-{ag_index}"
                )
            offsets.append(offset)
            try:
                validate_ag_offsets(offsets)
            except InconsistentMetadataError as e:
                raise InconsistentMetadataError(f"{fs_device}: {e}") from e

        block_size = self._tool.block_size(fs_device)
        if not block_size or block_size < SECTOR_SIZE:
            raise MetadataUnavailableError(
                f"{fs_device}: unable to determine xfs filesystem block size"
            )

        self.ag_offsets = offsets
        self.sectors_per_block = block_size // SECTOR_SIZE
        logger.debug(
            "%s: %d AGs, %d sectors per block",
            fs_device,
            len(offsets),
            self.sectors_per_block,
        )

    def extents(self) -> Iterator[FreeExtent]:
        """Yield free extents from xfs_db freesp.

        Raises:
            RuntimeError: If called before prepare().
        """
        if not self.ag_offsets:
            msg = "prepare() must be called before extents()"
            raise RuntimeError(msg)
        listing = self._tool.free_space_listing(self.device.fs_device)
        yield from parse_freesp(
            listing,
            self.ag_offsets,
            self.sectors_per_block,
            self.device.offset,
        )
