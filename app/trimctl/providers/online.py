"""Online free-space provider for mounted read-write filesystems.

The free space of a live filesystem is claimed by a temporary file
allocated without writing data. Its extent map then lists exactly the
blocks that were free immediately before the allocation.
"""

import logging
import os
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from trimctl.core.cleanup import TempFileGuard
from trimctl.core.errors import (
    AllocationFailedError,
    EnvironmentCheckError,
    InsufficientSpaceError,
    MetadataUnavailableError,
    UnsupportedFilesystemError,
)
from trimctl.models.device import Device, FilesystemDescriptor
from trimctl.models.extent import FreeExtent
from trimctl.models.mode import OperatingMode
from trimctl.providers.base import FreeSpaceProvider
from trimctl.tools.base import DiskTool, SpaceQuery
from trimctl.utils.formatting import console

logger = logging.getLogger(__name__)

MIN_FREE_KB = 15000
RESERVE_MIN_KB = 7500
RESERVE_PERCENT = 1


@dataclass(frozen=True, slots=True)
class AllocationPlan:
    """How much of the free space the temporary file claims.

    Attributes:
        free_kb: Available space on the filesystem.
        reserved_kb: Space left for concurrent activity and metadata.
        allocate_kb: Size of the temporary file.
    """

    free_kb: int
    reserved_kb: int
    allocate_kb: int


def plan_allocation(
    free_kb: int,
    min_free_kb: int = MIN_FREE_KB,
    reserve_min_kb: int = RESERVE_MIN_KB,
    reserve_percent: int = RESERVE_PERCENT,
) -> AllocationPlan:
    """Compute the temporary file size for a live filesystem.

    At least `reserve_percent` of the free space, and no less than
    `reserve_min_kb`, stays unallocated.

    Args:
        free_kb: Available space on the filesystem.
        min_free_kb: Minimum free space required to attempt TRIM.
        reserve_min_kb: Minimum space to leave free.
        reserve_percent: Share of the free space to leave free.

    Returns:
        AllocationPlan for the temporary file.

    Raises:
        InsufficientSpaceError: If free_kb is below min_free_kb.
    """
    if free_kb < min_free_kb:
        raise InsufficientSpaceError(
            f"filesystem too full for TRIM ({free_kb} KB free, {min_free_kb} KB required)"
        )
    reserved_kb = max(free_kb * reserve_percent // 100, reserve_min_kb)
    return AllocationPlan(
        free_kb=free_kb,
        reserved_kb=reserved_kb,
        allocate_kb=free_kb - reserved_kb,
    )


class OnlineFreeSpaceProvider(FreeSpaceProvider):
    """Finds free space of a mounted filesystem through a temporary file.

    Attributes:
        workdir: Directory inside the mounted filesystem.
        tmpfile: Path of the temporary file.
        plan: Allocation sizes, set by prepare().
    """

    def __init__(
        self,
        device: Device,
        filesystem: FilesystemDescriptor,
        workdir: Path,
        disk: DiskTool,
        space: SpaceQuery,
        sync: Callable[[], None] = os.sync,
        *,
        min_free_kb: int = MIN_FREE_KB,
        reserve_min_kb: int = RESERVE_MIN_KB,
        reserve_percent: int = RESERVE_PERCENT,
        tmpfile_prefix: str = "TRIMCTL_TMPFILE",
    ) -> None:
        super().__init__(device, filesystem)
        self.workdir = workdir
        self.tmpfile = workdir / f"{tmpfile_prefix}.{os.getpid()}"
        self.plan: AllocationPlan | None = None
        self._disk = disk
        self._space = space
        self._sync = sync
        self._min_free_kb = min_free_kb
        self._reserve_min_kb = reserve_min_kb
        self._reserve_percent = reserve_percent

    @property
    def mode(self) -> OperatingMode:
        """Return ONLINE."""
        return OperatingMode.ONLINE

    def is_available(self) -> bool:
        """Check if the allocation tool is available."""
        return self._disk.is_available()

    def prepare(self) -> None:
        """Check fallocate support and free space, and size the temporary file.

        Raises:
            EnvironmentCheckError: If the allocation tool is not available.
            UnsupportedFilesystemError: For ext2/ext3, which lack fallocate.
            MetadataUnavailableError: If free space cannot be queried.
            InsufficientSpaceError: If the filesystem is too full.
        """
        if not self.is_available():
            raise EnvironmentCheckError("hdparm: needed but not found")
        if not self.filesystem.supports_fallocate:
            raise UnsupportedFilesystemError(
                f"{self.workdir}: cannot TRIM {self.filesystem.name} filesystem "
                "when mounted read-write"
            )

        free_kb = self._space.free_kb(str(self.workdir), self.device.fs_device)
        if free_kb is None:
            raise MetadataUnavailableError(f"{self.workdir}: unable to determine free space")
        try:
            self.plan = plan_allocation(
                free_kb,
                min_free_kb=self._min_free_kb,
                reserve_min_kb=self._reserve_min_kb,
                reserve_percent=self._reserve_percent,
            )
        except InsufficientSpaceError as e:
            raise InsufficientSpaceError(f"{self.workdir}: {e}") from e
        logger.debug("freesize = %d KB, reserved = %d KB", self.plan.free_kb, self.plan.reserved_kb)

    @contextmanager
    def session(self) -> Iterator[None]:
        """Create the temporary file and remove it again on every exit path.

        Raises:
            AllocationFailedError: If the file cannot be allocated.
            RuntimeError: If called before prepare().
        """
        if self.plan is None:
            msg = "prepare() must be called before session()"
            raise RuntimeError(msg)

        with TempFileGuard(self.tmpfile, self._sync) as path:
            console.print(f"Creating temporary file ({self.plan.allocate_kb} KB).. ", end="")
            try:
                self._disk.allocate(path, self.plan.allocate_kb)
            except AllocationFailedError as e:
                console.print()
                raise AllocationFailedError(
                    f"{self.workdir}: this kernel may not support 'fallocate' on a "
                    f"{self.filesystem.name} filesystem ({e})",
                    exit_code=e.exit_code,
                ) from e
            console.print()
            yield

    def extents(self) -> Iterator[FreeExtent]:
        """Yield the extent map of the temporary file."""
        yield from self._disk.extent_map(self.tmpfile)
