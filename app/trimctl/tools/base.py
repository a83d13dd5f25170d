"""Abstract base classes for the external tools trimctl talks to.

Each class is a narrow port over one external collaborator. The default
adapters wrap command-line tools; tests substitute in-memory fakes.
"""

import subprocess
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from trimctl.core.errors import TrimError
from trimctl.models.extent import FreeExtent
from trimctl.models.mount import MountInfo
from trimctl.utils.shell import CommandResult


@contextmanager
def tool_failures(error: type[TrimError], action: str) -> Iterator[None]:
    """Re-raise a tool that cannot be started or times out as a TrimError.

    Args:
        error: TrimError subclass to raise.
        action: Short description of the query, used as the message prefix.

    Raises:
        TrimError: Instance of `error` chained to the original exception.
    """
    try:
        yield
    except subprocess.TimeoutExpired as e:
        raise error(f"{action}: timed out after {e.timeout:g}s") from e
    except OSError as e:
        raise error(f"{action}: {e.strerror or e}") from e


class MountRegistry(ABC):
    """Read-only view of the live mount table."""

    @abstractmethod
    def entries(self) -> list[MountInfo]:
        """Return all mount table entries in table order."""

    def find_by_mount_path(self, mount_path: str) -> MountInfo | None:
        """Find the entry mounted at a directory.

        Mounts can be stacked on top of each other, so the last matching
        entry wins.

        Args:
            mount_path: Mount point directory.

        Returns:
            The most recent matching entry, or None.
        """
        found: MountInfo | None = None
        for entry in self.entries():
            if entry.mount_path == mount_path:
                found = entry
        return found

    def find_by_device(self, device: str) -> MountInfo | None:
        """Find an entry backed by a device.

        A device can show up under several mount points. The first
        read-write one is preferred; otherwise the last one listed wins.

        Args:
            device: Device path as listed in the mount table.

        Returns:
            The chosen entry, or None if the device is not mounted.
        """
        found: MountInfo | None = None
        for entry in self.entries():
            if entry.device != device:
                continue
            if found is None or found.read_write is not True:
                found = entry
        return found


class DiskTool(ABC):
    """Device-level operations: capability, geometry, allocation, TRIM."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the tool can be used on this system."""

    @abstractmethod
    def version(self) -> str | None:
        """Return the tool version string (e.g. '9.60'), or None."""

    @abstractmethod
    def supports_trim(self, raw_device: str) -> bool:
        """Check if a raw device advertises Discard/TRIM support."""

    @abstractmethod
    def start_sector(self, fs_device: str) -> int | None:
        """Return the starting sector of a device on its raw device."""

    @abstractmethod
    def allocate(self, path: Path, size_kb: int) -> None:
        """Claim `size_kb` KB for a file without writing data.

        Raises:
            AllocationFailedError: If the allocation is rejected.
        """

    @abstractmethod
    def extent_map(self, path: Path) -> Iterator[FreeExtent]:
        """Yield the physical layout of a file in absolute sectors."""

    @abstractmethod
    def trim(self, raw_device: str, ranges: str) -> CommandResult:
        """Issue one destructive TRIM over the encoded `lba:count` ranges."""

    def trim_command(self, raw_device: str, ranges: str) -> list[str]:
        """Return the command line a TRIM would run, for reporting."""
        return ["trim", ranges.strip(), raw_device]


class ExtTool(ABC):
    """Metadata queries for the ext2/ext3/ext4 family."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the tool can be used on this system."""

    @abstractmethod
    def filesystem_state(self, fs_device: str) -> str | None:
        """Return the filesystem state token (only 'clean' is acceptable)."""

    @abstractmethod
    def free_space_listing(self, fs_device: str) -> Iterator[str]:
        """Yield the textual free-space listing line by line."""


class XfsTool(ABC):
    """Metadata queries for xfs."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the tools can be used on this system."""

    @abstractmethod
    def is_clean(self, fs_device: str) -> bool:
        """Run a non-destructive consistency check."""

    @abstractmethod
    def ag_count(self, fs_device: str) -> int | None:
        """Return the number of allocation groups."""

    @abstractmethod
    def ag_offset(self, fs_device: str, ag_index: int) -> int | None:
        """Return the sector offset of an allocation group within the device."""

    @abstractmethod
    def block_size(self, fs_device: str) -> int | None:
        """Return the filesystem block size in bytes."""

    @abstractmethod
    def free_space_listing(self, fs_device: str) -> Iterator[str]:
        """Yield per-AG free space records line by line."""


class FilesystemProbe(ABC):
    """Filesystem signature inspection for unmounted devices."""

    @abstractmethod
    def filesystem_type(self, fs_device: str) -> str | None:
        """Return the filesystem type name, or None if undetectable."""


class SpaceQuery(ABC):
    """Free-space queries on mounted filesystems."""

    @abstractmethod
    def root_device(self) -> str | None:
        """Return the device the root filesystem is reported on."""

    @abstractmethod
    def free_kb(self, path: str, fs_device: str) -> int | None:
        """Return available KB on the filesystem of `fs_device` mounted under `path`."""
