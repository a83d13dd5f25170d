"""Abstract base class for free-space providers.

A provider knows how to find the free space of one filesystem family in
one operating mode, and reports it as extents in absolute sectors of the
raw device.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager

from trimctl.models.device import Device, FilesystemDescriptor
from trimctl.models.extent import FreeExtent
from trimctl.models.mode import OperatingMode


class FreeSpaceProvider(ABC):
    """Abstract base class for all free-space providers.

    The lifecycle is: prepare() once during planning, then extents()
    inside session(). prepare() performs every check that can fail
    before anything is written or trimmed.

    Example:
        >>> provider.prepare()
        >>> with provider.session():
        ...     for extent in provider.extents():
        ...         print(extent.lba, extent.count)
    """

    def __init__(self, device: Device, filesystem: FilesystemDescriptor) -> None:
        """Initialize the provider.

        Args:
            device: Resolved raw device and filesystem offset.
            filesystem: Detected filesystem.
        """
        self.device = device
        self.filesystem = filesystem

    @property
    @abstractmethod
    def mode(self) -> OperatingMode:
        """Return the operating mode this provider implements."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the tools this provider needs are available."""

    @abstractmethod
    def prepare(self) -> None:
        """Validate the filesystem and gather metadata.

        Raises:
            TrimError: If free space cannot be safely determined.
        """

    @abstractmethod
    def extents(self) -> Iterator[FreeExtent]:
        """Yield free extents in absolute raw-device sectors.

        The sequence is finite and can only be iterated once.
        """

    @contextmanager
    def session(self) -> Iterator[None]:
        """Hold the resources extents() needs for the TRIM phase."""
        yield

    def describe(self) -> str:
        """Short description of the discovery method, for reporting."""
        return f"{self.mode.value} {self.filesystem.name}"
