"""Device and filesystem models."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True, slots=True)
class Device:
    """The raw device a filesystem lives on.

    Attributes:
        raw_device: Whole-disk device path TRIM commands are sent to.
        fs_device: Device path holding the filesystem (may equal raw_device).
        offset: Starting sector of the filesystem on the raw device.
        trim_supported: Whether the raw device advertises TRIM support.
    """

    raw_device: str
    fs_device: str
    offset: int
    trim_supported: bool

    def __post_init__(self) -> None:
        """Validate device data after initialization."""
        if self.offset < 0:
            msg = f"Filesystem offset cannot be negative, got {self.offset}"
            raise ValueError(msg)


class FilesystemType(str, Enum):
    """Filesystem families with modeled behaviour."""

    EXT2 = "ext2"
    EXT3 = "ext3"
    EXT4 = "ext4"
    XFS = "xfs"
    UNKNOWN = "unknown"

    @classmethod
    def from_name(cls, name: str) -> "FilesystemType":
        """Map a reported type name to a family, UNKNOWN if not modeled."""
        try:
            return cls(name)
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True, slots=True)
class FilesystemDescriptor:
    """Detected filesystem of the target.

    Attributes:
        name: Type name as reported by the mount table or blkid.
        fs_type: Modeled family of the filesystem.
    """

    name: str
    fs_type: FilesystemType

    @classmethod
    def from_name(cls, name: str) -> "FilesystemDescriptor":
        """Build a descriptor from a reported type name."""
        return cls(name=name, fs_type=FilesystemType.from_name(name))

    @property
    def is_ext(self) -> bool:
        """Check if the filesystem belongs to the ext2/3/4 family."""
        return self.fs_type in (FilesystemType.EXT2, FilesystemType.EXT3, FilesystemType.EXT4)

    @property
    def supports_fallocate(self) -> bool:
        """Check if online allocation is possible (anything but ext2/ext3)."""
        return self.fs_type not in (FilesystemType.EXT2, FilesystemType.EXT3)
