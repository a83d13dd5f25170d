"""Target models.

A target is the path the user asked to TRIM: either the mount point of
a filesystem or a block device holding one.
"""

from dataclasses import dataclass
from enum import Enum

from trimctl.core.errors import TargetInvalidError
from trimctl.utils.blockdev import is_block_device, is_plain_directory


class TargetKind(str, Enum):
    """Kind of a classified target path.

    Attributes:
        DIRECTORY: A directory (expected to be a mount point).
        BLOCK_DEVICE: A block device node.
    """

    DIRECTORY = "directory"
    BLOCK_DEVICE = "block-device"


@dataclass(frozen=True, slots=True)
class Target:
    """A classified, immutable target path.

    Attributes:
        path: Absolute path without trailing slash ("/" stays "/").
        kind: Whether the path is a directory or a block device.
    """

    path: str
    kind: TargetKind

    @property
    def is_directory(self) -> bool:
        """Check if the target is a directory."""
        return self.kind == TargetKind.DIRECTORY


def normalize_target_path(raw: str) -> str:
    """Validate and normalize a user-supplied target path.

    Args:
        raw: Path as given on the command line.

    Returns:
        The path with any trailing slashes removed.

    Raises:
        TargetInvalidError: If the path is empty, relative, or contains blanks.
    """
    if not raw:
        raise TargetInvalidError("no target given")
    if any(ch.isspace() for ch in raw):
        raise TargetInvalidError(f'"{raw}": pathname has embedded blanks')
    if not raw.startswith("/"):
        raise TargetInvalidError(f"{raw}: target must be an absolute path")
    path = raw.rstrip("/")
    return path or "/"


def classify_target(raw: str) -> Target:
    """Classify a target path as a directory or a block device.

    Args:
        raw: Path as given on the command line.

    Returns:
        The classified Target.

    Raises:
        TargetInvalidError: If the path is neither a (non-symlink) directory
            nor a block device.
    """
    path = normalize_target_path(raw)
    if is_block_device(path):
        return Target(path=path, kind=TargetKind.BLOCK_DEVICE)
    if is_plain_directory(path):
        return Target(path=path, kind=TargetKind.DIRECTORY)
    raise TargetInvalidError(f"{path}: not a mount point directory or block device")
