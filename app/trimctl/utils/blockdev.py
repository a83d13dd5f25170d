"""Block device node helpers.

Thin wrappers over os.stat so that callers can be tested without
real device nodes.
"""

import os
import stat


def path_exists(path: str) -> bool:
    """Check if a path exists (without following a dangling symlink)."""
    return os.path.exists(path)


def is_block_device(path: str) -> bool:
    """Check if a path is a block device node."""
    try:
        return stat.S_ISBLK(os.stat(path).st_mode)
    except OSError:
        return False


def device_major(path: str) -> int:
    """Return the major device number of a device node.

    Raises:
        OSError: If the node cannot be stat'ed.
    """
    return os.major(os.stat(path).st_rdev)


def is_plain_directory(path: str) -> bool:
    """Check if a path is a directory and not a symlink to one."""
    return os.path.isdir(path) and not os.path.islink(path)
