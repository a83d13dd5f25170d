"""Operating mode model."""

from enum import Enum


class OperatingMode(str, Enum):
    """How free space is discovered.

    Attributes:
        ONLINE: Through the mounted filesystem, by allocating a temporary file.
        OFFLINE: By reading filesystem metadata from the unmounted
            (or read-only) block device.
    """

    ONLINE = "online"
    OFFLINE = "offline"
