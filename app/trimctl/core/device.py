"""Raw device resolution.

TRIM commands address the whole disk, so every free extent must be
expressed in sectors of the raw device rather than of the partition
holding the filesystem.
"""

import logging
import re

from trimctl.core.errors import CapabilityUnsupportedError, DeviceResolutionError
from trimctl.models.device import Device
from trimctl.tools.base import DiskTool
from trimctl.utils.blockdev import device_major, is_block_device, path_exists
from trimctl.utils.formatting import print_warning

logger = logging.getLogger(__name__)

# nvme0n1p2, mmcblk0p1: the partition suffix follows a digit and a 'p'.
_P_PARTITION_SUFFIX = re.compile(r"(?<=\d)p\d+$")
_PARTITION_SUFFIX = re.compile(r"\d+$")


def derive_raw_device(fs_device: str) -> str:
    """Guess the whole-disk device name by stripping a partition number.

    The result is only a heuristic; callers must validate it.

    Args:
        fs_device: Device holding the filesystem (e.g. '/dev/sda1').

    Returns:
        The candidate raw device (e.g. '/dev/sda'). A device without a
        partition suffix is returned unchanged.
    """
    stripped = _P_PARTITION_SUFFIX.sub("", fs_device)
    if stripped != fs_device:
        return stripped
    return _PARTITION_SUFFIX.sub("", fs_device)


class DeviceResolver:
    """Resolves the raw device, filesystem offset and TRIM capability.

    Attributes:
        commit: Whether the run will issue real TRIM commands. Missing TRIM
            support is fatal only when committing.
    """

    def __init__(self, disk: DiskTool, commit: bool = False) -> None:
        self._disk = disk
        self.commit = commit

    def resolve(self, fs_device: str) -> Device:
        """Resolve the raw device for a filesystem device.

        Args:
            fs_device: Block device holding the filesystem.

        Returns:
            Device describing the raw device and filesystem offset.

        Raises:
            DeviceResolutionError: If the raw device cannot be reliably
                determined or the offset cannot be read.
            CapabilityUnsupportedError: If committing and TRIM is not
                advertised.
        """
        raw_device = self._raw_device(fs_device)

        trim_supported = self._disk.supports_trim(raw_device)
        if not trim_supported:
            if self.commit:
                raise CapabilityUnsupportedError(f"{raw_device}: DSM/TRIM command not supported")
            print_warning(
                f"{raw_device}: DSM/TRIM command not supported (continuing with dry-run)."
            )

        offset = self._disk.start_sector(fs_device)
        if offset is None:
            raise DeviceResolutionError(f"{fs_device}: unable to determine the filesystem offset")

        logger.debug("Resolved %s -> %s (offset %d)", fs_device, raw_device, offset)
        return Device(
            raw_device=raw_device,
            fs_device=fs_device,
            offset=offset,
            trim_supported=trim_supported,
        )

    def _raw_device(self, fs_device: str) -> str:
        """Derive and validate the raw device.

        The major number check guards against stripping a suffix that was
        part of the disk name rather than a partition number.
        """
        candidate = derive_raw_device(fs_device)
        reason: str | None = None
        if not path_exists(candidate):
            reason = f"{candidate} does not exist"
        elif not is_block_device(candidate):
            reason = f"{candidate} is not a block device"
        else:
            try:
                if device_major(candidate) != device_major(fs_device):
                    reason = f"{candidate} has a different major number"
            except OSError as e:
                reason = str(e)

        if reason is not None:
            logger.debug("Raw device derivation for %s failed: %s", fs_device, reason)
            raise DeviceResolutionError(
                f"{fs_device}: unable to reliably determine the underlying physical device name"
            )
        return candidate
