"""Selection of the free-space provider for a mode and filesystem."""

from pathlib import Path

from trimctl.core.config import TrimConfig
from trimctl.core.errors import UnsupportedFilesystemError
from trimctl.models.device import Device, FilesystemDescriptor, FilesystemType
from trimctl.models.mode import OperatingMode
from trimctl.providers.base import FreeSpaceProvider
from trimctl.providers.ext import ExtFreeSpaceProvider
from trimctl.providers.online import OnlineFreeSpaceProvider
from trimctl.providers.xfs import XfsFreeSpaceProvider
from trimctl.tools.toolbox import Toolbox


def get_provider(
    mode: OperatingMode,
    device: Device,
    filesystem: FilesystemDescriptor,
    toolbox: Toolbox,
    *,
    workdir: Path | None = None,
    config: TrimConfig | None = None,
) -> FreeSpaceProvider:
    """Get the provider for a mode and filesystem.

    Args:
        mode: Final operating mode.
        device: Resolved raw device.
        filesystem: Detected filesystem.
        toolbox: Tool adapters.
        workdir: Directory inside the mounted filesystem (online only).
        config: Run configuration; defaults if None.

    Returns:
        The matching provider instance (not yet prepared).

    Raises:
        UnsupportedFilesystemError: If no strategy exists for the combination.
    """
    config = config or TrimConfig()

    if mode == OperatingMode.ONLINE:
        if not filesystem.supports_fallocate:
            raise UnsupportedFilesystemError(
                f"cannot TRIM {filesystem.name} filesystem when mounted read-write"
            )
        if workdir is None:
            msg = "Online TRIM requires a working directory"
            raise ValueError(msg)
        return OnlineFreeSpaceProvider(
            device,
            filesystem,
            workdir,
            toolbox.disk,
            toolbox.space,
            toolbox.sync,
            min_free_kb=config.min_free_kb,
            reserve_min_kb=config.reserve_min_kb,
            reserve_percent=config.reserve_percent,
            tmpfile_prefix=config.tmpfile_prefix,
        )

    if filesystem.is_ext:
        return ExtFreeSpaceProvider(device, filesystem, toolbox.ext)

    if filesystem.fs_type == FilesystemType.XFS:
        return XfsFreeSpaceProvider(device, filesystem, toolbox.xfs)

    raise UnsupportedFilesystemError(
        f"offline TRIM not supported for {filesystem.name} filesystems"
    )
