"""Bundle of the external tool adapters used by a run."""

import os
from collections.abc import Callable
from dataclasses import dataclass, field

from trimctl.core.config import TrimConfig
from trimctl.tools.base import (
    DiskTool,
    ExtTool,
    FilesystemProbe,
    MountRegistry,
    SpaceQuery,
    XfsTool,
)
from trimctl.tools.blkid import Blkid
from trimctl.tools.df import Df
from trimctl.tools.e2fs import Dumpe2fs
from trimctl.tools.hdparm import Hdparm
from trimctl.tools.mounts import ProcMountRegistry
from trimctl.tools.xfs import XfsTools


@dataclass(slots=True)
class Toolbox:
    """Ports the pipeline talks to.

    Attributes:
        mounts: Live mount table.
        disk: Device capability, geometry, allocation and TRIM.
        ext: ext2/3/4 metadata.
        xfs: xfs metadata.
        probe: Filesystem type detection for unmounted devices.
        space: Free space and root device queries.
        sync: Flushes filesystem buffers to storage.
    """

    mounts: MountRegistry
    disk: DiskTool
    ext: ExtTool
    xfs: XfsTool
    probe: FilesystemProbe
    space: SpaceQuery
    sync: Callable[[], None] = field(default=os.sync)

    @classmethod
    def from_config(cls, config: TrimConfig) -> "Toolbox":
        """Create the default command-line adapters for a configuration."""
        tools = config.tools
        timeout = float(config.query_timeout_seconds)
        return cls(
            mounts=ProcMountRegistry(config.mounts_path),
            disk=Hdparm(tools.hdparm, timeout=timeout),
            ext=Dumpe2fs(tools.dumpe2fs, timeout=timeout),
            xfs=XfsTools(tools.xfs_db, tools.xfs_repair, timeout=timeout),
            probe=Blkid(tools.blkid, timeout=timeout),
            space=Df(tools.df, timeout=timeout),
        )
