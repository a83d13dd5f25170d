"""External tool adapters for trimctl.

This module exports the port base classes and their default adapters.
"""

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
from trimctl.tools.toolbox import Toolbox
from trimctl.tools.xfs import XfsTools

__all__ = [
    "Blkid",
    "Df",
    "DiskTool",
    "Dumpe2fs",
    "ExtTool",
    "FilesystemProbe",
    "Hdparm",
    "MountRegistry",
    "ProcMountRegistry",
    "SpaceQuery",
    "Toolbox",
    "XfsTool",
    "XfsTools",
]
