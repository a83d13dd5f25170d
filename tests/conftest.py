"""Pytest configuration and shared fixtures.

This module contains tool output samples and a factory for toolboxes
made of in-memory fakes (see fakes.py).
"""

import pytest
from fakes import (
    FakeDisk,
    FakeExt,
    FakeMountRegistry,
    FakeProbe,
    FakeSpace,
    FakeXfs,
    SyncCounter,
)
from trimctl.tools.toolbox import Toolbox

# =============================================================================
# Tool output samples
# =============================================================================


@pytest.fixture
def mock_proc_mounts() -> str:
    """Sample /proc/mounts content."""
    return """/dev/root / ext4 rw,relatime 0 0
proc /proc proc rw,nosuid,nodev,noexec,relatime 0 0
/dev/sda2 /home xfs rw,relatime,attr2,inode64 0 0
/dev/sdb1 /mnt/backup ext3 ro,relatime 0 0
/dev/sdc1 /mnt/a ext4 ro,relatime 0 0
/dev/sdc1 /mnt/b ext4 rw,relatime 0 0
/dev/sdc1 /mnt/c ext4 rw,relatime 0 0
/dev/sdd1 /mnt/my\\040disk vfat rw,relatime 0 0"""


@pytest.fixture
def mock_dumpe2fs_output() -> str:
    """Sample dumpe2fs output (header and two groups)."""
    return """Filesystem volume name:   <none>
Filesystem state:         clean
Free blocks:              1234
Block size:               4096
Fragment size:            4096

Group 0: (Blocks 0-32767) csum 0x1234 [ITABLE_ZEROED]
  Primary superblock at 0, Group descriptors at 1-1
  1000 free blocks, 100 free inodes, 2 directories
  Free blocks: 100-104, 200-200
  Free inodes: 12-8192
Group 1: (Blocks 32768-65535) csum 0x5678 [INODE_UNINIT, ITABLE_ZEROED]
  Free blocks:
  Free inodes: 8193-16384
Group 2: (Blocks 65536-98303) [INODE_UNINIT]
  Free blocks: 65536-65541, 70000
  Free inodes: 16385-24576"""


@pytest.fixture
def mock_freesp_output() -> str:
    """Sample xfs_db 'freesp -d' output."""
    return """   0      120       10
   0     4000        2
   1       16      100
   3        8        8
   from      to extents  blocks    pct
      1       1       1       1   0.00
      2       3       1       2   0.01
total free extents 3
total free blocks 112
average free extent size 37.3333"""


@pytest.fixture
def mock_fibmap_output() -> str:
    """Sample hdparm --fibmap output."""
    return """
TRIMCTL_TMPFILE.4242:
 filesystem blocksize 4096, begins at LBA 2048; assuming 512 byte sectors.
 byte_offset  begin_LBA    end_LBA    sectors
           0     526336     657407     131072
    67108864    1050624    1054719       4096"""


@pytest.fixture
def mock_hdparm_identify_trim() -> str:
    """Excerpt of hdparm -I output for a TRIM-capable SSD."""
    return """
/dev/sda:

ATA device, with non-removable media
	Model Number:       Samsung SSD 860 EVO 500GB
Commands/features:
	Enabled	Supported:
	   *	SMART feature set
	   *	Data Set Management TRIM supported (limit 8 blocks)
	   *	Deterministic read ZEROs after TRIM
"""


# =============================================================================
# Fake toolbox
# =============================================================================


@pytest.fixture
def sync_counter() -> SyncCounter:
    """Fresh sync counter."""
    return SyncCounter()


@pytest.fixture
def make_toolbox(sync_counter: SyncCounter):
    """Factory building a Toolbox of fakes; any port can be overridden."""

    def _make(**overrides: object) -> Toolbox:
        ports: dict[str, object] = {
            "mounts": FakeMountRegistry(),
            "disk": FakeDisk(),
            "ext": FakeExt(),
            "xfs": FakeXfs(),
            "probe": FakeProbe(),
            "space": FakeSpace(),
            "sync": sync_counter,
        }
        ports.update(overrides)
        return Toolbox(**ports)  # type: ignore[arg-type]

    return _make
