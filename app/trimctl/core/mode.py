"""Online/offline mode selection.

The mode is decided by a small state machine:

    UNCLASSIFIED -> ONLINE_CANDIDATE | OFFLINE_CANDIDATE -> ONLINE | OFFLINE

A directory target starts as an online candidate and falls back to offline
when its filesystem is mounted read-only. A block device target starts as
an offline candidate and switches to online when it is mounted read-write,
since a read-write filesystem must be instrumented through the filesystem
itself rather than the raw device.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from trimctl.core.errors import ModeResolutionError
from trimctl.models.mode import OperatingMode
from trimctl.models.mount import MountInfo
from trimctl.models.target import Target, TargetKind
from trimctl.tools.base import MountRegistry, SpaceQuery
from trimctl.utils.blockdev import is_block_device, path_exists

logger = logging.getLogger(__name__)

# Placeholder some mount tables use for the root filesystem device.
ROOT_PLACEHOLDER = "/dev/root"


class ModeState(str, Enum):
    """States of the mode selection machine."""

    UNCLASSIFIED = "unclassified"
    ONLINE_CANDIDATE = "online_candidate"
    OFFLINE_CANDIDATE = "offline_candidate"
    ONLINE = "online"
    OFFLINE = "offline"

    @property
    def is_terminal(self) -> bool:
        """Check if the state is a final operating mode."""
        return self in (ModeState.ONLINE, ModeState.OFFLINE)

    def to_mode(self) -> OperatingMode:
        """Convert a terminal state to its operating mode.

        Raises:
            ValueError: If the state is not terminal.
        """
        if self == ModeState.ONLINE:
            return OperatingMode.ONLINE
        if self == ModeState.OFFLINE:
            return OperatingMode.OFFLINE
        msg = f"{self.value} is not a terminal mode state"
        raise ValueError(msg)


def transition(state: ModeState, kind: TargetKind, mount: MountInfo | None) -> ModeState:
    """Advance the mode selection machine by one step.

    Args:
        state: Current state.
        kind: Kind of the target.
        mount: Mount table entry for the target, None if not mounted.

    Returns:
        The next state. Terminal states map to themselves.

    Raises:
        ModeResolutionError: If a directory is not a mount point, or the
            read/write state of a mount cannot be determined.
    """
    if state == ModeState.UNCLASSIFIED:
        if kind == TargetKind.DIRECTORY:
            return ModeState.ONLINE_CANDIDATE
        return ModeState.OFFLINE_CANDIDATE

    if state == ModeState.ONLINE_CANDIDATE:
        if mount is None:
            raise ModeResolutionError("not found in the mount table")
        if mount.read_write is None:
            raise ModeResolutionError(f"unable to determine mount status of {mount.mount_path}")
        return ModeState.ONLINE if mount.read_write else ModeState.OFFLINE

    if state == ModeState.OFFLINE_CANDIDATE:
        if mount is None:
            return ModeState.OFFLINE
        if mount.read_write is None:
            raise ModeResolutionError(f"unable to determine mount status of {mount.mount_path}")
        return ModeState.ONLINE if mount.read_write else ModeState.OFFLINE

    return state


def select_mode(kind: TargetKind, mount: MountInfo | None) -> OperatingMode:
    """Run the state machine to completion.

    Args:
        kind: Kind of the target.
        mount: Mount table entry for the target, None if not mounted.

    Returns:
        The final operating mode.
    """
    state = ModeState.UNCLASSIFIED
    while not state.is_terminal:
        state = transition(state, kind, mount)
    return state.to_mode()


@dataclass(frozen=True, slots=True)
class ModeSelection:
    """Outcome of mode selection.

    Attributes:
        mode: Final operating mode.
        fs_device: Block device holding the filesystem.
        mount: Mount entry of the filesystem, None if not mounted.
        workdir: Directory online instrumentation runs in (online only).
    """

    mode: OperatingMode
    fs_device: str
    mount: MountInfo | None
    workdir: Path | None


class ModeSelector:
    """Resolves a target against the live mount table."""

    def __init__(self, mounts: MountRegistry, space: SpaceQuery) -> None:
        self._mounts = mounts
        self._space = space
        self._root_device: str | None = None
        self._root_device_known = False

    def select(self, target: Target) -> ModeSelection:
        """Select the operating mode for a target.

        Args:
            target: Classified target.

        Returns:
            ModeSelection with the final mode, device and mount state.

        Raises:
            ModeResolutionError: If the mount state cannot be resolved.
        """
        if target.is_directory:
            return self._select_for_directory(target)
        return self._select_for_device(target)

    def _root(self) -> str | None:
        if not self._root_device_known:
            self._root_device = self._space.root_device()
            self._root_device_known = True
        return self._root_device

    def _select_for_directory(self, target: Target) -> ModeSelection:
        mount = self._mounts.find_by_mount_path(target.path)
        if mount is None:
            raise ModeResolutionError(f"{target.path}: not found in the mount table")
        try:
            mode = select_mode(target.kind, mount)
        except ModeResolutionError as e:
            raise ModeResolutionError(f"{target.path}: {e}") from e
        fs_device = mount.device
        if fs_device == ROOT_PLACEHOLDER and not path_exists(fs_device):
            root = self._root()
            logger.debug("Substituting %s with root device %s", ROOT_PLACEHOLDER, root)
            if root:
                fs_device = root
        self._check_block_device(fs_device)

        workdir = Path(target.path) if mode == OperatingMode.ONLINE else None
        return ModeSelection(mode=mode, fs_device=fs_device, mount=mount, workdir=workdir)

    def _select_for_device(self, target: Target) -> ModeSelection:
        fs_device = target.path
        mount = self._mounts.find_by_device(fs_device)
        if mount is None and fs_device == self._root():
            mount = self._mounts.find_by_device(ROOT_PLACEHOLDER)

        if mount is not None:
            # Stacked mounts: the read/write state is that of the topmost entry.
            mount = self._mounts.find_by_mount_path(mount.mount_path) or mount

        try:
            mode = select_mode(target.kind, mount)
        except ModeResolutionError as e:
            raise ModeResolutionError(f"{target.path}: {e}") from e
        workdir = None
        if mode == OperatingMode.ONLINE and mount is not None:
            workdir = Path(mount.mount_path)
        return ModeSelection(mode=mode, fs_device=fs_device, mount=mount, workdir=workdir)

    def _check_block_device(self, fs_device: str) -> None:
        if not path_exists(fs_device):
            raise ModeResolutionError(f"{fs_device}: not found")
        if not is_block_device(fs_device):
            raise ModeResolutionError(f"{fs_device}: not a block device")
