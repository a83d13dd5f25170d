"""TRIM run orchestration.

A run has two phases. plan() inspects the system and validates
everything that can be validated without side effects; execute() then
discovers free extents and issues the TRIM commands.
"""

import logging
from dataclasses import dataclass

from trimctl.core.batch import iter_batches
from trimctl.core.cleanup import abort_on_signals, sync_disks
from trimctl.core.config import TrimConfig
from trimctl.core.device import DeviceResolver
from trimctl.core.errors import FilesystemTypeUnknownError
from trimctl.core.mode import ModeSelection, ModeSelector
from trimctl.core.trim import TrimIssuer, TrimSummary
from trimctl.models.device import Device, FilesystemDescriptor
from trimctl.models.mode import OperatingMode
from trimctl.models.target import Target, classify_target
from trimctl.providers.base import FreeSpaceProvider
from trimctl.providers.factory import get_provider
from trimctl.tools.toolbox import Toolbox
from trimctl.utils.formatting import console

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TrimPlan:
    """Everything decided before the first side effect.

    Attributes:
        target: Classified target.
        selection: Mode selection outcome.
        device: Resolved raw device.
        filesystem: Detected filesystem.
        provider: Prepared free-space provider.
        commit: Whether TRIM commands will really be issued.
    """

    target: Target
    selection: ModeSelection
    device: Device
    filesystem: FilesystemDescriptor
    provider: FreeSpaceProvider
    commit: bool

    @property
    def mode(self) -> OperatingMode:
        """Final operating mode."""
        return self.selection.mode

    @property
    def mount_status(self) -> str:
        """Human-readable mount state, e.g. 'ext4 mounted read-write at /'."""
        mount = self.selection.mount
        if mount is None:
            return f"{self.filesystem.name} non-mounted"
        return f"{self.filesystem.name} mounted {mount.mode_label} at {mount.mount_path}"

    @property
    def headline(self) -> str:
        """One-line announcement of the run."""
        return (
            f"Preparing for {self.mode.value} TRIM of free space on "
            f"{self.device.fs_device} ({self.mount_status})."
        )


class TrimRunner:
    """Plans and executes a TRIM run.

    Attributes:
        commit: If False (the default), everything runs except the
            destructive TRIM commands.
        verbose: If True, print each TRIM command line.
    """

    def __init__(
        self,
        toolbox: Toolbox,
        config: TrimConfig | None = None,
        *,
        commit: bool = False,
        verbose: bool = False,
    ) -> None:
        self._toolbox = toolbox
        self._config = config or TrimConfig()
        self.commit = commit
        self.verbose = verbose

    def plan(self, raw_target: str) -> TrimPlan:
        """Inspect the target and prepare the free-space provider.

        Args:
            raw_target: Target path as given by the user.

        Returns:
            The validated TrimPlan.

        Raises:
            TrimError: If any check fails. Nothing has been changed.
        """
        target = classify_target(raw_target)
        selection = ModeSelector(self._toolbox.mounts, self._toolbox.space).select(target)
        logger.debug("Selected %s mode for %s", selection.mode.value, target.path)

        device = DeviceResolver(self._toolbox.disk, commit=self.commit).resolve(selection.fs_device)
        filesystem = self.detect_filesystem(selection)

        provider = get_provider(
            selection.mode,
            device,
            filesystem,
            self._toolbox,
            workdir=selection.workdir,
            config=self._config,
        )
        provider.prepare()

        return TrimPlan(
            target=target,
            selection=selection,
            device=device,
            filesystem=filesystem,
            provider=provider,
            commit=self.commit,
        )

    def detect_filesystem(self, selection: ModeSelection) -> FilesystemDescriptor:
        """Determine the filesystem type.

        A mounted filesystem's type is taken from the mount table; an
        unmounted one is identified by its signature.

        Raises:
            FilesystemTypeUnknownError: If no type can be determined.
        """
        if selection.mount is not None:
            name = selection.mount.fstype
        else:
            name = self._toolbox.probe.filesystem_type(selection.fs_device) or ""
        if not name:
            raise FilesystemTypeUnknownError(
                f"{selection.fs_device}: unable to determine filesystem type"
            )
        logger.debug("%s: fstype=%s", selection.fs_device, name)
        return FilesystemDescriptor.from_name(name)

    def execute(self, plan: TrimPlan) -> TrimSummary:
        """Discover free extents and issue TRIM commands.

        Termination signals unwind through the provider session, so the
        online temporary file is removed and disks are synced on every
        exit path.

        Args:
            plan: Plan returned by plan().

        Returns:
            TrimSummary of the issued (or simulated) commands.

        Raises:
            TrimError: On allocation or TRIM failure.
            RunInterrupted: On a termination signal.
        """
        issuer = TrimIssuer(
            self._toolbox.disk,
            plan.device.raw_device,
            dry_run=not plan.commit,
            verbose=self.verbose,
        )
        with abort_on_signals(), plan.provider.session():
            sync_disks(self._toolbox.sync)
            console.print("Beginning TRIM operations..")
            summary = issuer.issue(iter_batches(plan.provider.extents()))
        logger.debug(
            "Issued %d batches, %d ranges, %d sectors",
            summary.batches,
            summary.ranges,
            summary.sectors,
        )
        return summary
