"""TRIM issuing.

Flushes batches to the device in order and stops at the first failing
command. In dry-run mode the same batches are reported but nothing is
sent to the device.
"""

import logging
import shlex
from collections.abc import Iterable
from dataclasses import dataclass

from trimctl.core.batch import Batch
from trimctl.core.errors import TrimCommandFailedError
from trimctl.tools.base import DiskTool
from trimctl.utils.formatting import console

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TrimSummary:
    """Totals of a TRIM phase.

    Attributes:
        batches: Number of TRIM commands issued (or simulated).
        ranges: Number of ranges across all batches.
        sectors: Number of sectors across all batches.
        dry_run: Whether the commands were only simulated.
    """

    batches: int
    ranges: int
    sectors: int
    dry_run: bool

    @property
    def megabytes(self) -> int:
        """Covered size in MB, rounded to the nearest MB."""
        return (self.sectors + 1024) // 2048


class TrimIssuer:
    """Issues one TRIM command per batch.

    Attributes:
        raw_device: Device the commands address.
        dry_run: If True, only report what would be trimmed.
        verbose: If True, also print each command line.
    """

    def __init__(
        self,
        disk: DiskTool,
        raw_device: str,
        dry_run: bool = True,
        verbose: bool = False,
    ) -> None:
        self._disk = disk
        self.raw_device = raw_device
        self.dry_run = dry_run
        self.verbose = verbose

    def issue(self, batches: Iterable[Batch]) -> TrimSummary:
        """Issue all batches in order.

        Args:
            batches: Batches in flush order. Consumed lazily, so an abort
                stops extent discovery as well.

        Returns:
            TrimSummary of everything issued.

        Raises:
            TrimCommandFailedError: On the first failing command, carrying
                its exit code. No further batches are consumed.
        """
        count = ranges = sectors = 0
        for batch in batches:
            self.issue_one(batch)
            count += 1
            ranges += batch.range_count
            sectors += batch.sectors
        return TrimSummary(batches=count, ranges=ranges, sectors=sectors, dry_run=self.dry_run)

    def issue_one(self, batch: Batch) -> None:
        """Issue (or simulate) a single batch."""
        prefix = "(DRY-RUN) " if self.dry_run else ""
        console.print(
            f"{prefix}Trimming {batch.range_count} free extents encompassing "
            f"{batch.sectors} sectors ({batch.megabytes} MB)",
            markup=False,
        )
        encoded = batch.encode()
        if self.verbose:
            command = shlex.join(self._disk.trim_command(self.raw_device, encoded))
            console.print(f"{prefix}{command}", markup=False)

        if self.dry_run:
            logger.debug(
                "Dry-run: skipped TRIM of %d ranges on %s",
                batch.range_count,
                self.raw_device,
            )
            return

        result = self._disk.trim(self.raw_device, encoded)
        if not result.success:
            raise TrimCommandFailedError(
                f"TRIM command failed, err={result.returncode}",
                exit_code=result.returncode,
            )
