"""Batching of free extents into TRIM commands.

Each TRIM command carries a list of `lba:count` ranges. Two limits bound
a single command:

1. Some device drivers do not accept more than 255 sectors full of
   8-byte range entries (16320 ranges).
2. Command lines are limited to under 64 KB on many systems.

Extents are consumed in the order the provider emits them; nothing is
sorted or coalesced.
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum

from trimctl.models.extent import FreeExtent, TrimRange

logger = logging.getLogger(__name__)

MAX_ENCODED_LENGTH = 64000
MAX_RANGES = 255 * 512 // 8


class AppendOutcome(str, Enum):
    """Result of appending a range to a BatchBuilder."""

    ACCUMULATED = "accumulated"
    FLUSHED = "flushed"


@dataclass(slots=True)
class Batch:
    """Ranges pending a single TRIM invocation.

    Attributes:
        ranges: Ranges in append order.
        sectors: Total sectors covered.
        encoded_length: Length of the encoded range list.
    """

    ranges: list[TrimRange] = field(default_factory=list)
    sectors: int = 0
    encoded_length: int = 0

    @property
    def range_count(self) -> int:
        """Number of ranges in the batch."""
        return len(self.ranges)

    @property
    def is_empty(self) -> bool:
        """Check if the batch holds no ranges."""
        return not self.ranges

    @property
    def megabytes(self) -> int:
        """Covered size in MB, rounded to the nearest MB."""
        return (self.sectors + 1024) // 2048

    def fits(self, trim_range: TrimRange) -> bool:
        """Check if a range can be appended without exceeding the length limit."""
        return self.encoded_length + len(trim_range.encoded) <= MAX_ENCODED_LENGTH

    def append(self, trim_range: TrimRange) -> None:
        """Append a range and update the running totals."""
        self.ranges.append(trim_range)
        self.sectors += trim_range.count
        self.encoded_length += len(trim_range.encoded)

    def encode(self) -> str:
        """Return the range list in `lba:count lba:count ` form."""
        return "".join(r.encoded for r in self.ranges)


class BatchBuilder:
    """Accumulates ranges and hands out full batches.

    Example:
        >>> builder = BatchBuilder()
        >>> builder.append(TrimRange(lba=2048, count=8))
        <AppendOutcome.ACCUMULATED: 'accumulated'>
        >>> builder.take_flushed() is None
        True
    """

    def __init__(self) -> None:
        self._current = Batch()
        self._flushed: Batch | None = None

    @property
    def current(self) -> Batch:
        """The batch being filled."""
        return self._current

    def append(self, trim_range: TrimRange) -> AppendOutcome:
        """Append a range, flushing when a limit is hit.

        A range that would push the encoded length past the limit flushes
        the current batch first and starts the next one. A batch whose
        range count reaches the limit is flushed right after the append.

        Args:
            trim_range: Range to append.

        Returns:
            FLUSHED if a batch was completed (collect it with
            take_flushed()), ACCUMULATED otherwise.
        """
        outcome = AppendOutcome.ACCUMULATED
        if not self._current.is_empty and not self._current.fits(trim_range):
            self._flush()
            outcome = AppendOutcome.FLUSHED

        self._current.append(trim_range)

        if self._current.range_count >= MAX_RANGES:
            self._flush()
            outcome = AppendOutcome.FLUSHED
        return outcome

    def take_flushed(self) -> Batch | None:
        """Return the last completed batch, once."""
        flushed, self._flushed = self._flushed, None
        return flushed

    def finish(self) -> Batch | None:
        """Return the remaining batch if it holds any ranges."""
        if self._current.is_empty:
            return None
        last, self._current = self._current, Batch()
        return last

    def _flush(self) -> None:
        if self._flushed is not None:
            msg = "Previous flushed batch was not taken"
            raise RuntimeError(msg)
        self._flushed, self._current = self._current, Batch()


def iter_batches(extents: Iterable[FreeExtent]) -> Iterator[Batch]:
    """Turn an extent stream into TRIM batches.

    The stream is consumed lazily: nothing past the extent that completes
    a batch is read until that batch has been handled.

    Args:
        extents: Free extents in provider order.

    Yields:
        Batches within the range-count and encoded-length limits.
    """
    builder = BatchBuilder()
    for extent in extents:
        for trim_range in extent.split():
            if builder.append(trim_range) == AppendOutcome.FLUSHED:
                flushed = builder.take_flushed()
                if flushed is not None:
                    yield flushed
    last = builder.finish()
    if last is not None:
        yield last
