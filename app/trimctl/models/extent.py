"""Free extent and TRIM range models.

All sector numbers are absolute on the raw device, in 512-byte units.
"""

from collections.abc import Iterator
from dataclasses import dataclass

# Largest sector count a single TRIM range entry can represent.
MAX_RANGE_SECTORS = 65535


@dataclass(frozen=True, slots=True)
class FreeExtent:
    """A contiguous run of free sectors.

    Attributes:
        lba: First sector of the run.
        count: Number of sectors in the run.
    """

    lba: int
    count: int

    def __post_init__(self) -> None:
        """Validate extent data after initialization."""
        if self.lba < 0:
            msg = f"Extent lba cannot be negative, got {self.lba}"
            raise ValueError(msg)
        if self.count <= 0:
            msg = f"Extent count must be positive, got {self.count}"
            raise ValueError(msg)

    def split(self, limit: int = MAX_RANGE_SECTORS) -> Iterator["TrimRange"]:
        """Split the extent into consecutive ranges of at most `limit` sectors.

        Yields:
            TrimRange instances covering exactly this extent.
        """
        lba = self.lba
        remaining = self.count
        while remaining > 0:
            this_count = min(remaining, limit)
            yield TrimRange(lba=lba, count=this_count)
            lba += this_count
            remaining -= this_count


@dataclass(frozen=True, slots=True)
class TrimRange:
    """One lba:count entry of a TRIM command.

    Attributes:
        lba: First sector of the range.
        count: Number of sectors, 1..MAX_RANGE_SECTORS.
    """

    lba: int
    count: int

    def __post_init__(self) -> None:
        """Validate range data after initialization."""
        if self.lba < 0:
            msg = f"Range lba cannot be negative, got {self.lba}"
            raise ValueError(msg)
        if not 0 < self.count <= MAX_RANGE_SECTORS:
            msg = f"Range count must be within 1..{MAX_RANGE_SECTORS}, got {self.count}"
            raise ValueError(msg)

    @property
    def encoded(self) -> str:
        """Command-line form of the range, including the separating blank."""
        return f"{self.lba}:{self.count} "
