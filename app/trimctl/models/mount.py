"""Mount table models."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class MountInfo:
    """A single entry of the live mount table.

    Attributes:
        device: Device path as listed (e.g. '/dev/sda1' or '/dev/root').
        mount_path: Mount point directory.
        fstype: Filesystem type name as listed (e.g. 'ext4').
        options: Mount options in table order.
    """

    device: str
    mount_path: str
    fstype: str
    options: tuple[str, ...] = ()

    @property
    def read_write(self) -> bool | None:
        """Read-write state from the leading mount option.

        Returns:
            True for 'rw', False for 'ro', None if it cannot be determined.
        """
        if not self.options:
            return None
        mode = self.options[0][:2]
        if mode == "rw":
            return True
        if mode == "ro":
            return False
        return None

    @property
    def mode_label(self) -> str:
        """Human-readable read/write state."""
        if self.read_write is True:
            return "read-write"
        if self.read_write is False:
            return "read-only"
        return "unknown"
