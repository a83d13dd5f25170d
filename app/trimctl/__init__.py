"""trimctl - free-space TRIM for SSDs on mounted and unmounted filesystems."""

__version__ = "0.1.0"
