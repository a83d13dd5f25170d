"""Error hierarchy for trimctl.

Every fatal condition of a TRIM run is a subclass of TrimError carrying
an ErrorKind and the process exit status to terminate with. None of them
are retried.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Classification of fatal run errors."""

    ENVIRONMENT = "environment"
    TARGET_INVALID = "target_invalid"
    MODE_RESOLUTION_FAILED = "mode_resolution_failed"
    DEVICE_RESOLUTION_FAILED = "device_resolution_failed"
    CAPABILITY_UNSUPPORTED = "capability_unsupported"
    FILESYSTEM_TYPE_UNKNOWN = "filesystem_type_unknown"
    NOT_CLEAN = "not_clean"
    UNSUPPORTED_FILESYSTEM = "unsupported_filesystem"
    INSUFFICIENT_SPACE = "insufficient_space"
    METADATA_UNAVAILABLE = "metadata_unavailable"
    INCONSISTENT_METADATA = "inconsistent_metadata"
    ALLOCATION_FAILED = "allocation_failed"
    TRIM_COMMAND_FAILED = "trim_command_failed"


class TrimError(Exception):
    """Base exception for all fatal trimctl errors.

    Attributes:
        kind: Classification of the error.
        exit_code: Process exit status the run should terminate with.
    """

    kind: ErrorKind = ErrorKind.ENVIRONMENT

    def __init__(self, message: str, *, exit_code: int = 1) -> None:
        super().__init__(message)
        self.exit_code = exit_code if exit_code != 0 else 1


class EnvironmentCheckError(TrimError):
    """Raised when required tooling or privileges are missing."""

    kind = ErrorKind.ENVIRONMENT


class TargetInvalidError(TrimError):
    """Raised when the target path is unusable."""

    kind = ErrorKind.TARGET_INVALID


class ModeResolutionError(TrimError):
    """Raised when the online/offline mode cannot be determined."""

    kind = ErrorKind.MODE_RESOLUTION_FAILED


class DeviceResolutionError(TrimError):
    """Raised when the raw device or its geometry cannot be determined."""

    kind = ErrorKind.DEVICE_RESOLUTION_FAILED


class CapabilityUnsupportedError(TrimError):
    """Raised when the raw device does not advertise TRIM support."""

    kind = ErrorKind.CAPABILITY_UNSUPPORTED


class FilesystemTypeUnknownError(TrimError):
    """Raised when the filesystem type cannot be detected."""

    kind = ErrorKind.FILESYSTEM_TYPE_UNKNOWN


class NotCleanError(TrimError):
    """Raised when an offline filesystem fails its clean-state check."""

    kind = ErrorKind.NOT_CLEAN


class UnsupportedFilesystemError(TrimError):
    """Raised when no free-space strategy exists for a mode and type."""

    kind = ErrorKind.UNSUPPORTED_FILESYSTEM


class InsufficientSpaceError(TrimError):
    """Raised when a mounted filesystem is too full for online TRIM."""

    kind = ErrorKind.INSUFFICIENT_SPACE


class MetadataUnavailableError(TrimError):
    """Raised when filesystem metadata cannot be queried."""

    kind = ErrorKind.METADATA_UNAVAILABLE


class InconsistentMetadataError(TrimError):
    """Raised when filesystem metadata contradicts itself."""

    kind = ErrorKind.INCONSISTENT_METADATA


class AllocationFailedError(TrimError):
    """Raised when the temporary file cannot be allocated."""

    kind = ErrorKind.ALLOCATION_FAILED


class TrimCommandFailedError(TrimError):
    """Raised when a TRIM invocation fails; carries the command's exit code."""

    kind = ErrorKind.TRIM_COMMAND_FAILED
