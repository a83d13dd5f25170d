"""Data models for trimctl.

This module exports the core data structures used across the pipeline.
"""

from trimctl.models.device import Device, FilesystemDescriptor, FilesystemType
from trimctl.models.extent import MAX_RANGE_SECTORS, FreeExtent, TrimRange
from trimctl.models.mode import OperatingMode
from trimctl.models.mount import MountInfo
from trimctl.models.target import Target, TargetKind, classify_target

__all__ = [
    "MAX_RANGE_SECTORS",
    "Device",
    "FilesystemDescriptor",
    "FilesystemType",
    "FreeExtent",
    "MountInfo",
    "OperatingMode",
    "Target",
    "TargetKind",
    "TrimRange",
    "classify_target",
]
