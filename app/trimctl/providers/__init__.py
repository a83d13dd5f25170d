"""Free-space providers for the supported filesystem families.

This module exports the provider classes and the provider factory.
"""

from trimctl.providers.base import FreeSpaceProvider
from trimctl.providers.ext import ExtFreeSpaceProvider
from trimctl.providers.factory import get_provider
from trimctl.providers.online import AllocationPlan, OnlineFreeSpaceProvider, plan_allocation
from trimctl.providers.xfs import XfsFreeSpaceProvider

__all__ = [
    "AllocationPlan",
    "ExtFreeSpaceProvider",
    "FreeSpaceProvider",
    "OnlineFreeSpaceProvider",
    "XfsFreeSpaceProvider",
    "get_provider",
    "plan_allocation",
]
