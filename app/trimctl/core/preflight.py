"""Environment checks that run before anything is inspected or changed."""

import logging
import os
from collections.abc import Callable

from trimctl.core.config import TrimConfig
from trimctl.core.errors import EnvironmentCheckError
from trimctl.tools.base import DiskTool
from trimctl.utils.shell import command_exists

logger = logging.getLogger(__name__)


def parse_version(version: str) -> tuple[int, ...]:
    """Parse a dotted version string into a comparable tuple.

    Non-numeric parts compare as 0.
    """
    return tuple(int(part) if part.isdigit() else 0 for part in version.split("."))


def check_environment(
    config: TrimConfig,
    disk: DiskTool,
    *,
    geteuid: Callable[[], int] = os.geteuid,
) -> None:
    """Verify tooling and privileges.

    Filesystem-specific tools are checked later, by the provider that
    needs them.

    Args:
        config: Run configuration naming the tools.
        disk: Device tool whose version is checked.
        geteuid: Effective user id lookup.

    Raises:
        EnvironmentCheckError: If a tool is missing or too old, or the
            caller is not the super-user.
    """
    tools = config.tools
    for name in (tools.hdparm, tools.blkid, tools.df):
        if not command_exists(name):
            raise EnvironmentCheckError(f"{name}: needed but not found")

    if geteuid() != 0:
        raise EnvironmentCheckError('only the super-user can use this (try "sudo trimctl" instead)')

    version = disk.version()
    logger.debug("%s version %s", tools.hdparm, version)
    if version is None or parse_version(version) < parse_version(config.min_hdparm_version):
        raise EnvironmentCheckError(
            f"{tools.hdparm}: version >= {config.min_hdparm_version} is required"
        )
