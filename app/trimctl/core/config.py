"""trimctl configuration and settings.

Configuration is stored in ~/.config/trimctl/config.toml. Every setting
has a default, so the file is optional.
"""

import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from trimctl.core.paths import get_config_path


class ToolPaths(BaseModel):
    """Executables used to query and TRIM devices.

    Bare names are looked up on PATH; absolute paths are used as given.
    """

    model_config = ConfigDict(extra="forbid")

    hdparm: str = "hdparm"
    dumpe2fs: str = "dumpe2fs"
    xfs_db: str = "xfs_db"
    xfs_repair: str = "xfs_repair"
    blkid: str = "blkid"
    df: str = "df"


class TrimConfig(BaseModel):
    """Configuration for a TRIM run.

    Attributes:
        tools: Executables for the external collaborators.
        mounts_path: Live mount table to read.
        min_free_kb: Minimum free space for online TRIM.
        reserve_min_kb: Minimum space left unallocated during online TRIM.
        reserve_percent: Share of free space left unallocated during online TRIM.
        tmpfile_prefix: Name prefix of the online-mode temporary file.
        min_hdparm_version: Oldest hdparm with --fallocate/--trim-sector-ranges fixes.
        query_timeout_seconds: Timeout for read-only tool queries.
    """

    model_config = ConfigDict(extra="forbid")

    tools: ToolPaths = Field(default_factory=ToolPaths)
    mounts_path: str = "/proc/mounts"
    min_free_kb: Annotated[int, Field(ge=0, description="Minimum free KB for online TRIM")] = 15000
    reserve_min_kb: Annotated[int, Field(ge=0, description="Minimum reserved KB")] = 7500
    reserve_percent: Annotated[int, Field(ge=0, le=100, description="Reserved percent")] = 1
    tmpfile_prefix: str = "TRIMCTL_TMPFILE"
    min_hdparm_version: str = "9.22"
    query_timeout_seconds: Annotated[
        int,
        Field(ge=1, le=3600, description="Timeout in seconds for read-only queries"),
    ] = 120

    @field_validator("tmpfile_prefix")
    @classmethod
    def validate_tmpfile_prefix(cls, v: str) -> str:
        """Reject prefixes that would escape the working directory."""
        if not v or "/" in v or v in (".", ".."):
            msg = f"tmpfile_prefix must be a plain file name, got {v!r}"
            raise ValueError(msg)
        return v

    @field_validator("min_hdparm_version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Require a dotted numeric version."""
        parts = v.split(".")
        if not all(part.isdigit() for part in parts):
            msg = f"min_hdparm_version must look like '9.22', got {v!r}"
            raise ValueError(msg)
        return v


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when an explicitly requested config file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


def load_config(path: Path | None = None) -> TrimConfig:
    """Load configuration from a TOML file.

    A missing file at the default location yields the defaults; a missing
    file that was asked for explicitly is an error.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated TrimConfig object.

    Raises:
        ConfigNotFoundError: If an explicit config file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        if path is None:
            return TrimConfig()
        raise ConfigNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return TrimConfig.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise ConfigError(f"Invalid config content: {e}") from e


def save_config(config: TrimConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The TrimConfig object to save.
        path: Path to save the config. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()

    tmp_path: Path | None = None
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(config.model_dump(), f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path
