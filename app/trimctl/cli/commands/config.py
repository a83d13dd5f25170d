"""Config command implementation.

Shows and initializes the trimctl configuration file.
"""

from pathlib import Path
from typing import Annotated

import tomli_w
import typer

from trimctl.core.config import ConfigError, TrimConfig, load_config, save_config
from trimctl.core.paths import get_config_path
from trimctl.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Show or initialize the configuration.",
    invoke_without_command=True,
    no_args_is_help=True,
)


@app.command()
def show(
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Configuration file to read.",
        ),
    ] = None,
) -> None:
    """Print the effective configuration as TOML."""
    try:
        config = load_config(config_path)
    except ConfigError as e:
        print_error(f"Failed to load config: {e}")
        raise typer.Exit(code=1) from e

    path = config_path or get_config_path()
    if not path.exists():
        print_info(f"# {path} not found, showing defaults")
    console.print(tomli_w.dumps(config.model_dump()), markup=False, end="")


@app.command()
def init(
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Configuration file to write.",
        ),
    ] = None,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite an existing configuration file.",
        ),
    ] = False,
) -> None:
    """Write a configuration file with the default settings."""
    path = config_path or get_config_path()
    if path.exists() and not force:
        print_error(f"Config already exists: {path} (use --force to overwrite)")
        raise typer.Exit(code=1)

    try:
        written = save_config(TrimConfig(), path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Wrote default configuration to {written}")
