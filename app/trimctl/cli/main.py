"""Main CLI application entry point.

Defines the Typer application and global options.
"""

from typing import Annotated

import typer

from trimctl import __version__
from trimctl.cli.commands import config, trim
from trimctl.utils.formatting import configure_logging

# Create main Typer app
app = typer.Typer(
    name="trimctl",
    help="Free-space TRIM for SSDs, online or offline.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"trimctl version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
) -> None:
    """trimctl - free-space TRIM for SSDs.

    Tells the drive which sectors of a filesystem are unused, either
    through the mounted filesystem or from the metadata of an unmounted one.
    """
    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


# Register commands
app.command(name="trim")(trim.trim_free_space)
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
