"""Trim command implementation.

TRIMs the free space of a filesystem given by mount point or block device.
"""

from pathlib import Path
from typing import Annotated

import typer

from trimctl.cli.display import create_plan_table, format_summary
from trimctl.core.config import ConfigError, load_config
from trimctl.core.errors import TrimError
from trimctl.core.preflight import check_environment
from trimctl.core.runner import TrimRunner
from trimctl.tools.toolbox import Toolbox
from trimctl.utils.formatting import (
    console,
    err_console,
    print_error,
    print_info,
    print_success,
)


def _confirm_commit() -> bool:
    """Prompt user to confirm destructive TRIM.

    Returns:
        True if user confirms, False otherwise.
    """
    return typer.confirm(
        "This operation could destroy your data.  Are you sure?",
        default=False,
    )


def _abort(error: TrimError) -> typer.Exit:
    """Print a fatal error and build the matching exit."""
    print_error(str(error))
    return typer.Exit(code=error.exit_code)


def trim_free_space(
    ctx: typer.Context,
    target: Annotated[
        str,
        typer.Argument(
            help="Mount point directory or block device (e.g. / or /dev/sda1).",
            show_default=False,
        ),
    ],
    commit: Annotated[
        bool,
        typer.Option(
            "--commit",
            help="Really issue TRIM commands. Without it, only a dry-run is done.",
        ),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Skip confirmation prompt when committing.",
        ),
    ] = False,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Configuration file (default: ~/.config/trimctl/config.toml).",
        ),
    ] = None,
) -> None:
    """TRIM the free space of a filesystem.

    A mounted read-write filesystem is trimmed online: a temporary file
    claims the free space and its extents are trimmed. An unmounted or
    read-only ext2/ext3/ext4 or xfs filesystem is trimmed offline from
    its metadata.

    Examples:
        trimctl trim /                       # Dry-run of the root filesystem
        trimctl trim /dev/sda1               # Dry-run of a device
        trimctl trim --commit /dev/sda1      # Really TRIM, after confirmation
        trimctl -v trim --commit --yes /home # Verbose, no prompt
    """
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))

    try:
        config = load_config(config_path)
    except ConfigError as e:
        print_error(f"Failed to load config: {e}")
        raise typer.Exit(code=1) from e

    toolbox = Toolbox.from_config(config)
    runner = TrimRunner(toolbox, config, commit=commit, verbose=verbose)

    try:
        check_environment(config, toolbox.disk)
        plan = runner.plan(target)
    except TrimError as e:
        raise _abort(e) from e

    if verbose:
        console.print(create_plan_table(plan))
    console.print(plan.headline, markup=False)

    if commit:
        if not yes and not _confirm_commit():
            err_console.print("Aborting.")
            raise typer.Exit(code=1)
    else:
        print_info("This will be a DRY-RUN only.  Use --commit to do it for real.")

    try:
        summary = runner.execute(plan)
    except TrimError as e:
        exit_ = _abort(e)
        err_console.print("Aborted.")
        raise exit_ from e
    except KeyboardInterrupt as e:
        console.print()
        err_console.print("Aborted.")
        raise typer.Exit(code=1) from e

    if verbose:
        print_info(format_summary(summary))
    if summary.dry_run:
        print_success("Done. This was a dry-run: nothing was committed.")
    else:
        print_success("Done.")
