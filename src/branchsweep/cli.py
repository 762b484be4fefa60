"""Command line interface for branchsweep."""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from branchsweep.config import DEFAULT_PROTECTED, DEFAULT_REMOTE, Settings, parse_protected
from branchsweep.git import GitCommandRunner, GitError
from branchsweep.log import get_logger, setup_logging
from branchsweep.sweeper import BranchSweeper

app = typer.Typer(help="Clean up git branches that are merged into protected branches")
logger = get_logger(__name__)

PathOption = Annotated[Path, typer.Option(help="Path to git repository")]
ProtectOption = Annotated[
    str,
    typer.Option(
        "--protect",
        "-p",
        envvar="BRANCHSWEEP_PROTECTED",
        help="Comma-separated list of branches that are never deleted",
    ),
]
RemoteOption = Annotated[str, typer.Option(envvar="BRANCHSWEEP_REMOTE", help="Remote to inspect and clean")]
YesTokenOption = Annotated[
    str,
    typer.Option(envvar="BRANCHSWEEP_YES_TOKEN", help="Answers starting with this token confirm a prompt"),
]
NoColorOption = Annotated[bool, typer.Option("--no-color", help="Disable colored output")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Log progress details")]
DebugOption = Annotated[bool, typer.Option("--debug", help="Log every git command")]


def get_settings(protect: str, remote: str, yes_token: str, no_color: bool) -> Settings:
    """Build settings from command line options."""
    try:
        return Settings(
            protected_branches=parse_protected(protect),
            remote=remote,
            yes_token=yes_token,
            color=not no_color,
        )
    except ValueError as err:
        raise typer.BadParameter(str(err)) from err


def get_sweeper(path: Path, settings: Settings, console: Console) -> BranchSweeper:
    """Get a sweeper for the repository at ``path``."""
    try:
        runner = GitCommandRunner(path)
    except GitError as err:
        console.print(f"Error: {escape(str(err))}", style="error")
        raise typer.Exit(code=1) from err
    return BranchSweeper(settings, runner, console)


def sweep(path: Path, settings: Settings, delete: bool) -> None:
    console = settings.make_console()
    sweeper = get_sweeper(path, settings, console)
    try:
        sweeper.run(delete=delete)
    except Exception as err:
        logger.debug("Run aborted", exc_info=True)
        console.print(f"Fatal error: {escape(str(err))}", style="error")
        raise typer.Exit(code=1) from err


@app.command("list")
def list_branches(
    path: PathOption = Path("."),
    protect: ProtectOption = DEFAULT_PROTECTED,
    remote: RemoteOption = DEFAULT_REMOTE,
    yes_token: YesTokenOption = "y",
    no_color: NoColorOption = False,
    verbose: VerboseOption = False,
    debug: DebugOption = False,
) -> None:
    """Analyze branches and show which ones are safe to delete."""
    setup_logging(verbose, debug)
    sweep(path, get_settings(protect, remote, yes_token, no_color), delete=False)


@app.command()
def clean(
    path: PathOption = Path("."),
    protect: ProtectOption = DEFAULT_PROTECTED,
    remote: RemoteOption = DEFAULT_REMOTE,
    yes_token: YesTokenOption = "y",
    no_color: NoColorOption = False,
    verbose: VerboseOption = False,
    debug: DebugOption = False,
) -> None:
    """Analyze branches and delete the safe ones, one confirmation at a time."""
    setup_logging(verbose, debug)
    sweep(path, get_settings(protect, remote, yes_token, no_color), delete=True)


if __name__ == "__main__":
    app()
