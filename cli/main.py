#!/usr/bin/env python3
"""
binclean CLI - remove MSBuild build outputs below a directory

Features:
- Discovers .sln, .slnf and .slnx solutions (or takes a single project)
- Evaluates OutDir/BaseIntermediateOutputPath through MSBuild
- Refuses to delete directories holding projects or solutions
- Dry run by default, prints equivalent removal commands
- Confirmation per directory, project or solution
"""

import sys
from pathlib import Path
from typing import Any, Dict, Optional
from dotenv import load_dotenv

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from binclean import __version__
from binclean.core.processor import CleanProcessor, CleanResult
from binclean.entities import CleanOptions, ConfirmKind, ConfirmLevel
from binclean.utils.config_loader import get_config_loader
from binclean.utils.exceptions import (
    BackendNotFoundError,
    ConfigurationError,
    DiscoveryError,
    InvalidPathError,
)
from binclean.utils.file_utils import generate_output_filename, write_json_file
from binclean.utils.logger import setup_logger

app = typer.Typer(help="binclean - remove MSBuild build outputs (bin/obj) safely")
console = Console()
err_console = Console(stderr=True)

CONFIRM_PROMPTS = {
    ConfirmKind.DIRECTORY: "Delete directory {path}?",
    ConfirmKind.FILES_UNDER_DIRECTORY: "Delete all files below {path}?",
    ConfirmKind.SINGLE_FILE: "Delete file {path}?",
    ConfirmKind.BUILD_UNIT: "Delete outputs of project {path}?",
    ConfirmKind.CONTAINER: "Delete outputs of projects in solution directory {path}?",
}


def load_env():
    """Load environment variables from config/.env"""
    env_path = Path(__file__).parent.parent / "config" / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        err_console.print(f"[green]✓[/green] Loaded environment from {env_path}")


def prompt_confirm(kind: ConfirmKind, path: str) -> bool:
    return typer.confirm(CONFIRM_PROMPTS[kind].format(path=path), default=False)


def fail(message: str, code: int = 2):
    err_console.print(f"[bold red]✗ {escape(message)}[/bold red]")
    raise typer.Exit(code=code)


def build_options(settings: Dict[str, Any], overrides: Dict[str, Any]) -> CleanOptions:
    """Merge the config ``global`` section with command line values; CLI wins."""
    merged = dict(settings)
    merged.update({key: value for key, value in overrides.items() if value is not None})
    return CleanOptions(**merged)


@app.command()
def clean(
    root: Optional[str] = typer.Argument(None, help="Directory, solution or project file to clean"),
    root_option: Optional[str] = typer.Option(None, "--root", "-r", help="Same as ROOT"),
    delete: bool = typer.Option(False, "--delete/--dry-run", help="Delete instead of only reporting"),
    force: bool = typer.Option(False, "--force", help="Delete without asking (requires an explicit root)"),
    confirm: Optional[ConfirmLevel] = typer.Option(
        None, "--confirm", case_sensitive=False, help="Confirmation granularity (force/solution/project/dir)"
    ),
    delete_empty: bool = typer.Option(False, "--delete-empty-directories", help="Also remove empty output directories"),
    files_only: bool = typer.Option(False, "--delete-files", help="Delete files but keep the directory tree"),
    non_current: bool = typer.Option(
        False, "--non-current", help="Only remove target framework folders no longer built"
    ),
    obj: Optional[bool] = typer.Option(None, "--obj/--no-obj", help="Clean BaseIntermediateOutputPath (obj)"),
    nupkg: Optional[bool] = typer.Option(None, "--nupkg/--no-nupkg", help="Remove stale .nupkg packages"),
    msbuild: Optional[str] = typer.Option(None, "--msbuild", help="Path to MSBuild.exe/MSBuild.dll or its directory"),
    depth: Optional[int] = typer.Option(None, "--depth", "-d", help="Directory levels scanned for solutions"),
    parallel: Optional[int] = typer.Option(None, "--parallel", "-p", help="Concurrent MSBuild invocations"),
    non_parallel: bool = typer.Option(False, "--non-parallel", help="Query projects one at a time"),
    no_validate: bool = typer.Option(False, "--no-validate", help="Delete OutDir as is, without layout checks"),
    log_level: Optional[str] = typer.Option(None, "--log-level", "-l", help="debug/verbose/info/warning/error"),
    log_dir: Optional[str] = typer.Option(None, "--log-dir", help="Also write a log file to this directory"),
    report: Optional[str] = typer.Option(None, "--report", help="Write a JSON report to this path"),
    config: Optional[str] = typer.Option(None, "--config", help="Settings YAML file"),
):
    """
    Find build outputs below ROOT and report or delete them.

    Examples:
        # Report what would be removed
        python cli/main.py clean src/

        # Remove everything, asking once per solution
        python cli/main.py clean src/ --delete --confirm solution

        # Only framework folders that are no longer targeted
        python cli/main.py clean App.sln --delete --force --non-current
    """
    load_env()

    root = root_option or root

    if config:
        config_path = Path(config)
        loader = get_config_loader(str(config_path.parent), config_path.name)
    else:
        loader = get_config_loader()
    try:
        settings = loader.get_global_section(required=bool(config))
    except ConfigurationError as e:
        fail(str(e))

    try:
        logger = setup_logger(level=log_level or settings.get("log_level", "info"), log_dir=log_dir)
    except ValueError as e:
        fail(str(e))

    if force and confirm not in (None, ConfirmLevel.FORCE):
        fail(f"--force cannot be combined with --confirm {confirm.value}")
    if confirm is ConfirmLevel.FORCE and not force:
        fail("--confirm force requires --force")
    if not root:
        fail("--force requires an explicit root path" if force else "No root path given")

    overrides = {
        "root_path": root,
        "delete": delete,
        "confirm": ConfirmLevel.FORCE if force else confirm,
        "parallel": 0 if non_parallel else parallel,
        "depth": depth,
        "msbuild_path": msbuild,
        "validate_structure": False if no_validate else None,
        "only_noncurrent": non_current,
        "clean_intermediate": obj if obj is not None else (False if non_current else None),
        "clean_nupkg": nupkg,
        "force_delete_if_empty": delete_empty,
        "files_only": files_only,
    }
    try:
        options = build_options(settings, overrides)
    except ValidationError as e:
        fail(f"Invalid options: {e}")
    if options.confirm is ConfirmLevel.FORCE and not force:
        fail("confirm: force in the settings file requires --force")

    logger.debug(f"Options: {options.model_dump()}")
    console.print(f"\n[bold cyan]binclean[/bold cyan] {'delete' if options.delete else 'dry run'}: {escape(root)}\n")

    processor = CleanProcessor(options, confirm=prompt_confirm)
    try:
        result = processor.run()
    except BackendNotFoundError as e:
        fail(str(e))
    except (InvalidPathError, DiscoveryError) as e:
        fail(str(e))

    print_result(result, options)

    if report:
        if Path(report).is_dir():
            report = str(Path(report) / generate_output_filename("report", "json", Path(result.root_path).stem))
        write_json_file(report, result.model_dump(mode="json"))
        console.print(f"[green]✓[/green] Report written: {report}")

    raise typer.Exit(code=result.exit_code)


def print_result(result: CleanResult, options: CleanOptions):
    """Render the plan summary, commands and execution outcome."""
    summary = result.summary
    console.print(f"Solutions: {len(result.solutions)}, build units: {result.build_units}")
    for unit in result.skipped_units:
        console.print(f"[yellow]![/yellow] Skipped (unsafe): {escape(unit)}")

    if summary.entries:
        table = Table(title="Build outputs")
        table.add_column("Files", justify="right")
        table.add_column("KiB", justify="right")
        table.add_column("Directory")
        for entry in summary.entries:
            table.add_row(str(entry.file_count), str(entry.total_bytes // 1024), escape(entry.path))
        console.print(table)
    for file_path in summary.files:
        console.print(f"  package: {file_path}", markup=False, highlight=False, soft_wrap=True)

    console.print(
        f"[bold]Total:[/bold] {summary.total_files} files, {summary.total_kib} KiB ({summary.total_mib} MiB)"
    )

    if not options.delete:
        if result.commands:
            console.print("\n[bold]Commands:[/bold]")
            for command in result.commands:
                console.print(command, markup=False, highlight=False, soft_wrap=True)
    elif result.execution is not None:
        execution = result.execution
        console.print(
            f"[green]✓[/green] Deleted {len(execution.deleted_directories)} directories "
            f"and {len(execution.deleted_files)} files, skipped {len(execution.skipped)}"
        )
        for failure in execution.failures:
            console.print(f"[red]✗[/red] {escape(failure.message)}")

    if result.errors:
        console.print(f"[yellow]![/yellow] {len(result.errors)} build unit error(s), see log")


@app.command()
def version():
    """Show version information"""
    console.print(f"[bold cyan]binclean[/bold cyan] {__version__}")


if __name__ == "__main__":
    app()
