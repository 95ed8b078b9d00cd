# === NAVMAP v1 ===
# {
#   "module": "FPZ.BundleAssembly.cli",
#   "purpose": "Typer CLI for planning, building, and inspecting component bundles",
#   "sections": [
#     {"id": "clicontext", "name": "CliContext", "anchor": "class-clicontext", "kind": "class"},
#     {"id": "main", "name": "main", "anchor": "function-main", "kind": "function"},
#     {"id": "build", "name": "build", "anchor": "function-build", "kind": "function"},
#     {"id": "plan", "name": "plan", "anchor": "function-plan", "kind": "function"},
#     {"id": "show", "name": "show", "anchor": "function-show", "kind": "function"},
#     {"id": "version-cmd", "name": "version_cmd", "anchor": "function-version-cmd", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Command line entry point for bundle assembly.

Global options come before the subcommand::

    fpz --config config.json build
    fpz -v plan
    fpz show ./staging

Configuration errors and pipeline failures are reported as a single red line
and exit code 1.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .errors import BundleAssemblyError, UserConfigError
from .io.provenance import iter_provenance
from .logging_utils import setup_logging
from .pipeline import build_bundle, plan_bundle
from .settings import DEFAULT_CONFIG_PATH, BundleConfig, load_config

_console = Console()

app = typer.Typer(
    name="fpz",
    help="FPZ bundle assembler - build one archive from a remote component manifest",
)


class CliContext:
    """Options shared by every subcommand."""

    def __init__(
        self,
        config_path: Path,
        verbosity: int = 0,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.config_path = config_path
        self.verbosity = verbosity
        self.overrides = overrides or {}
        self.console = _console

    def load(self) -> BundleConfig:
        """Load configuration, applying CLI overrides and verbosity."""

        config = load_config(self.config_path, overrides=self.overrides)
        if self.verbosity >= 1:
            config = config.model_copy(
                update={"logging": config.logging.model_copy(update={"level": "DEBUG"})}
            )
        return config

    def fail(self, exc: Exception) -> None:
        self.console.print(f"[red]✗ {type(exc).__name__}: {exc}[/red]")
        raise typer.Exit(1)


def _context(ctx: typer.Context) -> CliContext:
    if not isinstance(ctx.obj, CliContext):
        raise RuntimeError("CLI context not initialized")
    return ctx.obj


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        "-c",
        envvar="FPZ_CONFIG",
        help="Path to config file (YAML or JSON)",
    ),
    manifest: Optional[str] = typer.Option(
        None, "--manifest", "-m", help="Override the manifest URL or path"
    ),
    staging: Optional[Path] = typer.Option(
        None, "--staging", help="Override the staging directory"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Override the output archive path"
    ),
    verbosity: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Enable debug logging",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
) -> None:
    """FPZ bundle assembler."""

    if version:
        typer.echo(f"fpz {__version__}")
        raise typer.Exit(0)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)

    ctx.obj = CliContext(
        config_path=config,
        verbosity=verbosity,
        overrides={
            "manifest_source": manifest,
            "staging_dir": staging,
            "output_archive": output,
        },
    )


@app.command()
def build(ctx: typer.Context) -> None:
    """Download every core component and package the staging tree.

    Example:
        $ fpz --config config.json build
    """
    cli = _context(ctx)
    try:
        config = cli.load()
        setup_logging(config.logging)
        result = build_bundle(config)
    except (BundleAssemblyError, UserConfigError) as exc:
        cli.fail(exc)
        return

    cli.console.print(
        f"[green]✓[/green] {len(result.components)} components, {result.files} files "
        f"({len(result.skipped)} group markers skipped) -> {result.output_archive}"
    )


@app.command()
def plan(ctx: typer.Context) -> None:
    """List the components a build would install, without downloading them."""
    cli = _context(ctx)
    try:
        config = cli.load()
        components = plan_bundle(config)
    except (BundleAssemblyError, UserConfigError) as exc:
        cli.fail(exc)
        return

    table = Table(title=f"Components under '{config.core_category}'")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Size", justify="right", style="green")
    table.add_column("Path", style="yellow")
    table.add_column("URL", style="magenta", overflow="fold")
    for component in components:
        table.add_row(component.id, str(component.install_size), component.path or ".", component.url)
    cli.console.print(table)


@app.command()
def show(
    ctx: typer.Context,
    staging_dir: Path = typer.Argument(..., help="Staging directory produced by a build"),
) -> None:
    """Summarise the provenance records found in a staging tree."""
    cli = _context(ctx)
    try:
        records = list(iter_provenance(staging_dir))
    except (OSError, ValueError) as exc:
        cli.fail(exc)
        return

    if not records:
        cli.console.print(f"[yellow]No provenance records under {staging_dir}[/yellow]")
        return

    table = Table(title=f"Provenance in {staging_dir}")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Hash", style="green")
    table.add_column("Size", justify="right")
    table.add_column("Files", justify="right")
    table.add_column("Depends", style="magenta")
    for record in records:
        table.add_row(
            record.component_id,
            record.hash,
            str(record.install_size),
            str(len(record.files)),
            " ".join(record.depends),
        )
    cli.console.print(table)


@app.command("version")
def version_cmd() -> None:
    """Show version information."""
    _console.print(f"[bold]fpz[/bold] version {__version__}")


__all__ = ["app", "CliContext", "main"]
