"""Command-line interface for atempo."""

import logging
from pathlib import Path

import click
from rich.logging import RichHandler
from rich.markup import escape

from atempo import __version__
from atempo.config import load_config
from atempo.config.preflight import run_all_checks
from atempo.console import console
from atempo.errors import AtempoError
from atempo.registry import ProjectRegistry
from atempo.scaffold import ScaffoldPipeline, latest_version
from atempo.steps import latest_log_file

logger = logging.getLogger(__name__)


def parse_framework_arg(value: str) -> tuple[str, str]:
    """Split ``<framework>[:<version>]``; the version defaults to the latest."""
    if ":" not in value:
        return value, latest_version(value)
    parts = value.split(":")
    if len(parts) != 2 or not parts[0]:
        raise click.BadParameter(
            "expected format <framework>[:<version>]", param_hint="FRAMEWORK"
        )
    return parts[0], parts[1]


def version_callback(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
    """Print version and exit."""
    if not value or ctx.resilient_parsing:
        return
    console.print(f"atempo [bold cyan]{__version__}[/bold cyan]")
    ctx.exit()


@click.group(invoke_without_command=True)
@click.option(
    "--version",
    is_flag=True,
    callback=version_callback,
    expose_value=False,
    is_eager=True,
    help="Show version and exit.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """Atempo - scaffold framework projects with Docker-based local environments."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    if ctx.invoked_subcommand is None:
        console.print("[bold]atempo[/bold] - framework project scaffolding")
        console.print("\nRun [cyan]atempo --help[/cyan] for available commands.")


@main.command()
@click.argument("framework")
@click.argument("project_name", required=False)
def create(framework: str, project_name: str | None) -> None:
    """Create a new FRAMEWORK[:VERSION] project.

    Without PROJECT_NAME the current directory becomes the project;
    otherwise ./PROJECT_NAME is created.
    """
    framework_name, version = parse_framework_arg(framework)
    cwd = Path.cwd()
    project_dir = cwd / project_name if project_name else cwd

    config = load_config()
    pipeline = ScaffoldPipeline(config=config)

    console.print(
        f"[bold]Creating {escape(framework_name)} {escape(version)} project:[/bold] "
        f"[cyan]{escape(project_dir.name)}[/cyan]\n"
    )
    try:
        result = pipeline.run(framework_name, version, project_dir)
    except AtempoError as e:
        console.print(f"\n[red]Error:[/red] {e.stage} failed: {escape(str(e))}")
        raise SystemExit(1) from None

    if result.warnings:
        count = len(result.warnings)
        console.print(f"\n[yellow]Completed with {count} warning(s):[/yellow]")
        for warning in result.warnings:
            console.print(f"  [yellow]⚠[/yellow] {escape(warning)}")

    console.print(
        f"\n[bold green]Setup completed in {result.elapsed:.1f}s[/bold green]"
    )
    if result.log_path is not None:
        console.print(f"[dim]Full logs: {result.log_path}[/dim]")
        console.print(f"[dim]View logs: atempo logs {result.project_name}[/dim]")

    console.print(
        f"\n[bold green]✓ Project {escape(result.project_name)} is ready"
        f"[/bold green] at [cyan]{escape(str(result.project_dir))}[/cyan]"
    )


@main.command()
def projects() -> None:
    """List registered projects."""
    config = load_config()
    path = Path(config.registry_path).expanduser() if config.registry_path else None
    registry = ProjectRegistry(path)
    entries = registry.list_projects()

    if not entries:
        console.print("[dim]No projects registered.[/dim]")
        return

    console.print(f"[bold]Projects ({len(entries)}):[/bold]\n")
    for project in entries:
        exists = Path(project.path).is_dir()
        status = "[green]✓[/green]" if exists else "[red]✗[/red]"
        console.print(
            f"  {status} [cyan]{escape(project.name)}[/cyan] | "
            f"{escape(project.framework)} {escape(project.version)}"
        )
        console.print(
            f"      [dim]{escape(project.path)} | "
            f"Created: {project.created_at[:19]}[/dim]"
        )


@main.command()
@click.argument("project_name")
def logs(project_name: str) -> None:
    """Show the latest setup log for PROJECT_NAME."""
    config = load_config()
    log_dir = Path(config.log_dir).expanduser() if config.log_dir else None
    log_path = latest_log_file(project_name, log_dir)
    if log_path is None:
        console.print(f"[red]No logs found for project:[/red] {escape(project_name)}")
        raise SystemExit(1)

    console.print(f"[dim]{log_path}[/dim]\n")
    console.print(log_path.read_text(encoding="utf-8"), markup=False, highlight=False)


@main.command()
def preflight() -> None:
    """Validate environment is ready (Docker, templates)."""
    if not run_all_checks():
        raise SystemExit(1)
