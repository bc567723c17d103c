"""Preflight checks to validate environment."""

import shutil

import docker
from docker.errors import DockerException

from atempo.console import console
from atempo.templates import default_resolver


def docker_available() -> bool:
    """Quietly report whether the Docker daemon answers a ping."""
    try:
        docker.from_env().ping()
    except DockerException:
        return False
    return True


def check_docker() -> bool:
    """Validate Docker daemon is running and accessible."""
    try:
        client = docker.from_env()
        client.ping()
        console.print("[green]✓[/green] Docker daemon is running")
    except DockerException as e:
        console.print(f"[red]✗[/red] Cannot connect to Docker: {e}")
        return False

    try:
        version = client.version()
        console.print(f"[green]✓[/green] Docker version: {version['Version']}")
    except DockerException as e:
        console.print(f"[red]✗[/red] Cannot get Docker version: {e}")
        return False

    return True


def check_compose() -> bool:
    """Check the docker-compose CLI used for post-install steps."""
    path = shutil.which("docker-compose")
    if path is None:
        console.print(
            "[yellow]⚠[/yellow] docker-compose not found "
            "[dim](services must be started manually)[/dim]"
        )
        return False
    console.print(f"[green]✓[/green] docker-compose: [cyan]{path}[/cyan]")
    return True


def check_templates() -> bool:
    """List the frameworks that can be scaffolded."""
    frameworks = default_resolver().available_frameworks()
    if not frameworks:
        console.print("[red]✗[/red] No framework templates found")
        return False
    console.print(f"[green]✓[/green] Templates: {', '.join(frameworks)}")
    return True


CHECKS = [
    check_docker,
    check_compose,
    check_templates,
]


def run_all_checks() -> bool:
    """Run all preflight checks."""
    console.print("[bold]Running preflight checks...[/bold]\n")

    results = [check() for check in CHECKS]
    all_passed = all(results)

    if all_passed:
        console.print("\n[bold green]All preflight checks passed![/bold green]")
    else:
        console.print("\n[bold red]Some preflight checks failed.[/bold red]")

    return all_passed
