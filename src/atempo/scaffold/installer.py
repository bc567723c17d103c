"""Installer executor: runs the framework's create-project command."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from atempo.errors import CommandError, InstallError
from atempo.scaffold.metadata import Metadata
from atempo.scaffold.templating import TemplateVariables, apply_framework_options
from atempo.steps import Step, StepLogger

logger = logging.getLogger(__name__)

DockerCheck = Callable[[], bool]


def build_command(metadata: Metadata, variables: TemplateVariables) -> list[str]:
    """Substituted, framework-adjusted installer argv."""
    installer = metadata.installer.substituted(variables)
    return apply_framework_options(
        installer.command, metadata.framework, variables.version
    )


def needs_docker(metadata: Metadata, argv: list[str]) -> bool:
    return metadata.installer.type == "docker" and bool(argv) and argv[0] == "docker"


def run_installer(
    metadata: Metadata,
    project_dir: Path,
    variables: TemplateVariables,
    log: StepLogger,
    step: Step,
    docker_check: DockerCheck | None = None,
    timeout: float | None = None,
) -> list[str]:
    """Run the installer in ``project_dir``.

    Returns the argv that was executed. Raises InstallError when the command
    is empty, Docker is required but unreachable, or the process fails.
    """
    argv = build_command(metadata, variables)
    if not argv:
        raise InstallError(f"installer command for {metadata.framework} is empty")

    if docker_check is not None and needs_docker(metadata, argv):
        log.log("Checking Docker daemon before running installer")
        if not docker_check():
            raise InstallError(
                "Docker is required but not available; start Docker and try again"
            )

    logger.debug("Running installer %s in %s", argv, project_dir)
    try:
        log.run_command(step, argv, project_dir, timeout=timeout)
    except CommandError as e:
        raise InstallError(
            f"failed to install {metadata.framework} {variables.version}: {e}"
        ) from e
    return argv
