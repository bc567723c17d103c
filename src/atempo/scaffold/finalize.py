"""Finalizer: register the project and generate its compose file."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable
from pathlib import Path

from atempo.errors import AtempoError, FinalizeError
from atempo.registry import ProjectRegistry
from atempo.scaffold.metadata import METADATA_FILENAME, Metadata

logger = logging.getLogger(__name__)

ComposeGenerator = Callable[[Path], Path | None]


def resolve_registry_name(
    metadata: Metadata, project_dir: Path, project_name: str
) -> str:
    """Name to register the project under.

    The project directory's base name wins; the templated metadata name and
    then the plain project name are fallbacks.
    """
    if project_dir.name:
        return project_dir.name
    name = metadata.name.replace("{{project}}", project_name)
    if not name or "{{" in name:
        return project_name
    return name


def finalize(
    metadata: Metadata,
    project_dir: Path,
    project_name: str,
    version: str,
    registry: ProjectRegistry,
    compose_generator: ComposeGenerator,
) -> Path | None:
    """Register the project, then generate docker-compose.yml if atempo.json exists.

    Returns the generated compose path (or None). Raises FinalizeError.
    """
    name = resolve_registry_name(metadata, project_dir, project_name)
    try:
        registry.add_project(name, project_dir, metadata.framework, version)
    except sqlite3.Error as e:
        raise FinalizeError(f"failed to register project: {e}") from e

    if not (project_dir / METADATA_FILENAME).is_file():
        logger.debug("No %s in %s, skipping compose", METADATA_FILENAME, project_dir)
        return None

    try:
        return compose_generator(project_dir)
    except AtempoError as e:
        raise FinalizeError(f"failed to generate docker-compose.yml: {e}") from e
