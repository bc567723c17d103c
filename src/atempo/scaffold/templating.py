"""Placeholder substitution for installer argv and template files."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from atempo.scaffold.versions import major_version

# Installers place framework sources in <project>/src; {{name}} refers to it.
SOURCE_DIRNAME = "src"

PLACEHOLDER_PATTERN = re.compile(r"\{\{(project|cwd|name|version)\}\}")


@dataclass(frozen=True)
class TemplateVariables:
    """Values for the four recognized placeholders, bound once per run."""

    project: str
    cwd: str
    name: str
    version: str

    @classmethod
    def for_project(cls, project_dir: Path, version: str) -> TemplateVariables:
        return cls(
            project=project_dir.name,
            cwd=str(project_dir),
            name=SOURCE_DIRNAME,
            version=version,
        )

    def as_dict(self) -> dict[str, str]:
        return {
            "project": self.project,
            "cwd": self.cwd,
            "name": self.name,
            "version": self.version,
        }

    def apply(self, text: str) -> str:
        """Replace every known placeholder in one pass; others stay verbatim."""
        values = self.as_dict()
        return PLACEHOLDER_PATTERN.sub(lambda m: values[m.group(1)], text)


def substitute(tokens: Sequence[str], variables: TemplateVariables) -> list[str]:
    """Substitute placeholders in each argv token."""
    return [variables.apply(token) for token in tokens]


def apply_framework_options(
    command: Sequence[str], framework: str, version: str
) -> list[str]:
    """Rewrite substituted installer argv for the requested framework version.

    Returns a new list; tokens that do not match a rewrite rule are untouched.
    """
    if framework == "laravel":
        return _pin_laravel_package(command, version)
    # Django's version is pinned through requirements.txt, not argv.
    return list(command)


def _pin_laravel_package(command: Sequence[str], version: str) -> list[str]:
    result = list(command)
    for i, token in enumerate(result):
        if token == "laravel/laravel":
            result[i] = f"laravel/laravel:^{major_version(version)}.0"
            break
    return result
