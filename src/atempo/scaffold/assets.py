"""Asset copier: mirrors a framework's template assets into a new project."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from atempo.errors import CopyError, ResolutionError
from atempo.scaffold.metadata import METADATA_FILENAME
from atempo.scaffold.templating import TemplateVariables
from atempo.templates import TemplateResolver

logger = logging.getLogger(__name__)

FILE_MODE = 0o644
DIR_MODE = 0o755


@dataclass(frozen=True)
class AssetCategory:
    """One group of template assets copied as a unit."""

    path: str  # Relative to the framework template root and the project root
    is_dir: bool
    required: bool = False


ASSET_CATEGORIES: tuple[AssetCategory, ...] = (
    AssetCategory("ai", is_dir=True),
    AssetCategory("infra", is_dir=True),
    AssetCategory("README.md", is_dir=False),
    AssetCategory(METADATA_FILENAME, is_dir=False, required=True),
)


@dataclass
class CopyReport:
    """What the copier wrote into the project."""

    copied: list[str] = field(default_factory=list)  # category paths
    skipped: list[str] = field(default_factory=list)
    files: list[Path] = field(default_factory=list)


def render(data: bytes, variables: TemplateVariables) -> bytes:
    """Substitute placeholders in text content; binary content passes through."""
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        return data
    return variables.apply(text).encode("utf-8")


def _make_dir(path: Path) -> None:
    path.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)


def _write_file(path: Path, data: bytes) -> None:
    _make_dir(path.parent)
    path.write_bytes(data)
    os.chmod(path, FILE_MODE)


def _copy_file(
    resolver: TemplateResolver,
    framework: str,
    category: AssetCategory,
    project_dir: Path,
    variables: TemplateVariables,
) -> list[Path] | None:
    if category.required:
        data: bytes | None = resolver.resolve(framework, category.path)
    else:
        data = resolver.find(framework, category.path)
    if data is None:
        return None
    target = project_dir / category.path
    _write_file(target, render(data, variables))
    return [target]


def _copy_tree(
    resolver: TemplateResolver,
    framework: str,
    category: AssetCategory,
    project_dir: Path,
    variables: TemplateVariables,
) -> list[Path] | None:
    if category.required:
        tree = resolver.resolve_tree(framework, category.path)
    else:
        tree = resolver.find_tree(framework, category.path)
    if tree is None:
        return None

    root = project_dir / PurePosixPath(category.path)
    _make_dir(root)
    for rel_dir in tree.dirs:
        _make_dir(root / rel_dir)

    written: list[Path] = []
    for rel_file, data in tree.files.items():
        target = root / rel_file
        _write_file(target, render(data, variables))
        written.append(target)
    return written


def copy_assets(
    resolver: TemplateResolver,
    framework: str,
    project_dir: Path,
    variables: TemplateVariables,
    categories: tuple[AssetCategory, ...] = ASSET_CATEGORIES,
) -> CopyReport:
    """Copy every asset category for ``framework`` into ``project_dir``.

    Optional categories that no source provides are skipped. A missing
    required category, or any write failure, raises CopyError.
    """
    report = CopyReport()
    for category in categories:
        copier = _copy_tree if category.is_dir else _copy_file
        try:
            written = copier(resolver, framework, category, project_dir, variables)
        except ResolutionError as e:
            raise CopyError(f"required asset missing: {e}") from e
        except OSError as e:
            raise CopyError(f"failed to copy {category.path}: {e}") from e

        if written is None:
            logger.debug("No %s assets for %s, skipping", category.path, framework)
            report.skipped.append(category.path)
            continue
        report.copied.append(category.path)
        report.files.extend(written)
    return report
