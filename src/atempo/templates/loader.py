"""Template resolution across bundled and filesystem sources."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable, Sequence
from pathlib import Path

from atempo.errors import ResolutionError
from atempo.templates.base import (
    FRAMEWORKS_DIRNAME,
    DirectorySource,
    TemplateSource,
    TemplateTree,
    bundled_source,
    filesystem_source,
)

logger = logging.getLogger(__name__)


def get_package_templates_path() -> Path:
    """Get path to package-bundled framework templates."""
    return Path(__file__).parent / FRAMEWORKS_DIRNAME


def get_executable_dir() -> Path:
    """Directory of the running ``atempo`` script (or the interpreter)."""
    script = sys.argv[0] if sys.argv and sys.argv[0] else ""
    if script and script != "-c":
        candidate = Path(script).resolve()
        if candidate.exists():
            return candidate.parent
    return Path(sys.executable).resolve().parent


def get_template_search_roots(extra_roots: Iterable[Path] = ()) -> list[Path]:
    """Return filesystem search roots in priority order (highest first).

    Resolution order:
    1. Directory containing the executable
    2. Its parent directory (development checkouts)
    3. Current working directory
    4. Configured extra roots
    """
    exec_dir = get_executable_dir()
    roots = [exec_dir, exec_dir.parent, Path.cwd()]
    roots.extend(Path(root).expanduser() for root in extra_roots)
    return roots


class TemplateResolver:
    """Tries each template source in order and returns the first hit."""

    def __init__(self, sources: Sequence[TemplateSource]) -> None:
        self.sources = tuple(sources)

    def find(self, framework: str, relative_path: str) -> bytes | None:
        """Return file bytes from the first source that has them, else None."""
        for source in self.sources:
            data = source.read_file(framework, relative_path)
            if data is not None:
                logger.debug(
                    "Resolved %s/%s from %s", framework, relative_path, source.name
                )
                return data
        return None

    def find_tree(self, framework: str, relative_path: str) -> TemplateTree | None:
        """Return a directory tree from the first source that has it, else None."""
        for source in self.sources:
            tree = source.read_tree(framework, relative_path)
            if tree is not None:
                logger.debug(
                    "Resolved %s/%s/ from %s", framework, relative_path, source.name
                )
                return tree
        return None

    def resolve(self, framework: str, relative_path: str) -> bytes:
        """Like find(), but raises ResolutionError when every source misses."""
        data = self.find(framework, relative_path)
        if data is None:
            raise ResolutionError(framework, relative_path)
        return data

    def resolve_tree(self, framework: str, relative_path: str) -> TemplateTree:
        """Like find_tree(), but raises ResolutionError when every source misses."""
        tree = self.find_tree(framework, relative_path)
        if tree is None:
            raise ResolutionError(framework, relative_path)
        return tree

    def available_frameworks(self) -> list[str]:
        """Framework names offered by any directory-backed source."""
        names: set[str] = set()
        for source in self.sources:
            if isinstance(source, DirectorySource):
                names.update(source.frameworks())
        return sorted(names)


def default_resolver(extra_roots: Iterable[Path] = ()) -> TemplateResolver:
    """Bundled templates first, then the filesystem search roots."""
    sources: list[TemplateSource] = [bundled_source(get_package_templates_path())]
    for root in get_template_search_roots(extra_roots):
        sources.append(filesystem_source(root))
    return TemplateResolver(sources)
