"""Template sources: where framework template bytes come from."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

logger = logging.getLogger(__name__)

# Layout below a filesystem search root: <root>/templates/frameworks/<framework>/
TEMPLATE_DIRNAME = "templates"
FRAMEWORKS_DIRNAME = "frameworks"


@dataclass(frozen=True)
class TemplateTree:
    """Contents of a template directory, keyed by path relative to its root."""

    files: dict[PurePosixPath, bytes] = field(default_factory=dict)
    dirs: tuple[PurePosixPath, ...] = ()
    source: Path | None = None  # Directory the tree was read from


def _safe_relative(relative_path: str) -> PurePosixPath | None:
    """Normalize a template-relative path; None if it escapes the framework dir."""
    rel = PurePosixPath(relative_path.replace("\\", "/"))
    if rel.is_absolute() or ".." in rel.parts:
        return None
    return rel


class TemplateSource(ABC):
    """A place framework templates can be read from.

    Sources return None for anything they do not have, so a resolver can move
    on to the next source without exception handling.
    """

    name: str

    @abstractmethod
    def locate(self, framework: str, relative_path: str) -> Path | None:
        """Return the on-disk path for a template entry, or None if absent."""
        ...

    def read_file(self, framework: str, relative_path: str) -> bytes | None:
        """Read a single template file, or None if this source lacks it."""
        path = self.locate(framework, relative_path)
        if path is None or not path.is_file():
            return None
        try:
            return path.read_bytes()
        except OSError:
            logger.warning("Could not read template file %s", path, exc_info=True)
            return None

    def read_tree(self, framework: str, relative_path: str) -> TemplateTree | None:
        """Read every file below a template directory, or None if absent."""
        root = self.locate(framework, relative_path)
        if root is None or not root.is_dir():
            return None

        files: dict[PurePosixPath, bytes] = {}
        dirs: list[PurePosixPath] = []
        try:
            for item in sorted(root.rglob("*")):
                rel = PurePosixPath(item.relative_to(root).as_posix())
                if item.is_dir():
                    dirs.append(rel)
                elif item.is_file():
                    files[rel] = item.read_bytes()
        except OSError:
            logger.warning("Could not read template directory %s", root, exc_info=True)
            return None

        return TemplateTree(files=files, dirs=tuple(dirs), source=root)


class DirectorySource(TemplateSource):
    """Templates laid out as ``<base>/<framework>/<relative_path>``."""

    def __init__(self, base: Path, name: str | None = None) -> None:
        self.base = base
        self.name = name or str(base)

    def locate(self, framework: str, relative_path: str) -> Path | None:
        rel = _safe_relative(relative_path)
        if rel is None or not framework or "/" in framework or framework == "..":
            return None
        path = self.base / framework / rel
        if not path.exists():
            return None
        return path

    def frameworks(self) -> list[str]:
        """Names of framework directories that carry an ``atempo.json``."""
        if not self.base.is_dir():
            return []
        return sorted(
            item.name
            for item in self.base.iterdir()
            if item.is_dir() and (item / "atempo.json").is_file()
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.base!s})"


def bundled_source(base: Path) -> DirectorySource:
    """Source for the templates shipped inside the package."""
    return DirectorySource(base, name="bundled")


def filesystem_source(root: Path) -> DirectorySource:
    """Source for ``<root>/templates/frameworks``."""
    return DirectorySource(root / TEMPLATE_DIRNAME / FRAMEWORKS_DIRNAME, name=str(root))
