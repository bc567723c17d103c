"""Project registry backed by SQLite."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from sqlite3 import Row
from typing import Self

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS projects (
    name TEXT PRIMARY KEY,              -- Base name of the project directory
    path TEXT NOT NULL,                 -- Absolute path
    framework TEXT NOT NULL,
    version TEXT NOT NULL,
    created_at TEXT NOT NULL,           -- ISO8601 UTC
    last_accessed TEXT NOT NULL         -- ISO8601 UTC
);
"""


def get_registry_path() -> Path:
    """Get path to the registry database: ~/.atempo/registry.db."""
    return Path.home() / ".atempo" / "registry.db"


def _now() -> str:
    return datetime.now(UTC).isoformat()


@dataclass(frozen=True)
class Project:
    """A scaffolded project known to atempo."""

    name: str
    path: str
    framework: str
    version: str
    created_at: str
    last_accessed: str

    @classmethod
    def from_row(cls, row: Row) -> Self:
        """Create a Project from a database row."""
        return cls(
            name=row["name"],
            path=row["path"],
            framework=row["framework"],
            version=row["version"],
            created_at=row["created_at"],
            last_accessed=row["last_accessed"],
        )


class ProjectNotFoundError(Exception):
    """Raised when a project is not in the registry."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Project not found: {name}")


class ProjectRegistry:
    """Repository for registered projects."""

    def __init__(self, db_path: Path | None = None) -> None:
        """Initialize the registry.

        Args:
            db_path: Path to the SQLite database. Defaults to ~/.atempo/registry.db
        """
        self.db_path = db_path or get_registry_path()
        self._ensure_db()

    def _ensure_db(self) -> None:
        """Ensure the database exists and the schema is in place."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript(SCHEMA_SQL)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def add_project(
        self, name: str, path: Path | str, framework: str, version: str
    ) -> Project:
        """Insert or update a project by name.

        Re-registering keeps the original created_at and refreshes the rest.
        """
        now = _now()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO projects (
                    name, path, framework, version, created_at, last_accessed
                ) VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(name) DO UPDATE SET
                    path = excluded.path,
                    framework = excluded.framework,
                    version = excluded.version,
                    last_accessed = excluded.last_accessed
                """,
                (name, str(path), framework, version, now, now),
            )
            conn.commit()
        logger.debug("Registered project %s at %s", name, path)
        return self.get_project(name)

    def find_project(self, name: str) -> Project | None:
        """Get a project by name, or None."""
        with self._connect() as conn:
            cursor = conn.execute("SELECT * FROM projects WHERE name = ?", (name,))
            row = cursor.fetchone()
            return Project.from_row(row) if row else None

    def get_project(self, name: str) -> Project:
        """Get a project by name. Raises ProjectNotFoundError."""
        project = self.find_project(name)
        if project is None:
            raise ProjectNotFoundError(name)
        return project

    def list_projects(self) -> list[Project]:
        """All projects, most recently accessed first."""
        with self._connect() as conn:
            cursor = conn.execute(
                "SELECT * FROM projects ORDER BY last_accessed DESC, name"
            )
            return [Project.from_row(row) for row in cursor.fetchall()]

    def touch(self, name: str) -> None:
        """Update a project's last_accessed timestamp."""
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE projects SET last_accessed = ? WHERE name = ?",
                (_now(), name),
            )
            conn.commit()
            if cursor.rowcount == 0:
                raise ProjectNotFoundError(name)

    def remove_project(self, name: str) -> None:
        """Remove a project. Raises ProjectNotFoundError if it is not registered."""
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM projects WHERE name = ?", (name,))
            conn.commit()
            if cursor.rowcount == 0:
                raise ProjectNotFoundError(name)
