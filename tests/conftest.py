"""Shared fixtures for atempo tests."""

import io
import json
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pytest
from rich.console import Console

from atempo.steps import LineSink


class FakeRunner:
    """Command runner that records argv and returns scripted exit codes."""

    def __init__(self, fail: Callable[[list[str]], bool] | None = None) -> None:
        self.calls: list[tuple[list[str], Path]] = []
        self.fail = fail or (lambda argv: False)

    def __call__(
        self,
        argv: Sequence[str],
        cwd: Path,
        sink: LineSink,
        timeout: float | None,
    ) -> int:
        command = list(argv)
        self.calls.append((command, cwd))
        sink("STDOUT", f"ran {' '.join(command)}")
        if self.fail(command):
            sink("STDERR", "boom")
            return 1
        return 0

    @property
    def commands(self) -> list[list[str]]:
        return [argv for argv, _ in self.calls]


def stub_metadata(
    framework: str = "laravel",
    min_version: str = "8.0",
    command: list[str] | None = None,
    installer_type: str = "shell",
    **extra: Any,
) -> dict[str, Any]:
    """A minimal atempo.json payload."""
    data: dict[str, Any] = {
        "name": "{{project}}",
        "framework": framework,
        "language": "php",
        "installer": {
            "type": installer_type,
            "command": command if command is not None else ["true"],
            "work-dir": "{{cwd}}",
        },
        "working-dir": "/var/www",
        "min-version": min_version,
    }
    data.update(extra)
    return data


@pytest.fixture
def quiet_console() -> Console:
    """Console that renders into a buffer instead of the terminal."""
    return Console(file=io.StringIO(), width=120)


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def write_template() -> Callable[..., Path]:
    """Factory writing ``<base>/<framework>/`` with atempo.json and extra files."""

    def _write(
        base: Path,
        framework: str = "laravel",
        metadata: dict[str, Any] | None = None,
        files: dict[str, str | bytes] | None = None,
    ) -> Path:
        root = base / framework
        root.mkdir(parents=True, exist_ok=True)
        payload = metadata if metadata is not None else stub_metadata(framework)
        (root / "atempo.json").write_text(json.dumps(payload, indent=2))
        for rel, content in (files or {}).items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content)
        return root

    return _write


STANDARD_FILES: dict[str, str | bytes] = {
    "ai/context.md": "# {{project}} context\n",
    "ai/prompts/setup.md": "Work in {{cwd}}/{{name}}\n",
    "infra/docker/Dockerfile": "FROM php:8.3-fpm\nWORKDIR /var/www\n",
    "README.md": "# {{project}}\n\nVersion {{version}}\n",
}


@pytest.fixture
def standard_files() -> dict[str, str | bytes]:
    return dict(STANDARD_FILES)


@pytest.fixture
def make_metadata() -> Callable[..., dict[str, Any]]:
    return stub_metadata
