"""Framework scaffold descriptors loaded from ``atempo.json``."""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from typing import Any

from atempo.errors import MetadataError
from atempo.scaffold.templating import TemplateVariables, substitute

METADATA_FILENAME = "atempo.json"


@dataclass(frozen=True)
class Installer:
    """How a framework's source code is created."""

    type: str  # "composer" | "docker" | "shell" | "pip"
    command: tuple[str, ...] = ()  # argv tokens, may carry placeholders
    work_dir: str = ""

    def substituted(self, variables: TemplateVariables) -> Installer:
        """Return a copy with placeholders filled in."""
        return replace(
            self,
            command=tuple(substitute(self.command, variables)),
            work_dir=variables.apply(self.work_dir),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "command": list(self.command),
            "work-dir": self.work_dir,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Installer:
        command_raw = data.get("command", [])
        if isinstance(command_raw, str):
            command: tuple[str, ...] = (command_raw,)
        elif isinstance(command_raw, (list, tuple)):
            command = tuple(str(part) for part in command_raw)
        else:
            command = ()
        return cls(
            type=str(data.get("type", "shell")),
            command=command,
            work_dir=str(data.get("work-dir", "")),
        )


@dataclass(frozen=True)
class Metadata:
    """A framework's scaffold descriptor.

    Mirrors the on-disk ``atempo.json`` keys; keys other than the ones below
    (such as ``services``) belong to other consumers and are ignored here.
    """

    name: str  # Project name template, e.g. "{{project}}"
    framework: str
    language: str = ""
    installer: Installer = Installer(type="shell")
    working_dir: str = ""
    min_version: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "framework": self.framework,
            "language": self.language,
            "installer": self.installer.to_dict(),
            "working-dir": self.working_dir,
            "min-version": self.min_version,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Metadata:
        installer_raw = data.get("installer")
        installer = (
            Installer.from_dict(installer_raw)
            if isinstance(installer_raw, dict)
            else Installer(type="shell")
        )
        return cls(
            name=str(data.get("name", "")),
            framework=str(data.get("framework", "")),
            language=str(data.get("language", "")),
            installer=installer,
            working_dir=str(data.get("working-dir", "")),
            min_version=str(data.get("min-version", "")),
        )


def parse_metadata(framework: str, raw: bytes) -> Metadata:
    """Parse ``atempo.json`` bytes, defaulting ``framework`` to the requested one."""
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MetadataError(
            f"invalid {METADATA_FILENAME} for {framework}: {e}"
        ) from e
    if not isinstance(data, dict):
        raise MetadataError(
            f"invalid {METADATA_FILENAME} for {framework}: expected an object"
        )

    meta = Metadata.from_dict(data)
    if not meta.framework:
        meta = replace(meta, framework=framework)
    return meta
