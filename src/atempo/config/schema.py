"""Configuration schema for atempo."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class AtempoConfig:
    """Atempo configuration schema.

    None values indicate "not set" and will use defaults or be inherited.
    """

    # Extra filesystem root searched for templates/frameworks/<framework>/
    templates_dir: str | None = None

    # Where per-run setup logs go (default ~/.atempo/logs)
    log_dir: str | None = None

    # Project registry database (default ~/.atempo/registry.db)
    registry_path: str | None = None

    # Post-install settings
    start_services: bool | None = None
    command_timeout: float | None = None  # seconds, None means no deadline

    def merge(self, other: AtempoConfig) -> AtempoConfig:
        """Merge another config into this one.

        Values from `other` take precedence when they are not None.
        Returns a new AtempoConfig instance.
        """
        return AtempoConfig(
            templates_dir=(
                other.templates_dir
                if other.templates_dir is not None
                else self.templates_dir
            ),
            log_dir=other.log_dir if other.log_dir is not None else self.log_dir,
            registry_path=(
                other.registry_path
                if other.registry_path is not None
                else self.registry_path
            ),
            start_services=(
                other.start_services
                if other.start_services is not None
                else self.start_services
            ),
            command_timeout=(
                other.command_timeout
                if other.command_timeout is not None
                else self.command_timeout
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary, excluding None values."""
        result: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None:
                result[f.name] = value
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AtempoConfig:
        """Create an AtempoConfig from a dictionary.

        Unknown keys are ignored. Values of the wrong type are logged and
        treated as unset.
        """
        templates_dir_raw = data.get("templates_dir")
        templates_dir = str(templates_dir_raw) if templates_dir_raw else None
        log_dir_raw = data.get("log_dir")
        log_dir = str(log_dir_raw) if log_dir_raw else None
        registry_path_raw = data.get("registry_path")
        registry_path = str(registry_path_raw) if registry_path_raw else None
        start_services_raw = data.get("start_services")
        start_services: bool | None = None
        if isinstance(start_services_raw, bool):
            start_services = start_services_raw
        elif start_services_raw is not None:
            logger.warning("Ignoring non-boolean start_services=%r", start_services_raw)

        timeout_raw = data.get("command_timeout")
        command_timeout: float | None = None
        if isinstance(timeout_raw, int | float | str) and not isinstance(
            timeout_raw, bool
        ):
            try:
                command_timeout = float(timeout_raw)
            except ValueError:
                logger.warning("Ignoring non-numeric command_timeout=%r", timeout_raw)
        elif timeout_raw is not None:
            logger.warning("Ignoring non-numeric command_timeout=%r", timeout_raw)
        if command_timeout is not None and command_timeout <= 0:
            command_timeout = None

        return cls(
            templates_dir=templates_dir,
            log_dir=log_dir,
            registry_path=registry_path,
            start_services=start_services,
            command_timeout=command_timeout,
        )

    @property
    def template_roots(self) -> list[Path]:
        """Configured extra template search roots."""
        if not self.templates_dir:
            return []
        return [Path(self.templates_dir).expanduser()]


# Default configuration values (used when not specified anywhere)
DEFAULT_CONFIG = AtempoConfig(
    start_services=True,
)
