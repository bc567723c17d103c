"""Generate docker-compose.yml from a project's atempo.json."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from atempo.errors import ComposeError

logger = logging.getLogger(__name__)

COMPOSE_VERSION = "3.8"
COMPOSE_FILENAME = "docker-compose.yml"
CONFIG_FILENAME = "atempo.json"

HEADER = (
    "# Generated by Atempo from atempo.json\n"
    "# Do not edit this file directly - modify atempo.json and regenerate\n\n"
)

# Optional service keys copied through verbatim when present and non-empty
PASSTHROUGH_KEYS = (
    "command",
    "working_dir",
    "ports",
    "volumes",
    "environment",
    "depends_on",
    "networks",
)


def load_project_config(project_dir: Path) -> dict[str, Any]:
    """Read and parse ``<project_dir>/atempo.json``."""
    path = project_dir / CONFIG_FILENAME
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ComposeError(f"failed to read {CONFIG_FILENAME}: {e}") from e
    except json.JSONDecodeError as e:
        raise ComposeError(f"failed to parse {CONFIG_FILENAME}: {e}") from e
    if not isinstance(data, dict):
        raise ComposeError(f"failed to parse {CONFIG_FILENAME}: expected an object")
    return data


def convert_service(
    service: dict[str, Any], service_name: str, project_name: str, framework: str
) -> dict[str, Any]:
    """Convert one atempo.json service to a compose service mapping."""
    result: dict[str, Any] = {}

    if service.get("type") == "build":
        result["image"] = f"{project_name}-{framework}-{service_name}"
        result["build"] = {
            "context": service.get("context") or ".",
            "dockerfile": service.get("dockerfile", ""),
        }
    elif service.get("image"):
        result["image"] = service["image"]

    result["container_name"] = f"{project_name}-{service_name}"
    result["restart"] = service.get("restart") or "unless-stopped"

    for key in PASSTHROUGH_KEYS:
        value = service.get(key)
        if value:
            result[key] = value
    return result


def convert_volume(volume: dict[str, Any]) -> dict[str, Any]:
    if volume.get("external"):
        external: dict[str, Any] = {"external": True}
        if volume.get("external_name"):
            external["name"] = volume["external_name"]
        return external

    result: dict[str, Any] = {}
    if volume.get("driver"):
        result["driver"] = volume["driver"]
    if volume.get("driver_opts"):
        result["driver_opts"] = volume["driver_opts"]
    return result


def convert_network(network: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    if network.get("driver"):
        result["driver"] = network["driver"]
    if network.get("driver_opts"):
        result["driver_opts"] = network["driver_opts"]
    if network.get("external"):
        result["external"] = True
    return result


def section(config: dict[str, Any], key: str) -> dict[str, dict[str, Any]]:
    """Return the ``key`` mapping of atempo.json with every entry as a mapping.

    Raises ComposeError when the section or one of its entries has the wrong
    shape.
    """
    raw = config.get(key) or {}
    if not isinstance(raw, dict):
        raise ComposeError(f"invalid {CONFIG_FILENAME}: '{key}' must be an object")
    entries: dict[str, dict[str, Any]] = {}
    for name, entry in raw.items():
        entry = entry or {}
        if not isinstance(entry, dict):
            raise ComposeError(
                f"invalid {CONFIG_FILENAME}: {key}.{name} must be an object"
            )
        entries[str(name)] = entry
    return entries


def build_compose(config: dict[str, Any], project_dir: Path) -> dict[str, Any]:
    """Compose document for a parsed atempo.json.

    Raises ComposeError if services, volumes or networks are malformed.
    """
    project_name = config.get("name") or project_dir.name
    framework = config.get("framework", "")

    services = {
        name: convert_service(service, name, project_name, framework)
        for name, service in section(config, "services").items()
    }
    volumes = {
        name: convert_volume(volume)
        for name, volume in section(config, "volumes").items()
    }
    networks = {
        name: convert_network(network)
        for name, network in section(config, "networks").items()
    }

    if not networks:
        network_name = f"{project_name}-network"
        networks[network_name] = {"driver": "bridge"}
        for service in services.values():
            service["networks"] = [network_name]

    compose: dict[str, Any] = {"version": COMPOSE_VERSION, "services": services}
    if volumes:
        compose["volumes"] = volumes
    compose["networks"] = networks
    return compose


def generate_compose_file(project_dir: Path) -> Path | None:
    """Write ``docker-compose.yml`` for a project whose atempo.json has services.

    Returns the written path, or None when no services are declared.
    Raises ComposeError if atempo.json is unreadable or the write fails.
    """
    config = load_project_config(project_dir)
    if not config.get("services"):
        logger.debug("No services declared in %s, skipping compose", project_dir)
        return None

    compose = build_compose(config, project_dir)
    path = project_dir / COMPOSE_FILENAME
    body = yaml.safe_dump(compose, default_flow_style=False, sort_keys=False)
    try:
        path.write_text(HEADER + body, encoding="utf-8")
    except OSError as e:
        raise ComposeError(f"failed to write {COMPOSE_FILENAME}: {e}") from e
    return path
