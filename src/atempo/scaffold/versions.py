"""Framework version compatibility rules."""

from __future__ import annotations

from dataclasses import dataclass

from atempo.errors import ValidationError


@dataclass(frozen=True)
class MajorRange:
    """Inclusive major-version window a framework is known to scaffold."""

    display_name: str
    floor: int
    ceiling: int


FRAMEWORK_RANGES: dict[str, MajorRange] = {
    "laravel": MajorRange("Laravel", floor=8, ceiling=12),
    "django": MajorRange("Django", floor=4, ceiling=6),
}

# Version used when the user gives none
LATEST_VERSIONS: dict[str, str] = {
    "laravel": "11",
    "django": "5",
}


def latest_version(framework: str) -> str:
    """Default version for a framework, or "latest" for unknown ones."""
    return LATEST_VERSIONS.get(framework, "latest")


def parse_version_part(part: str) -> int:
    """Integer value of a version component, ignoring non-digits ("3rc1" -> 31)."""
    digits = "".join(ch for ch in part if ch.isdigit())
    return int(digits) if digits else 0


def major_version(version: str) -> int:
    return parse_version_part(version.split(".")[0])


def compare_versions(v1: str, v2: str) -> int:
    """Compare dotted versions part by part as integers.

    Returns -1, 0 or 1. Missing parts count as zero, so "11" == "11.0".
    """
    parts1 = v1.split(".")
    parts2 = v2.split(".")
    length = max(len(parts1), len(parts2))
    parts1 += ["0"] * (length - len(parts1))
    parts2 += ["0"] * (length - len(parts2))

    for a, b in zip(parts1, parts2, strict=True):
        num1 = parse_version_part(a)
        num2 = parse_version_part(b)
        if num1 < num2:
            return -1
        if num1 > num2:
            return 1
    return 0


def validate_version(framework: str, version: str, min_version: str = "") -> None:
    """Raise ValidationError if ``version`` cannot be scaffolded for ``framework``.

    Checks run in order: empty version, the framework's major-version floor
    and ceiling, then the template's ``min-version``. Frameworks without a
    known major range only get the empty and ``min-version`` checks.
    """
    if not version:
        raise ValidationError("version cannot be empty")

    rule = FRAMEWORK_RANGES.get(framework)
    if rule is not None:
        major = major_version(version)
        if major < rule.floor:
            raise ValidationError(
                f"{rule.display_name} version {version} is too old "
                f"(minimum supported: {rule.floor}.0)"
            )
        if major > rule.ceiling:
            raise ValidationError(
                f"{rule.display_name} version {version} is not yet supported "
                f"(maximum: {rule.ceiling}.x)"
            )

    if min_version and compare_versions(version, min_version) < 0:
        raise ValidationError(
            f"version {version} is below minimum supported version "
            f"{min_version} for {framework}"
        )
