"""Scaffold pipeline and its stages."""

from atempo.scaffold.metadata import Installer, Metadata, parse_metadata
from atempo.scaffold.pipeline import ScaffoldPipeline, ScaffoldResult
from atempo.scaffold.templating import TemplateVariables, apply_framework_options
from atempo.scaffold.versions import compare_versions, latest_version, validate_version

__all__ = [
    "Installer",
    "Metadata",
    "ScaffoldPipeline",
    "ScaffoldResult",
    "TemplateVariables",
    "apply_framework_options",
    "compare_versions",
    "latest_version",
    "parse_metadata",
    "validate_version",
]
