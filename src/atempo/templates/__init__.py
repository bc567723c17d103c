"""Framework template sources and resolution."""

from atempo.templates.base import (
    DirectorySource,
    TemplateSource,
    TemplateTree,
    bundled_source,
    filesystem_source,
)
from atempo.templates.loader import (
    TemplateResolver,
    default_resolver,
    get_executable_dir,
    get_package_templates_path,
    get_template_search_roots,
)

__all__ = [
    "DirectorySource",
    "TemplateResolver",
    "TemplateSource",
    "TemplateTree",
    "bundled_source",
    "default_resolver",
    "filesystem_source",
    "get_executable_dir",
    "get_package_templates_path",
    "get_template_search_roots",
]
