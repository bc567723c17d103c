"""Tests for template sources and resolution."""

from collections.abc import Callable
from pathlib import Path, PurePosixPath
from unittest.mock import patch

import pytest

from atempo.errors import ResolutionError
from atempo.templates import (
    DirectorySource,
    TemplateResolver,
    bundled_source,
    default_resolver,
    filesystem_source,
    get_package_templates_path,
    get_template_search_roots,
)
from atempo.templates.base import FRAMEWORKS_DIRNAME, TEMPLATE_DIRNAME


class TestDirectorySource:
    """Tests for DirectorySource."""

    def test_read_file(
        self, tmp_path: Path, write_template: Callable[..., Path]
    ) -> None:
        write_template(tmp_path, files={"README.md": "hello"})
        source = DirectorySource(tmp_path)

        assert source.read_file("laravel", "README.md") == b"hello"

    def test_missing_file_returns_none(self, tmp_path: Path) -> None:
        source = DirectorySource(tmp_path)
        assert source.read_file("laravel", "README.md") is None
        assert source.read_tree("laravel", "ai") is None

    def test_directory_is_not_a_file(
        self, tmp_path: Path, write_template: Callable[..., Path]
    ) -> None:
        write_template(tmp_path, files={"ai/context.md": "x"})
        source = DirectorySource(tmp_path)
        assert source.read_file("laravel", "ai") is None

    def test_path_traversal_is_a_miss(
        self, tmp_path: Path, write_template: Callable[..., Path]
    ) -> None:
        write_template(tmp_path / "frameworks")
        (tmp_path / "secret.txt").write_text("nope")
        source = DirectorySource(tmp_path / "frameworks")

        assert source.read_file("laravel", "../../secret.txt") is None
        assert source.read_file("..", "secret.txt") is None
        assert source.read_file("laravel", "/etc/passwd") is None

    def test_read_tree_lists_files_and_dirs(
        self, tmp_path: Path, write_template: Callable[..., Path]
    ) -> None:
        write_template(
            tmp_path,
            files={"infra/docker/Dockerfile": "FROM x", "infra/notes.txt": "n"},
        )
        (tmp_path / "laravel" / "infra" / "empty").mkdir()
        tree = DirectorySource(tmp_path).read_tree("laravel", "infra")

        assert tree is not None
        assert tree.files == {
            PurePosixPath("docker/Dockerfile"): b"FROM x",
            PurePosixPath("notes.txt"): b"n",
        }
        assert PurePosixPath("empty") in tree.dirs
        assert PurePosixPath("docker") in tree.dirs
        assert tree.source == tmp_path / "laravel" / "infra"

    def test_frameworks_requires_metadata(
        self, tmp_path: Path, write_template: Callable[..., Path]
    ) -> None:
        write_template(tmp_path, "laravel")
        write_template(tmp_path, "django")
        (tmp_path / "notes").mkdir()

        assert DirectorySource(tmp_path).frameworks() == ["django", "laravel"]

    def test_filesystem_source_layout(self, tmp_path: Path) -> None:
        source = filesystem_source(tmp_path)
        assert source.base == tmp_path / TEMPLATE_DIRNAME / FRAMEWORKS_DIRNAME
        assert source.name == str(tmp_path)


class TestTemplateResolver:
    """Tests for ordered fallback across sources."""

    def test_first_source_wins(
        self, tmp_path: Path, write_template: Callable[..., Path]
    ) -> None:
        write_template(tmp_path / "a", files={"README.md": "from a"})
        write_template(tmp_path / "b", files={"README.md": "from b"})
        resolver = TemplateResolver(
            [DirectorySource(tmp_path / "a"), DirectorySource(tmp_path / "b")]
        )

        for _ in range(3):
            assert resolver.resolve("laravel", "README.md") == b"from a"

    def test_falls_back_to_later_source(
        self, tmp_path: Path, write_template: Callable[..., Path]
    ) -> None:
        write_template(tmp_path / "b", "rails", files={"README.md": "from b"})
        resolver = TemplateResolver(
            [DirectorySource(tmp_path / "a"), DirectorySource(tmp_path / "b")]
        )

        assert resolver.find("rails", "README.md") == b"from b"
        tree = resolver.find_tree("rails", ".")
        assert tree is not None
        assert PurePosixPath("README.md") in tree.files

    def test_resolve_error_names_framework_and_path(self, tmp_path: Path) -> None:
        resolver = TemplateResolver([DirectorySource(tmp_path)])

        with pytest.raises(ResolutionError) as exc_info:
            resolver.resolve("rails", "atempo.json")

        error = exc_info.value
        assert error.framework == "rails"
        assert error.relative_path == "atempo.json"
        assert "rails" in str(error)
        assert "atempo.json" in str(error)
        assert error.stage == "resolve"

    def test_resolve_tree_raises(self, tmp_path: Path) -> None:
        resolver = TemplateResolver([DirectorySource(tmp_path)])
        with pytest.raises(ResolutionError, match="infra"):
            resolver.resolve_tree("laravel", "infra")

    def test_available_frameworks_merges_sources(
        self, tmp_path: Path, write_template: Callable[..., Path]
    ) -> None:
        write_template(tmp_path / "a", "laravel")
        write_template(tmp_path / "b", "rails")
        write_template(tmp_path / "b", "laravel")
        resolver = TemplateResolver(
            [DirectorySource(tmp_path / "a"), DirectorySource(tmp_path / "b")]
        )

        assert resolver.available_frameworks() == ["laravel", "rails"]


class TestBundledTemplates:
    """Tests for templates shipped inside the package."""

    @pytest.mark.parametrize("framework", ["laravel", "django"])
    def test_bundled_framework_has_assets(self, framework: str) -> None:
        source = bundled_source(get_package_templates_path())

        assert source.read_file(framework, "atempo.json") is not None
        assert source.read_file(framework, "README.md") is not None
        assert source.read_tree(framework, "ai") is not None
        assert source.read_tree(framework, "infra") is not None


class TestSearchRoots:
    """Tests for the filesystem search order."""

    def test_order(self, tmp_path: Path) -> None:
        exec_dir = tmp_path / "opt" / "bin"
        extra = tmp_path / "extra"
        with (
            patch("atempo.templates.loader.get_executable_dir", return_value=exec_dir),
            patch("atempo.templates.loader.Path.cwd", return_value=tmp_path / "work"),
        ):
            roots = get_template_search_roots([extra])

        assert roots == [exec_dir, exec_dir.parent, tmp_path / "work", extra]

    def test_default_resolver_prefers_bundled(self, tmp_path: Path) -> None:
        resolver = default_resolver([tmp_path])

        assert resolver.sources[0].name == "bundled"
        last = resolver.sources[-1]
        assert isinstance(last, DirectorySource)
        assert last.base == tmp_path / TEMPLATE_DIRNAME / FRAMEWORKS_DIRNAME

    def test_default_resolver_uses_extra_root(
        self, tmp_path: Path, write_template: Callable[..., Path]
    ) -> None:
        write_template(
            tmp_path / TEMPLATE_DIRNAME / FRAMEWORKS_DIRNAME,
            "rails",
            files={"README.md": "rails"},
        )
        resolver = default_resolver([tmp_path])

        assert resolver.resolve("rails", "README.md") == b"rails"
