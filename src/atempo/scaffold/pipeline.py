"""The scaffold pipeline: resolve, validate, install, copy, post-install, finalize."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path

from rich.console import Console

from atempo.compose import generate_compose_file
from atempo.config.preflight import docker_available
from atempo.config.schema import DEFAULT_CONFIG, AtempoConfig
from atempo.console import console as default_console
from atempo.errors import AtempoError, FinalizeError, InstallError
from atempo.registry import ProjectRegistry
from atempo.scaffold.assets import CopyReport, copy_assets
from atempo.scaffold.finalize import ComposeGenerator, finalize
from atempo.scaffold.installer import DockerCheck, run_installer
from atempo.scaffold.metadata import METADATA_FILENAME, Metadata, parse_metadata
from atempo.scaffold.postinstall import PostInstallOrchestrator, PostInstallReport
from atempo.scaffold.templating import TemplateVariables
from atempo.scaffold.versions import validate_version
from atempo.steps import CommandRunner, StepLogger
from atempo.templates import TemplateResolver, default_resolver

logger = logging.getLogger(__name__)


@dataclass
class ScaffoldResult:
    """Outcome of a successful scaffold run."""

    project_name: str
    project_dir: Path
    framework: str
    version: str
    log_path: Path | None = None
    elapsed: float = 0.0  # seconds
    copy_report: CopyReport | None = None
    post_install: PostInstallReport | None = None
    compose_file: Path | None = None
    warnings: list[str] = field(default_factory=list)


class ScaffoldPipeline:
    """Turns a (framework, version) request into a populated project directory.

    Stages run strictly in order. Resolution, validation, installation and
    required-asset copy failures raise; post-install and finalize problems
    are collected in ``ScaffoldResult.warnings``.
    """

    def __init__(
        self,
        resolver: TemplateResolver | None = None,
        registry: ProjectRegistry | None = None,
        compose_generator: ComposeGenerator = generate_compose_file,
        console: Console | None = None,
        config: AtempoConfig | None = None,
        log_dir: Path | None = None,
        runner: CommandRunner | None = None,
        docker_check: DockerCheck | None = docker_available,
    ) -> None:
        self.config = DEFAULT_CONFIG.merge(config) if config else DEFAULT_CONFIG
        self.resolver = resolver or default_resolver(self.config.template_roots)
        self.registry = registry
        self.compose_generator = compose_generator
        self.console = console or default_console
        self.log_dir = log_dir or (
            Path(self.config.log_dir).expanduser() if self.config.log_dir else None
        )
        self.runner = runner
        self.docker_check = docker_check

    def run(self, framework: str, version: str, project_dir: Path) -> ScaffoldResult:
        """Scaffold ``framework`` at ``version`` into ``project_dir``.

        Raises an AtempoError subclass naming the failed stage on abort.
        """
        project_dir = project_dir.absolute()
        project_name = project_dir.name
        variables = TemplateVariables.for_project(project_dir, version)
        result = ScaffoldResult(project_name, project_dir, framework, version)

        with StepLogger.for_project(
            project_name, self.console, log_dir=self.log_dir, runner=self.runner
        ) as log:
            result.log_path = log.log_path
            log.log(f"Scaffolding {framework} {version} into {project_dir}")

            metadata = self._load(log, framework, version)
            self._install(log, metadata, project_dir, variables)
            result.copy_report = self._copy(log, framework, project_dir, variables)

            result.post_install = PostInstallOrchestrator(
                log,
                start_services=self.config.start_services is not False,
                timeout=self.config.command_timeout,
            ).run(metadata.framework, project_dir, version)
            result.warnings.extend(result.post_install.warnings)

            step = log.start_step("Registering project and generating docker-compose")
            try:
                result.compose_file = self._finalize(
                    metadata, project_dir, project_name, version
                )
            except FinalizeError as e:
                logger.debug("Finalize failed for %s", project_dir, exc_info=True)
                log.warning_step(step, str(e))
                result.warnings.append(f"{step.name}: {e}")
            else:
                log.complete_step(step)

            result.elapsed = log.elapsed
        return result

    def _load(self, log: StepLogger, framework: str, version: str) -> Metadata:
        step = log.start_step("Loading template configuration")
        try:
            raw = self.resolver.resolve(framework, METADATA_FILENAME)
            metadata = parse_metadata(framework, raw)
            validate_version(metadata.framework, version, metadata.min_version)
        except AtempoError as e:
            log.error_step(step, e)
            raise
        log.complete_step(step)
        return metadata

    def _install(
        self,
        log: StepLogger,
        metadata: Metadata,
        project_dir: Path,
        variables: TemplateVariables,
    ) -> None:
        step = log.start_step(
            f"Installing {metadata.framework} {variables.version} application"
        )
        try:
            try:
                project_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise InstallError(
                    f"cannot create project directory {project_dir}: {e}"
                ) from e
            run_installer(
                metadata,
                project_dir,
                variables,
                log,
                step,
                docker_check=self.docker_check,
                timeout=self.config.command_timeout,
            )
        except InstallError as e:
            log.error_step(step, e)
            raise
        log.complete_step(step)

    def _copy(
        self,
        log: StepLogger,
        framework: str,
        project_dir: Path,
        variables: TemplateVariables,
    ) -> CopyReport:
        step = log.start_step("Copying template files")
        try:
            report = copy_assets(self.resolver, framework, project_dir, variables)
        except AtempoError as e:
            log.error_step(step, e)
            raise
        for category in report.skipped:
            log.log(f"No {category} template assets, skipped")
        log.complete_step(step)
        return report

    def _finalize(
        self, metadata: Metadata, project_dir: Path, project_name: str, version: str
    ) -> Path | None:
        registry = self.registry
        if registry is None:
            path = self.config.registry_path
            try:
                registry = ProjectRegistry(Path(path).expanduser() if path else None)
            except (OSError, sqlite3.Error) as e:
                raise FinalizeError(f"failed to open project registry: {e}") from e
        return finalize(
            metadata,
            project_dir,
            project_name,
            version,
            registry,
            self.compose_generator,
        )
