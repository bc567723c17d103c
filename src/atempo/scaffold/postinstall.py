"""Post-install orchestration: env files, local services, framework setup.

Every sub-step reports an :class:`Outcome`. Nothing in this stage aborts a
scaffold run; failures are collected and surfaced as warnings.
"""

from __future__ import annotations

import logging
import re
import shutil
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from atempo.errors import CommandError
from atempo.scaffold.templating import SOURCE_DIRNAME
from atempo.scaffold.versions import major_version
from atempo.steps import StepLogger

logger = logging.getLogger(__name__)

COMPOSE_FILENAME = "docker-compose.yml"
INFRA_COMPOSE_FILE = Path("infra") / "docker" / COMPOSE_FILENAME

ENV_SETUP = "Preparing environment"
START_SERVICES = "Starting Docker services"
FRAMEWORK_SETUP = "Running framework setup"


class OutcomeKind(Enum):
    SUCCESS = "success"
    WARNING = "warning"
    FATAL = "fatal"


@dataclass(frozen=True)
class Outcome:
    """Result of one post-install sub-step."""

    step: str
    kind: OutcomeKind
    reason: str | None = None

    @classmethod
    def success(cls, step: str) -> Outcome:
        return cls(step, OutcomeKind.SUCCESS)

    @classmethod
    def warning(cls, step: str, reason: str) -> Outcome:
        return cls(step, OutcomeKind.WARNING, reason)

    @classmethod
    def fatal(cls, step: str, error: BaseException | str) -> Outcome:
        return cls(step, OutcomeKind.FATAL, str(error))

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS


@dataclass
class PostInstallReport:
    """Aggregated outcomes of the post-install stage."""

    outcomes: list[Outcome] = field(default_factory=list)

    def add(self, outcome: Outcome) -> Outcome:
        self.outcomes.append(outcome)
        return outcome

    @property
    def ok(self) -> bool:
        return all(outcome.ok for outcome in self.outcomes)

    @property
    def warnings(self) -> list[str]:
        """Every non-success outcome, fatal ones downgraded to warnings."""
        return [
            f"{outcome.step}: {outcome.reason}"
            for outcome in self.outcomes
            if not outcome.ok
        ]


# --- environment setup ---------------------------------------------------

LARAVEL_ENV_REWRITES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"^DB_HOST=127\.0\.0\.1[ \t]*$", re.MULTILINE), "DB_HOST=mysql"),
    (re.compile(r"^DB_USERNAME=root[ \t]*$", re.MULTILINE), "DB_USERNAME=laravel"),
    (re.compile(r"^DB_PASSWORD=[ \t]*$", re.MULTILINE), "DB_PASSWORD=laravel"),
)


def rewrite_laravel_env(content: str) -> str:
    """Point a Laravel .env at the compose network's service hostnames."""
    for pattern, replacement in LARAVEL_ENV_REWRITES:
        content = pattern.sub(replacement, content)
    if not re.search(r"^REDIS_HOST=", content, re.MULTILINE):
        if content and not content.endswith("\n"):
            content += "\n"
        content += "REDIS_HOST=redis\n"
    return content


def setup_laravel_env(project_dir: Path, version: str) -> None:
    """Materialize src/.env from .env.example and rewrite service hosts."""
    src_dir = project_dir / SOURCE_DIRNAME
    env_example = src_dir / ".env.example"
    env_file = src_dir / ".env"

    if env_example.is_file() and not env_file.exists():
        shutil.copyfile(env_example, env_file)

    content = env_file.read_text(encoding="utf-8")
    env_file.write_text(rewrite_laravel_env(content), encoding="utf-8")


DJANGO_TEMPLATE_CONSTRAINT = "Django>=5.0,<6.0"


def pin_django_requirement(content: str, version: str) -> str:
    """Re-pin the template's Django constraint to the requested major."""
    major = major_version(version)
    return content.replace(
        DJANGO_TEMPLATE_CONSTRAINT, f"Django>={major}.0,<{major + 1}.0"
    )


def setup_django_env(project_dir: Path, version: str) -> None:
    """Copy infra/docker/requirements.txt into src/ with Django re-pinned."""
    requirements_src = project_dir / "infra" / "docker" / "requirements.txt"
    if not requirements_src.is_file():
        return
    requirements_dst = project_dir / SOURCE_DIRNAME / "requirements.txt"
    requirements_dst.parent.mkdir(parents=True, exist_ok=True)
    content = requirements_src.read_text(encoding="utf-8")
    requirements_dst.write_text(
        pin_django_requirement(content, version), encoding="utf-8"
    )


# --- framework plans -----------------------------------------------------

EnvSetup = Callable[[Path, str], None]


@dataclass(frozen=True)
class FrameworkPlan:
    """Post-install work for one framework."""

    env_setup: EnvSetup
    service: str  # compose service the setup commands run in
    setup_commands: tuple[tuple[str, ...], ...]


FRAMEWORK_PLANS: dict[str, FrameworkPlan] = {
    "laravel": FrameworkPlan(
        env_setup=setup_laravel_env,
        service="app",
        setup_commands=(
            ("composer", "install"),
            ("php", "artisan", "key:generate"),
            ("php", "artisan", "migrate", "--force"),
        ),
    ),
    "django": FrameworkPlan(
        env_setup=setup_django_env,
        service="web",
        setup_commands=(
            ("pip", "install", "-r", "requirements.txt"),
            ("python", "manage.py", "migrate"),
            ("python", "manage.py", "collectstatic", "--noinput"),
        ),
    ),
}


def compose_args(project_dir: Path) -> list[str]:
    """``docker-compose`` argv prefix for a project.

    Uses the project-root compose file when one exists, else the template's
    infra compose file.
    """
    if (project_dir / COMPOSE_FILENAME).is_file():
        return ["docker-compose"]
    if (project_dir / INFRA_COMPOSE_FILE).is_file():
        return ["docker-compose", "-f", INFRA_COMPOSE_FILE.as_posix()]
    return ["docker-compose"]


class PostInstallOrchestrator:
    """Runs EnvSetup, StartServices and FrameworkSetup for a framework."""

    def __init__(
        self,
        log: StepLogger,
        start_services: bool = True,
        timeout: float | None = None,
        plans: dict[str, FrameworkPlan] | None = None,
    ) -> None:
        self.log = log
        self.start_services = start_services
        self.timeout = timeout
        self.plans = FRAMEWORK_PLANS if plans is None else plans

    def run(
        self, framework: str, project_dir: Path, version: str
    ) -> PostInstallReport:
        report = PostInstallReport()
        plan = self.plans.get(framework)
        if plan is None:
            self.log.log(f"No post-install steps for {framework}")
            return report

        report.add(self.env_setup(plan, project_dir, version))

        if not self.start_services:
            self.log.log("Service startup disabled by configuration")
            return report

        services = report.add(self.start(project_dir))
        if not services.ok:
            report.add(
                Outcome.warning(
                    FRAMEWORK_SETUP,
                    "skipped because services are not running",
                )
            )
            return report

        report.add(self.framework_setup(plan, project_dir))
        return report

    def env_setup(
        self, plan: FrameworkPlan, project_dir: Path, version: str
    ) -> Outcome:
        step = self.log.start_step(ENV_SETUP)
        try:
            plan.env_setup(project_dir, version)
        except (OSError, ValueError) as e:
            logger.debug("Environment setup failed in %s", project_dir, exc_info=True)
            self.log.warning_step(step, str(e))
            return Outcome.fatal(ENV_SETUP, e)
        self.log.complete_step(step)
        return Outcome.success(ENV_SETUP)

    def start(self, project_dir: Path) -> Outcome:
        step = self.log.start_step(START_SERVICES)
        argv = [*compose_args(project_dir), "up", "-d"]
        try:
            self.log.run_command(step, argv, project_dir, timeout=self.timeout)
        except CommandError as e:
            message = (
                "Docker not available or failed to start services - "
                f"run '{' '.join(argv)}' manually"
            )
            self.log.log(str(e))
            self.log.warning_step(step, message)
            return Outcome.warning(START_SERVICES, message)
        self.log.complete_step(step)
        return Outcome.success(START_SERVICES)

    def framework_setup(self, plan: FrameworkPlan, project_dir: Path) -> Outcome:
        """Run each setup command; a failure is recorded and the loop continues."""
        step = self.log.start_step(FRAMEWORK_SETUP)
        prefix = [*compose_args(project_dir), "exec", "-T", plan.service]
        failed: list[str] = []
        for command in plan.setup_commands:
            argv = [*prefix, *command]
            try:
                self.log.run_command(step, argv, project_dir, timeout=self.timeout)
            except CommandError as e:
                self.log.log(str(e))
                failed.append(" ".join(argv))

        if failed:
            message = "; ".join(
                f"command failed: {cmd} - you may need to run this manually"
                for cmd in failed
            )
            self.log.warning_step(step, message)
            return Outcome.warning(FRAMEWORK_SETUP, message)
        self.log.complete_step(step)
        return Outcome.success(FRAMEWORK_SETUP)
