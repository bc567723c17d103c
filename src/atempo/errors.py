"""Error taxonomy for the scaffold pipeline."""

from __future__ import annotations

from collections.abc import Sequence


class AtempoError(Exception):
    """Base class for errors that abort a scaffold run.

    ``stage`` names the pipeline stage that failed so the CLI can report it.
    """

    stage: str = "scaffold"

    def __init__(self, message: str, stage: str | None = None) -> None:
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class ResolutionError(AtempoError):
    """Raised when a template file or directory is not found in any source."""

    stage = "resolve"

    def __init__(self, framework: str, relative_path: str) -> None:
        self.framework = framework
        self.relative_path = relative_path
        super().__init__(
            f"template {relative_path} not found for framework {framework}"
        )


class ValidationError(AtempoError):
    """Raised when the requested version is incompatible with the framework."""

    stage = "validate"


class InstallError(AtempoError):
    """Raised when the installer process fails or Docker is unavailable."""

    stage = "install"


class CopyError(AtempoError):
    """Raised when a required asset is missing or a write fails."""

    stage = "copy"


class CommandError(AtempoError):
    """Raised when an external command cannot be spawned or exits non-zero."""

    stage = "command"

    def __init__(
        self,
        argv: Sequence[str],
        returncode: int | None = None,
        reason: str | None = None,
    ) -> None:
        self.argv = tuple(argv)
        self.returncode = returncode
        command = " ".join(self.argv)
        if reason is None:
            reason = f"exit status {returncode}"
        super().__init__(f"command '{command}' failed: {reason}")


class MetadataError(AtempoError):
    """Raised when a framework's atempo.json exists but cannot be parsed."""

    stage = "resolve"


class ComposeError(AtempoError):
    """Raised when docker-compose.yml cannot be generated from atempo.json."""

    stage = "finalize"


class FinalizeError(AtempoError):
    """Raised when registration or compose generation fails.

    The project is usable at this point, so the pipeline reports it as a
    warning instead of aborting.
    """

    stage = "finalize"


class LoggerError(AtempoError):
    """Raised when the per-run log file cannot be created."""

    stage = "setup"
