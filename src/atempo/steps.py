"""Step logging: timed pipeline steps, a per-run log file, and command capture."""

from __future__ import annotations

import logging
import subprocess
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from types import TracebackType
from typing import IO, TextIO

from rich.console import Console
from rich.markup import escape

from atempo.errors import CommandError, LoggerError

logger = logging.getLogger(__name__)

LOG_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"

# (stream label, line) -> None
LineSink = Callable[[str, str], None]

# (argv, cwd, sink, timeout) -> exit code
CommandRunner = Callable[[Sequence[str], Path, LineSink, float | None], int]


class StepStatus(Enum):
    """Lifecycle of a pipeline step."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETE = "complete"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Step:
    """A named, timed unit of pipeline work."""

    name: str
    status: StepStatus = StepStatus.PENDING
    started_at: datetime | None = None
    duration: float | None = None  # seconds
    error: str | None = None
    _start: float = field(default=0.0, repr=False)

    def start(self) -> None:
        self.status = StepStatus.RUNNING
        self.started_at = datetime.now()
        self._start = time.monotonic()

    def finish(self, status: StepStatus, error: str | None = None) -> None:
        self.status = status
        self.duration = time.monotonic() - self._start
        self.error = error


def _drain(stream: IO[str], label: str, sink: LineSink) -> None:
    """Forward each line of a pipe to the sink until EOF."""
    with stream:
        for line in stream:
            sink(label, line.rstrip("\r\n"))


def spawn_command(
    argv: Sequence[str],
    cwd: Path,
    sink: LineSink,
    timeout: float | None = None,
) -> int:
    """Run a process, streaming stdout and stderr to ``sink``.

    Both pipes are drained on their own threads so a chatty process never
    blocks on a full pipe buffer. Returns the exit code. Raises OSError if
    the process cannot be started and subprocess.TimeoutExpired (after
    killing the process) if it outlives ``timeout``.
    """
    proc = subprocess.Popen(
        list(argv),
        cwd=cwd,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        errors="replace",
    )
    assert proc.stdout is not None and proc.stderr is not None
    readers = [
        threading.Thread(target=_drain, args=(stream, label, sink), daemon=True)
        for stream, label in ((proc.stdout, "STDOUT"), (proc.stderr, "STDERR"))
    ]
    for reader in readers:
        reader.start()

    try:
        returncode = proc.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        proc.kill()
        proc.wait()
        raise
    finally:
        for reader in readers:
            reader.join()

    return returncode


def get_logs_dir() -> Path:
    """Get path to the global log directory: ~/.atempo/logs/."""
    return Path.home() / ".atempo" / "logs"


def log_files(project_name: str, log_dir: Path | None = None) -> list[Path]:
    """All log files for a project, oldest first."""
    directory = log_dir or get_logs_dir()
    if not directory.is_dir():
        return []
    return sorted(directory.glob(f"{project_name}_*.log"))


def latest_log_file(project_name: str, log_dir: Path | None = None) -> Path | None:
    """Most recent log file for a project, or None."""
    files = log_files(project_name, log_dir)
    return files[-1] if files else None


class StepLogger:
    """Records pipeline steps to a log file and renders progress on a console.

    One instance serves one scaffold run; use it as a context manager so the
    log file is closed (with its footer) when the run ends.
    """

    def __init__(
        self,
        project_name: str,
        log_path: Path | None,
        console: Console,
        runner: CommandRunner | None = None,
    ) -> None:
        self.project_name = project_name
        self.log_path = log_path
        self.console = console
        self._runner = runner or spawn_command
        self._log_file: TextIO | None = None
        self._lock = threading.Lock()
        self._started = time.monotonic()
        self.steps: list[Step] = []

    @classmethod
    def for_project(
        cls,
        project_name: str,
        console: Console,
        log_dir: Path | None = None,
        runner: CommandRunner | None = None,
    ) -> StepLogger:
        """Create a logger writing to ``<log_dir>/<project>_<timestamp>.log``."""
        directory = log_dir or get_logs_dir()
        timestamp = datetime.now().strftime(LOG_TIMESTAMP_FORMAT)
        log_path = directory / f"{project_name}_{timestamp}.log"
        return cls(project_name, log_path, console, runner=runner)

    def __enter__(self) -> StepLogger:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def open(self) -> None:
        """Open the log file and write its header.

        Raises LoggerError if the log directory or file cannot be created.
        """
        if self.log_path is None or self._log_file is not None:
            return
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            self._log_file = open(self.log_path, "w", encoding="utf-8")
        except OSError as e:
            raise LoggerError(f"failed to create logger: {e}") from e
        self._log_file.write(
            "========================================\n"
            "Atempo Project Setup Log\n"
            "========================================\n"
            f"Project: {self.project_name}\n"
            f"Started: {datetime.now():%Y-%m-%d %H:%M:%S}\n"
            "========================================\n\n"
        )
        self._log_file.flush()

    def close(self) -> None:
        """Write the footer and close the log file."""
        if self._log_file is None:
            return
        self._log_file.write(
            "\n========================================\n"
            f"Setup finished in {self.elapsed:.1f}s\n"
            f"Log file: {self.log_path}\n"
            "========================================\n"
        )
        self._log_file.close()
        self._log_file = None

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self._started

    @property
    def warnings(self) -> list[str]:
        """Warning messages of every step that ended in a warning."""
        return [
            f"{step.name}: {step.error}"
            for step in self.steps
            if step.status is StepStatus.WARNING and step.error
        ]

    def log(self, message: str) -> None:
        """Append a timestamped line to the log file."""
        logger.debug("%s", message)
        if self._log_file is None:
            return
        stamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
        with self._lock:
            self._log_file.write(f"[{stamp}] {message}\n")
            self._log_file.flush()

    def start_step(self, name: str) -> Step:
        step = Step(name=name)
        step.start()
        self.steps.append(step)
        self.log(f"STARTED: {name}")
        self.console.print(f"[cyan]→[/cyan] {escape(name)}...")
        return step

    def complete_step(self, step: Step) -> None:
        step.finish(StepStatus.COMPLETE)
        self.log(f"COMPLETED: {step.name} (took {step.duration:.3f}s)")
        self.console.print(
            f"[green]✓[/green] {escape(step.name)} [dim]({step.duration:.1f}s)[/dim]"
        )

    def warning_step(self, step: Step, message: str) -> None:
        step.finish(StepStatus.WARNING, message)
        self.log(f"WARNING: {step.name} (took {step.duration:.3f}s) - {message}")
        self.console.print(
            f"[yellow]⚠[/yellow] {escape(step.name)} "
            f"[dim]({step.duration:.1f}s)[/dim] - {escape(message)}"
        )

    def error_step(self, step: Step, error: BaseException | str) -> None:
        step.finish(StepStatus.ERROR, str(error))
        self.log(f"ERROR: {step.name} (took {step.duration:.3f}s) - {error}")
        self.console.print(
            f"[red]✗[/red] {escape(step.name)} "
            f"[dim]({step.duration:.1f}s)[/dim] - {escape(str(error))}"
        )

    def run_command(
        self,
        step: Step,
        argv: Sequence[str],
        cwd: Path,
        timeout: float | None = None,
    ) -> None:
        """Run an external command with its output captured into the log.

        Raises CommandError if the command cannot start, exits non-zero, or
        times out.
        """
        self.log(f"EXECUTING ({step.name}): {' '.join(argv)}")
        self.log(f"WORKING DIR: {cwd}")

        def sink(label: str, line: str) -> None:
            self.log(f"{label}: {line}")

        try:
            returncode = self._runner(argv, cwd, sink, timeout)
        except subprocess.TimeoutExpired as e:
            self.log(f"COMMAND TIMED OUT after {timeout}s")
            raise CommandError(argv, reason=f"timed out after {timeout}s") from e
        except OSError as e:
            self.log(f"COMMAND FAILED TO START: {e}")
            raise CommandError(argv, reason=str(e)) from e

        if returncode != 0:
            self.log(f"COMMAND FAILED: exit status {returncode}")
            raise CommandError(argv, returncode=returncode)
        self.log("COMMAND COMPLETED SUCCESSFULLY")
