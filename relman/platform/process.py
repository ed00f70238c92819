"""Subprocess execution with Result-based error handling.

relman shells out to two command-line collaborators: ``docker buildx
imagetools`` for digest resolution and ``git`` for publishing. Both go through
``run``, which never raises for a failed, missing or hung command.

Usage:
    result = run(["docker", "buildx", "version"], cwd=Path("."), timeout=10)
    if isinstance(result, Err):
        console.error(f"{result.error}: {result.error.detail}")
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from relman.core.result import Err, Ok, Result

__all__ = ["NOT_RUN", "ProcessError", "run"]

# Return code recorded when the process could not be started or was killed on timeout.
NOT_RUN = -1


@dataclass(frozen=True, slots=True)
class ProcessError:
    """A command that failed, could not start, or timed out.

    Attributes:
        command: The command that was executed.
        returncode: Exit code of the process, or ``NOT_RUN``.
        stdout: Captured standard output (may be empty).
        stderr: Captured standard error, or the reason it never ran.
        timed_out: True when the command was killed after ``timeout``.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def detail(self) -> str:
        """Most useful text for a user: stderr, else stdout, else empty."""
        return self.stderr.strip() or self.stdout.strip()

    def __str__(self) -> str:
        program = " ".join(self.command[:3])
        if len(self.command) > 3:
            program += " ..."
        if self.timed_out:
            return f"{program} timed out"
        return f"{program} failed (exit {self.returncode})"


def _output(value: str | bytes | None) -> str:
    return value if isinstance(value, str) else ""


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Execute ``cmd`` in ``cwd`` and return its stdout.

    ``env`` replaces the process environment when given. ``timeout`` is in
    seconds; None waits forever.
    """
    command = tuple(cmd)
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        return Err(
            ProcessError(
                command=command,
                returncode=NOT_RUN,
                stdout=_output(e.stdout),
                stderr=f"Command timed out after {timeout}s",
                timed_out=True,
            )
        )
    except OSError as e:
        return Err(ProcessError(command=command, returncode=NOT_RUN, stdout="", stderr=str(e)))

    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=command,
                returncode=proc.returncode,
                stdout=proc.stdout,
                stderr=proc.stderr,
            )
        )
    return Ok(proc.stdout)
