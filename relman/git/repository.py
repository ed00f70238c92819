"""Git repository abstraction.

Only the operations the publishing step needs: detect the repository, check
whether files differ from HEAD, stage, commit and push. All operations
return Result types.

Usage:
    repo = Repository(store_root)
    match repo.commit("Update app", paths):
        case Ok(_):
            repo.push()
        case Err(e):
            print(e.message)
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from relman.core.result import Err, Ok, Result
from relman.platform.process import ProcessError
from relman.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0

__all__ = ["GitError", "Repository"]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git command that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1

    @property
    def hint(self) -> str:
        return f"git {self.command}"


class Repository:
    """A git working tree rooted at ``path``."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        """Check if ``path`` is inside a git work tree."""
        result = self._run(["rev-parse", "--is-inside-work-tree"])
        return isinstance(result, Ok) and result.value.strip() == "true"

    def has_changes(self, paths: list[Path]) -> Result[bool, GitError]:
        """True if any of ``paths`` differs from the index or is untracked."""
        rel = [str(p) for p in paths]
        status = self._run(["status", "--porcelain", "--", *rel])
        if isinstance(status, Err):
            return Err(self._error("status", status.error))
        return Ok(status.value.strip() != "")

    def add(self, paths: list[Path]) -> Result[None, GitError]:
        result = self._run(["add", "--", *[str(p) for p in paths]])
        if isinstance(result, Err):
            return Err(self._error("add", result.error))
        return Ok(None)

    def commit(self, message: str, paths: list[Path]) -> Result[None, GitError]:
        """Stage ``paths`` and commit them with ``message``."""
        added = self.add(paths)
        if isinstance(added, Err):
            return added
        result = self._run(["commit", "-m", message, "--", *[str(p) for p in paths]])
        if isinstance(result, Err):
            return Err(self._error("commit", result.error))
        return Ok(None)

    def push(self) -> Result[None, GitError]:
        result = self._run(["push"])
        if isinstance(result, Err):
            return Err(self._error("push", result.error))
        return Ok(None)

    def _error(self, command: str, error: ProcessError) -> GitError:
        return GitError(
            command=command,
            message=error.detail or f"git {command} failed",
            returncode=error.returncode,
        )

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        command = args[0] if args else ""
        timeout = (
            _GIT_NETWORK_TIMEOUT_SECONDS
            if command in {"fetch", "pull", "push", "clone"}
            else _GIT_TIMEOUT_SECONDS
        )
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path, timeout=timeout)
