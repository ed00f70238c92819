"""Commit and push an updated channel."""

from __future__ import annotations

from pathlib import Path

from relman.core.result import Err, Ok, Result
from relman.git.repository import GitError, Repository
from relman.output.console import ConsoleProtocol
from relman.release.model import Channel
from relman.release.semver import SemVer


def commit_message(app_title: str, channel: Channel, version: SemVer) -> str:
    return (
        f"Update {app_title} ({channel}) to app version {version}\n"
        "\n"
        "Re-resolved image digests from registry"
    )


def publish_channel(
    repo: Repository,
    *,
    files: list[Path],
    message: str,
    console: ConsoleProtocol,
    push: bool = True,
) -> Result[bool, GitError]:
    """Stage and commit ``files``, then push.

    Returns Ok(False) without committing when none of the files changed.
    """
    if not repo.exists():
        return Err(GitError(command="rev-parse", message=f"not a git repository: {repo.path}"))

    changed = repo.has_changes(files)
    if isinstance(changed, Err):
        return changed
    if not changed.value:
        console.info("no changes to commit")
        return Ok(False)

    committed = repo.commit(message, files)
    if isinstance(committed, Err):
        return committed
    console.success("changes committed")

    if push:
        pushed = repo.push()
        if isinstance(pushed, Err):
            return Err(
                GitError(
                    command="push",
                    message=f"{pushed.error.message} (make sure you have push access)",
                    returncode=pushed.error.returncode,
                )
            )
        console.success("changes pushed")
    return Ok(True)
