"""Process exit codes.

The numeric values are part of the command-line contract used by the CI jobs
that drive relman, so they must stay stable:
- 0: success, the channel files were updated (or would be, in dry-run)
- 1: unrecoverable error
- 2: nothing to do, the bundle is unchanged
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands."""

    OK = 0
    ERROR = 1
    NO_CHANGES = 2

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        """True for outcomes a caller should not treat as failures."""
        return self != ErrorCode.ERROR
