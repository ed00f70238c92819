"""Application services for relman.

Services coordinate the pure release engine (``relman.release``) with the
outside world: the container registry, the upstream changelog, the channel
files on disk and git.
"""

from relman.services.updater import (
    ChannelFiles,
    UpdatePlan,
    apply_update,
    plan_update,
    update_channel,
)

__all__ = [
    "ChannelFiles",
    "UpdatePlan",
    "apply_update",
    "plan_update",
    "update_channel",
]
