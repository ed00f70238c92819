from __future__ import annotations

# GitHub REST API reads (package versions, changelog contents)
HTTP_TIMEOUT_SECONDS = 10.0

# docker buildx imagetools inspect
REGISTRY_INSPECT_TIMEOUT_SECONDS = 60.0
