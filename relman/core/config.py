"""Typed configuration loading and access.

Configuration lives in an optional ``relman.toml`` at the store root:

    [app]
    title = "Pluto"
    services = ["backend", "discovery", "frontend", "grafana", "prometheus"]

    [registry]
    host = "ghcr.io/plutomining"
    owner = "plutomining"
    image_prefix = "pluto-"

    [channels]
    stable = "pluto-mining-pluto"
    beta = "pluto-mining-pluto-next"

    [changelog]
    owner = "PlutoMining"
    repo = "pluto"
    path = "CHANGELOG.md"

Environment variables win over the file: ``DOCKER_REGISTRY``,
``PLUTO_REPO_OWNER``, ``PLUTO_REPO_NAME`` and ``GITHUB_TOKEN``. A ``.env``
file next to ``relman.toml`` is loaded first without overriding variables that
are already set.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path

from dotenv import load_dotenv

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_str, get_str_list, get_table

__all__ = [
    "AppConfig",
    "ChangelogConfig",
    "ChannelsConfig",
    "Config",
    "ConfigError",
    "RegistryConfig",
    "CONFIG_FILE_NAME",
    "DEFAULT_SERVICES",
    "load_config",
    "load_store_config",
]

CONFIG_FILE_NAME = "relman.toml"
ENV_FILE_NAME = ".env"

DEFAULT_SERVICES: tuple[str, ...] = ("backend", "discovery", "frontend", "grafana", "prometheus")


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None

    @property
    def hint(self) -> str | None:
        return str(self.path) if self.path is not None else None


@dataclass(frozen=True, slots=True)
class AppConfig:
    """The application bundle being released."""

    title: str = "Pluto"
    services: tuple[str, ...] = DEFAULT_SERVICES
    manifest_file: str = "umbrel-app.yml"
    compose_file: str = "docker-compose.yml"


@dataclass(frozen=True, slots=True)
class RegistryConfig:
    """Where service images are published."""

    host: str = "ghcr.io/plutomining"
    owner: str = "plutomining"
    image_prefix: str = "pluto-"
    api_url: str = "https://api.github.com"

    def package_name(self, service: str) -> str:
        return f"{self.image_prefix}{service}"

    def image_repository(self, service: str) -> str:
        return f"{self.host}/{self.package_name(service)}"


@dataclass(frozen=True, slots=True)
class ChannelsConfig:
    """App directory per channel, relative to the store root."""

    stable: str = "pluto-mining-pluto"
    beta: str = "pluto-mining-pluto-next"

    def directory(self, channel: str) -> str:
        return self.stable if channel == "stable" else self.beta


@dataclass(frozen=True, slots=True)
class ChangelogConfig:
    """Upstream repository whose changelog feeds stable release notes."""

    owner: str = "PlutoMining"
    repo: str = "pluto"
    path: str = "CHANGELOG.md"


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    app: AppConfig = field(default_factory=AppConfig)
    registry: RegistryConfig = field(default_factory=RegistryConfig)
    channels: ChannelsConfig = field(default_factory=ChannelsConfig)
    changelog: ChangelogConfig = field(default_factory=ChangelogConfig)
    github_token: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML)."""
        app: StrDict = get_table(data, "app") or {}
        registry: StrDict = get_table(data, "registry") or {}
        channels: StrDict = get_table(data, "channels") or {}
        changelog: StrDict = get_table(data, "changelog") or {}

        services = get_str_list(app, "services")
        if "services" in app and not services:
            raise ValueError("app.services must be a non-empty list of service names")

        defaults = cls()
        return cls(
            app=AppConfig(
                title=get_str(app, "title") or defaults.app.title,
                services=tuple(services) if services else defaults.app.services,
                manifest_file=get_str(app, "manifest_file") or defaults.app.manifest_file,
                compose_file=get_str(app, "compose_file") or defaults.app.compose_file,
            ),
            registry=RegistryConfig(
                host=(get_str(registry, "host") or defaults.registry.host).rstrip("/"),
                owner=get_str(registry, "owner") or defaults.registry.owner,
                image_prefix=get_str(registry, "image_prefix") or defaults.registry.image_prefix,
                api_url=(get_str(registry, "api_url") or defaults.registry.api_url).rstrip("/"),
            ),
            channels=ChannelsConfig(
                stable=get_str(channels, "stable") or defaults.channels.stable,
                beta=get_str(channels, "beta") or defaults.channels.beta,
            ),
            changelog=ChangelogConfig(
                owner=get_str(changelog, "owner") or defaults.changelog.owner,
                repo=get_str(changelog, "repo") or defaults.changelog.repo,
                path=get_str(changelog, "path") or defaults.changelog.path,
            ),
        )

    def with_env(self, env: Mapping[str, str]) -> Config:
        """Apply environment overrides."""
        registry = self.registry
        host = env.get("DOCKER_REGISTRY", "").strip()
        if host:
            registry = replace(registry, host=host.rstrip("/"))

        changelog = self.changelog
        owner = env.get("PLUTO_REPO_OWNER", "").strip()
        if owner:
            changelog = replace(changelog, owner=owner)
        repo = env.get("PLUTO_REPO_NAME", "").strip()
        if repo:
            changelog = replace(changelog, repo=repo)

        token = env.get("GITHUB_TOKEN", "").strip() or None
        return replace(self, registry=registry, changelog=changelog, github_token=token)


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to relman.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_store_config(
    store_root: Path,
    env: Mapping[str, str] | None = None,
) -> Result[Config, ConfigError]:
    """Load the config for a store: ``.env``, then ``relman.toml``, then env overrides.

    A missing ``relman.toml`` yields the defaults. When ``env`` is None the
    process environment is used, after ``.env`` has been merged into it.
    """
    env_file = store_root / ENV_FILE_NAME
    if env is None:
        if env_file.is_file():
            load_dotenv(env_file, override=False)
        env = os.environ

    config_path = store_root / CONFIG_FILE_NAME
    if config_path.exists():
        loaded = load_config(config_path)
        if isinstance(loaded, Err):
            return loaded
        config = loaded.value
    else:
        config = Config()

    return Ok(config.with_env(env))
