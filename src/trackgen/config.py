"""Configuration loading and management for trackgen.

Configuration sources are merged in priority order (lowest to highest):
    1. Defaults (defined in the config dataclasses)
    2. Project config (./trackgen.toml) or an explicit config file
    3. Environment variables (TRACKGEN_* prefix)
    4. CLI overrides (passed as kwargs)

Relative paths are resolved against the directory of the config file that
declared them, or the current directory when no file is used.

Example config file::

    output_path = "analytics"

    [client]
    sdk = "node"
    language = "typescript"

    [tracking_plan]
    id = "rs_1b2c3d"
    workspace_slug = "acme"

    [scripts]
    after = "prettier --write analytics/"

Example:
    >>> config = load_config(production=True)
    >>> config.production
    True
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

from .codegen.targets import Target, resolve_target
from .exceptions import ConfigurationError, InvalidConfigError, InvalidPathError
from .plan.fetch import DEFAULT_API_URL, DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "trackgen.toml"
TOKEN_ENV_VAR = "TRACKGEN_TOKEN"
DEFAULT_TOKEN_FILE = Path("~/.trackgen-token")


@dataclass(frozen=True)
class ClientConfig:
    """Which SDK and language to generate for."""

    sdk: str = "python"
    language: str = "python"

    def __post_init__(self) -> None:
        # Fails fast on unknown combinations
        resolve_target(self.sdk, self.language)

    @property
    def target(self) -> Target:
        return resolve_target(self.sdk, self.language)


@dataclass(frozen=True)
class TrackingPlanConfig:
    """Where the tracking plan comes from.

    Attributes:
        id: Tracking plan id in the registry.
        workspace_slug: Registry workspace that owns the plan.
        path: Directory holding the cached ``plan.json``. Defaults to the
            output directory.
    """

    id: str = ""
    workspace_slug: str = ""
    path: Optional[Path] = None

    @property
    def is_remote(self) -> bool:
        return bool(self.id and self.workspace_slug)


@dataclass(frozen=True)
class ScriptsConfig:
    # Shell command run after a successful generation
    after: Optional[str] = None


@dataclass(frozen=True)
class ApiConfig:
    url: str = DEFAULT_API_URL
    timeout_seconds: float = DEFAULT_TIMEOUT
    token_file: Path = DEFAULT_TOKEN_FILE

    def __post_init__(self) -> None:
        if self.timeout_seconds <= 0:
            raise InvalidConfigError("api.timeout_seconds", self.timeout_seconds, "must be positive")
        if not self.url.startswith(("http://", "https://")):
            raise InvalidConfigError("api.url", self.url, "must be an http(s) URL")


@dataclass(frozen=True)
class GeneratorConfig:
    """Complete configuration of one generation run."""

    output_path: Path = Path("analytics")
    production: bool = False
    # Pull the latest plan from the registry before generating
    update: bool = True
    client: ClientConfig = field(default_factory=ClientConfig)
    tracking_plan: TrackingPlanConfig = field(default_factory=TrackingPlanConfig)
    scripts: ScriptsConfig = field(default_factory=ScriptsConfig)
    api: ApiConfig = field(default_factory=ApiConfig)

    def __post_init__(self) -> None:
        if not str(self.output_path).strip():
            raise InvalidConfigError("output_path", self.output_path, "must not be empty")

    @property
    def target(self) -> Target:
        return self.client.target

    @property
    def plan_directory(self) -> Path:
        return self.tracking_plan.path or self.output_path


_SECTIONS = {
    "client": ClientConfig,
    "tracking_plan": TrackingPlanConfig,
    "scripts": ScriptsConfig,
    "api": ApiConfig,
}

# TRACKGEN_* variable -> (section or None for top level, field)
_ENV_VARS = {
    "TRACKGEN_OUTPUT_PATH": (None, "output_path"),
    "TRACKGEN_PRODUCTION": (None, "production"),
    "TRACKGEN_UPDATE": (None, "update"),
    "TRACKGEN_SDK": ("client", "sdk"),
    "TRACKGEN_LANGUAGE": ("client", "language"),
    "TRACKGEN_PLAN_ID": ("tracking_plan", "id"),
    "TRACKGEN_WORKSPACE": ("tracking_plan", "workspace_slug"),
    "TRACKGEN_AFTER_SCRIPT": ("scripts", "after"),
    "TRACKGEN_API_URL": ("api", "url"),
    "TRACKGEN_API_TIMEOUT": ("api", "timeout_seconds"),
}


def load_config(config_file: Optional[Path] = None, **overrides: Any) -> GeneratorConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path. Without one,
            ``./trackgen.toml`` is used if present.
        **overrides: Top-level overrides (typically from CLI flags). None
            values are ignored.

    Returns:
        Validated GeneratorConfig instance

    Raises:
        InvalidPathError: If an explicit config file does not exist.
        ConfigurationError: If a file is not valid TOML or holds unknown keys.
        InvalidConfigError: If a value is invalid.
    """
    merged: Dict[str, Any] = {}
    base_dir = Path.cwd()

    if config_file is None:
        project_config = Path.cwd() / CONFIG_FILENAME
        if project_config.exists():
            config_file = project_config
    elif not Path(config_file).is_file():
        raise InvalidPathError(Path(config_file), "config file not found")

    if config_file is not None:
        config_file = Path(config_file)
        merged = _load_toml_file(config_file)
        base_dir = config_file.resolve().parent
        logger.debug("Loaded configuration from %s", config_file)

    for env_key, (section, name) in _ENV_VARS.items():
        value = os.environ.get(env_key)
        if value is None:
            continue
        target = merged.setdefault(section, {}) if section else merged
        if not isinstance(target, dict):
            raise ConfigurationError(f"[{section}] must be a table")
        target[name] = _parse_env_value(env_key, value, section, name)

    merged.update({k: v for k, v in overrides.items() if v is not None})

    return _build(merged, base_dir)


def _build(merged: Dict[str, Any], base_dir: Path) -> GeneratorConfig:
    kwargs: Dict[str, Any] = {}
    known = {f.name for f in fields(GeneratorConfig)}
    for key, value in merged.items():
        if key not in known:
            raise ConfigurationError(f"Unknown configuration key: {key}", details={"key": key})
        section_cls = _SECTIONS.get(key)
        if section_cls is None:
            kwargs[key] = value
            continue
        if isinstance(value, section_cls):
            kwargs[key] = value
            continue
        if not isinstance(value, dict):
            raise ConfigurationError(f"[{key}] must be a table", details={"key": key})
        try:
            kwargs[key] = section_cls(**value)
        except TypeError as e:
            raise ConfigurationError(f"Invalid [{key}] config: {e}", details={"key": key})

    try:
        config = GeneratorConfig(**kwargs)
    except TypeError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")
    return _resolve_paths(config, base_dir)


def _resolve_paths(config: GeneratorConfig, base_dir: Path) -> GeneratorConfig:
    def resolve(path: Any) -> Path:
        path = Path(path).expanduser()
        return path if path.is_absolute() else base_dir / path

    plan = config.tracking_plan
    if plan.path is not None:
        plan = replace(plan, path=resolve(plan.path))
    api = replace(config.api, token_file=Path(config.api.token_file).expanduser())
    return replace(config, output_path=resolve(config.output_path), tracking_plan=plan, api=api)


def _parse_env_value(env_key: str, value: str, section: Optional[str], name: str) -> Any:
    """Parse an environment variable string to the field's type."""
    if name in ("production", "update"):
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        if lower in ("false", "0", "no", "off"):
            return False
        raise InvalidConfigError(env_key, value, "expected true/false")
    if name == "timeout_seconds":
        try:
            return float(value)
        except ValueError:
            raise InvalidConfigError(env_key, value, "expected a number")
    return value


def resolve_token(config: GeneratorConfig) -> Optional[str]:
    """API token from TRACKGEN_TOKEN, else from ``api.token_file``.

    Returns None when neither yields a non-empty token.
    """
    token = os.environ.get(TOKEN_ENV_VAR, "").strip()
    if token:
        return token
    path = Path(config.api.token_file).expanduser()
    try:
        token = path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        return None
    except OSError as e:
        logger.warning("Could not read token file %s: %s", path, e)
        return None
    return token or None


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict.

    Raises:
        ConfigurationError: If TOML parsing fails
    """
    try:
        # Python 3.11+ has tomllib in stdlib
        import tomllib
    except ModuleNotFoundError:
        # Fallback to tomli for Python 3.9-3.10
        import tomli as tomllib  # type: ignore

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(
            f"Invalid config file '{path}': {e}", details={"path": str(path)}
        )
    except OSError as e:
        raise InvalidPathError(path, e.strerror or str(e))
