"""Configuration for the content sync system."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

TRUTHY = {"1", "true", "yes", "on"}

# Environment variable -> SyncConfig field
ENV_FIELDS = {
    "KIRBY_URL": "api_base_url",
    "CONTENT_DIR": "content_dir",
    "SYNC_STATE_FILE": "state_file",
    "BUILD_CACHE_DIR": "cache_dir",
}


def parse_bool(value: Any) -> bool:
    """Interpret a config or environment value as a boolean."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in TRUTHY


@dataclass
class SyncConfig:
    """Settings for one sync run.

    Built once (from YAML, the environment, or both) and passed explicitly to
    the orchestrator and lifecycle adapter.
    """

    api_base_url: str = ""
    content_dir: Path = Path("public/content")
    state_file: Path = Path(".cache/kirby-sync/sync-state.json")
    cache_dir: Path = Path(".cache/build-cache")
    force_full_sync: bool = False
    retries: int = 3
    retry_delay: float = 1.0  # seconds
    backoff: float = 1.0
    timeout: float = 30.0
    strict_writes: bool = True
    skip_missing_pages: bool = True
    dev_mode: bool = False
    tolerant: bool = False  # hosting context where a failed sync must not fail the build
    verbose: bool = False

    def __post_init__(self) -> None:
        self.api_base_url = (self.api_base_url or "").rstrip("/")
        self.content_dir = Path(self.content_dir)
        self.state_file = Path(self.state_file)
        self.cache_dir = Path(self.cache_dir)

    def validate(self) -> "SyncConfig":
        """Check required settings.

        Raises:
            ValueError: If the CMS URL is missing or a numeric setting is invalid
        """
        if not self.api_base_url:
            raise ValueError(
                "Missing Kirby CMS URL. Set the KIRBY_URL environment variable "
                "or api_base_url in the config file."
            )
        if self.retries < 1:
            raise ValueError("retries must be at least 1")
        if self.retry_delay < 0 or self.timeout <= 0:
            raise ValueError("retry_delay must be >= 0 and timeout > 0")
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for YAML serialization."""
        data: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            data[f.name] = str(value) if isinstance(value, Path) else value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SyncConfig":
        """Create from dictionary, ignoring unknown keys."""
        known = {f.name: f for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key not in known or value is None:
                continue
            default = known[key].default
            if isinstance(default, bool):
                value = parse_bool(value)
            elif isinstance(default, int):
                value = int(value)
            elif isinstance(default, float):
                value = float(value)
            kwargs[key] = value
        return cls(**kwargs)

    @classmethod
    def load(cls, config_path: Path) -> "SyncConfig":
        """Load configuration from a YAML file."""
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)

    def save(self, config_path: Path) -> None:
        """Save configuration to a YAML file."""
        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    @classmethod
    def from_env(
        cls,
        base: "SyncConfig | None" = None,
        environ: Mapping[str, str] | None = None,
    ) -> "SyncConfig":
        """Overlay environment variables onto a config.

        Args:
            base: Config to start from (defaults if not provided)
            environ: Environment mapping (loads .env and uses os.environ if not provided)

        Returns:
            New SyncConfig with environment values applied
        """
        if environ is None:
            load_dotenv()
            environ = os.environ
        config = base or cls()

        overrides: dict[str, Any] = {}
        for var, name in ENV_FIELDS.items():
            if environ.get(var):
                overrides[name] = environ[var]

        if "FORCE_FULL_SYNC" in environ:
            overrides["force_full_sync"] = parse_bool(environ["FORCE_FULL_SYNC"])
        if environ.get("NODE_ENV"):
            overrides["dev_mode"] = environ["NODE_ENV"].strip().lower() == "development"
        if "NETLIFY" in environ:
            overrides["tolerant"] = parse_bool(environ["NETLIFY"])
        if "DEBUG" in environ:
            overrides["verbose"] = parse_bool(environ["DEBUG"])

        return replace(config, **overrides)

    @classmethod
    def resolve(
        cls,
        config_path: Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> "SyncConfig":
        """Build a config from an optional YAML file plus the environment."""
        base = None
        if config_path is not None and Path(config_path).exists():
            base = cls.load(config_path)
        return cls.from_env(base, environ)
