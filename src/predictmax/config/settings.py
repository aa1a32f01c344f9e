"""TOML config loading and profiles."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

import structlog

from predictmax.errors import ConfigurationError

log = structlog.get_logger(__name__)

# Default config search path (project root or cwd)
_CONFIG_DIR = Path(__file__).resolve().parent.parent.parent.parent / "config"
_CWD_CONFIG = Path.cwd() / "config"

DEFAULT_BANKROLL = 10000.0


def _load_toml(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base. Override values take precedence."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _find_config_dir(config_dir: Path | None = None) -> Path:
    if config_dir is not None:
        return config_dir
    if _CWD_CONFIG.exists():
        return _CWD_CONFIG
    return _CONFIG_DIR


def load_config(profile: str | None = None, config_dir: Path | None = None) -> dict[str, Any]:
    """Load merged config from default.toml and optional profile overlay."""
    directory = _find_config_dir(config_dir)
    default_path = directory / "default.toml"
    if not default_path.exists():
        return {}
    base = _load_toml(default_path)
    if profile:
        profile_path = directory / f"{profile}.toml"
        if profile_path.exists():
            base = _deep_merge(base, _load_toml(profile_path))
        else:
            log.warning("profile_not_found", profile=profile, path=str(profile_path))
    return base


def get_settings(profile: str | None = None, config_dir: Path | None = None) -> Settings:
    """Return Settings instance from merged config."""
    return Settings.from_dict(load_config(profile, config_dir))


class Settings:
    """Application settings from TOML config."""

    def __init__(
        self,
        *,
        engine: dict[str, Any] | None = None,
        scanner: dict[str, Any] | None = None,
        search: dict[str, Any] | None = None,
        cache: dict[str, Any] | None = None,
        storage: dict[str, Any] | None = None,
        kalshi: dict[str, Any] | None = None,
        polymarket: dict[str, Any] | None = None,
        reasoning: dict[str, Any] | None = None,
        logging: dict[str, Any] | None = None,
    ):
        self.engine = engine or {}
        self.scanner = scanner or {}
        self.search = search or {}
        self.cache = cache or {}
        self.storage = storage or {}
        self.kalshi = kalshi or {}
        self.polymarket = polymarket or {}
        self.reasoning = reasoning or {}
        self.logging = logging or {}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Settings:
        return cls(
            engine=raw.get("engine"),
            scanner=raw.get("scanner"),
            search=raw.get("search"),
            cache=raw.get("cache"),
            storage=raw.get("storage"),
            kalshi=raw.get("kalshi"),
            polymarket=raw.get("polymarket"),
            reasoning=raw.get("reasoning"),
            logging=raw.get("logging"),
        )

    # Convenience accessors with defaults
    @property
    def default_bankroll(self) -> float:
        """Configured bankroll; invalid values fall back to DEFAULT_BANKROLL."""
        raw = self.engine.get("default_bankroll", DEFAULT_BANKROLL)
        try:
            return validate_bankroll(raw)
        except ConfigurationError as e:
            log.warning("invalid_default_bankroll", value=raw, error=str(e), fallback=DEFAULT_BANKROLL)
            return DEFAULT_BANKROLL

    @property
    def position_ceiling(self) -> float:
        return float(self.engine.get("position_ceiling", 10000))

    @property
    def scanner_top_k(self) -> int:
        return min(10, max(1, int(self.scanner.get("top_k", 10))))

    @property
    def scanner_alternatives(self) -> int:
        return max(0, int(self.scanner.get("alternatives", 2)))

    @property
    def search_default_limit(self) -> int:
        return int(self.search.get("default_limit", 30))

    @property
    def trending_ttl_sec(self) -> float:
        return float(self.cache.get("trending_ttl_sec", 60))

    @property
    def db_path(self) -> str:
        return self.storage.get("db_path", "data/predictmax.duckdb")

    @property
    def kalshi_api_base(self) -> str:
        return self.kalshi.get("api_base", "https://api.elections.kalshi.com/trade-api/v2")

    @property
    def kalshi_timeout_sec(self) -> float:
        return float(self.kalshi.get("timeout_sec", 30))

    @property
    def gamma_api_base(self) -> str:
        return self.polymarket.get("gamma_api_base", "https://gamma-api.polymarket.com")

    @property
    def polymarket_timeout_sec(self) -> float:
        return float(self.polymarket.get("timeout_sec", 30))

    @property
    def reasoning_enabled(self) -> bool:
        return bool(self.reasoning.get("enabled", False))

    @property
    def reasoning_api_base(self) -> str:
        return self.reasoning.get("api_base", "https://api.anthropic.com/v1")

    @property
    def reasoning_model(self) -> str:
        return self.reasoning.get("model", "claude-sonnet-4-20250514")

    @property
    def reasoning_max_tokens(self) -> int:
        return int(self.reasoning.get("max_tokens", 300))

    @property
    def reasoning_api_key(self) -> str | None:
        env_name = self.reasoning.get("api_key_env", "ANTHROPIC_API_KEY")
        return os.environ.get(env_name) or None

    @property
    def logging_level(self) -> str:
        return self.logging.get("level", "INFO").upper()

    @property
    def logging_format(self) -> str:
        return self.logging.get("format", "console")

    @property
    def logging_level_num(self) -> int:
        return getattr(logging, self.logging_level, logging.INFO)


def validate_bankroll(value: Any) -> float:
    """Return value as a positive float or raise ConfigurationError."""
    try:
        bankroll = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"bankroll must be numeric, got {value!r}") from e
    if bankroll <= 0:
        raise ConfigurationError(f"bankroll must be positive, got {bankroll}")
    return bankroll


def resolve_bankroll(bankroll: Any, fallback: float = DEFAULT_BANKROLL) -> float:
    """Caller bankroll if valid, else fallback (the configured default)."""
    if bankroll is None:
        return fallback
    try:
        return validate_bankroll(bankroll)
    except ConfigurationError as e:
        log.warning("invalid_bankroll", value=bankroll, error=str(e), fallback=fallback)
        return fallback


def configure_logging(settings: Settings) -> None:
    """Configure structlog with settings. Call once at application entry."""
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.logging_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(settings.logging_level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
