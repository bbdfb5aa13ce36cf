"""TOML config loading, profiles, and environment secrets."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

import structlog
from dotenv import load_dotenv

# Default config search path (project root or cwd)
_CONFIG_DIR = Path(__file__).resolve().parent.parent.parent.parent / "config"
_CWD_CONFIG = Path.cwd() / "config"


def _overlay(base: dict[str, Any], profile: dict[str, Any]) -> dict[str, Any]:
    """Profile tables are merged key by key into the default tables; scalars replace."""
    merged = dict(base)
    for key, value in profile.items():
        current = merged.get(key)
        merged[key] = _overlay(current, value) if isinstance(current, dict) and isinstance(value, dict) else value
    return merged


def _find_config_dir(config_dir: Path | None = None) -> Path:
    if config_dir is not None:
        return config_dir
    if _CWD_CONFIG.exists():
        return _CWD_CONFIG
    return _CONFIG_DIR


def load_config(profile: str | None = None, config_dir: Path | None = None) -> dict[str, Any]:
    """Load default.toml, then overlay <profile>.toml when it exists. No default.toml -> {}."""
    directory = _find_config_dir(config_dir)
    merged: dict[str, Any] = {}
    names = ["default"] + ([profile] if profile else [])
    for name in names:
        path = directory / f"{name}.toml"
        if not path.exists():
            if name == "default":
                return {}
            continue
        with open(path, "rb") as f:
            merged = _overlay(merged, tomllib.load(f))
    return merged


def get_settings(profile: str | None = None, config_dir: Path | None = None) -> Settings:
    """Return Settings instance from merged config. Loads .env into the environment first."""
    load_dotenv()
    raw = load_config(profile, config_dir)
    return Settings.from_dict(raw)


class Settings:
    """Application settings from TOML config plus API keys from the environment."""

    def __init__(
        self,
        *,
        bot: dict[str, Any] | None = None,
        stream: dict[str, Any] | None = None,
        manifold: dict[str, Any] | None = None,
        oracle: dict[str, Any] | None = None,
        storage: dict[str, Any] | None = None,
        observer: dict[str, Any] | None = None,
        logging: dict[str, Any] | None = None,
    ):
        self.bot = bot or {}
        self.stream = stream or {}
        self.manifold = manifold or {}
        self.oracle = oracle or {}
        self.storage = storage or {}
        self.observer = observer or {}
        self.logging = logging or {}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Settings:
        return cls(
            bot=raw.get("bot"),
            stream=raw.get("stream"),
            manifold=raw.get("manifold"),
            oracle=raw.get("oracle"),
            storage=raw.get("storage"),
            observer=raw.get("observer"),
            logging=raw.get("logging"),
        )

    # Convenience accessors with defaults
    @property
    def bet_amount(self) -> float:
        return float(self.bot.get("bet_amount", 10.0))

    @property
    def reversion_amount(self) -> float:
        return float(self.bot.get("reversion_amount", 25.0))

    @property
    def min_edge(self) -> float:
        return float(self.bot.get("min_edge", 0.10))

    @property
    def min_liquidity(self) -> float:
        return float(self.bot.get("min_liquidity", 100.0))

    @property
    def cache_ttl_sec(self) -> float:
        return float(self.bot.get("cache_ttl_sec", 24 * 60 * 60))

    @property
    def max_concurrent_evaluations(self) -> int:
        return int(self.bot.get("max_concurrent_evaluations", 0))

    @property
    def ws_url(self) -> str:
        return self.stream.get("ws_url", "wss://api.manifold.markets/ws")

    @property
    def ping_interval_sec(self) -> float:
        return float(self.stream.get("ping_interval_sec", 20.0))

    @property
    def stale_timeout_sec(self) -> float:
        return float(self.stream.get("stale_timeout_sec", 90.0))

    @property
    def reconnect_delay_sec(self) -> float:
        return float(self.stream.get("reconnect_delay_sec", 3.0))

    @property
    def manifold_api_base(self) -> str:
        return self.manifold.get("api_base", "https://api.manifold.markets/v0")

    @property
    def manifold_api_key(self) -> str:
        return os.environ.get("MANIFOLD_API_KEY", "")

    @property
    def oracle_api_url(self) -> str:
        return self.oracle.get("api_url", "https://api.x.ai/v1/responses")

    @property
    def oracle_model(self) -> str:
        return self.oracle.get("model", "grok-4-1-fast")

    @property
    def oracle_timeout_sec(self) -> float:
        return float(self.oracle.get("timeout_sec", 120.0))

    @property
    def oracle_api_key(self) -> str:
        return os.environ.get("XAI_API_KEY", "")

    @property
    def cache_path(self) -> str:
        return self.storage.get("cache_path", "data/analyzed_cache.json")

    @property
    def journal_path(self) -> str:
        return self.storage.get("journal_path", "data/edgewatch.duckdb")

    @property
    def observer_max_entries(self) -> int:
        return int(self.observer.get("max_entries", 200))

    @property
    def logging_level(self) -> str:
        return self.logging.get("level", "INFO").upper()

    @property
    def logging_format(self) -> str:
        return self.logging.get("format", "console")

    @property
    def logging_level_num(self) -> int:
        return getattr(logging, self.logging_level, logging.INFO)


def _tag_bot_kind(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Bot log entries carry kind=info|trade|error; show it ahead of the message on the console."""
    kind = event_dict.pop("kind", None)
    if kind is not None:
        event_dict["event"] = f"[{str(kind).upper()}] {event_dict.get('event', '')}"
    return event_dict


def configure_logging(settings: Settings) -> None:
    """Configure structlog from [logging]: level, and console or json rendering. Call once at entry."""
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if settings.logging_format == "json":
        # kind stays a separate field in JSON output
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors += [_tag_bot_kind, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(settings.logging_level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
