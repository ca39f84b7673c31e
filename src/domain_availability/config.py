"""
Configuration dataclasses for the domain availability engine.

This module defines all configuration structures used throughout the system:
TLD registry refresh policy, RDAP and WHOIS timeouts, batch pacing and
logging. Defaults match the production behaviour; ``load_config_from_env``
lets a deployment override them through environment variables or a
``.env`` file.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .enums import Environment

IANA_BOOTSTRAP_URL = "https://data.iana.org/rdap/dns.json"

HOUR_SECONDS = 60 * 60
DAY_SECONDS = 24 * HOUR_SECONDS

LOG_FORMATS = ("json", "text", "both")


def refresh_interval_for_environment(environment: Environment) -> float:
    """
    Pick the periodic registry refresh interval for a deployment.

    Development refreshes daily so bootstrap changes show up quickly;
    every other environment refreshes weekly.
    """
    if environment == Environment.DEVELOPMENT:
        return float(DAY_SECONDS)
    return float(7 * DAY_SECONDS)


@dataclass
class RegistryConfig:
    """Configuration for the TLD registry and its on-disk cache."""

    cache_file_path: Path = field(default_factory=lambda: Path("data") / "rdap-cache.json")
    bootstrap_url: str = IANA_BOOTSTRAP_URL
    stale_after_seconds: float = 30 * DAY_SECONDS
    startup_refresh_timeout: float = 5.0
    refresh_timeout: float = 30.0
    refresh_interval_seconds: float = 7 * DAY_SECONDS
    error_rate_threshold: float = 0.3
    error_rate_min_samples: int = 10
    error_refresh_cooldown_seconds: float = DAY_SECONDS
    disabled_tlds: list[str] = field(default_factory=list)


@dataclass
class RdapConfig:
    """RDAP lookup configuration."""

    timeout: float = 10.0


@dataclass
class WhoisConfig:
    """WHOIS fallback configuration."""

    port: int = 43
    resolve_timeout: float = 5.0
    connect_timeout: float = 5.0
    receive_timeout: float = 5.0
    idle_timeout: float = 1.0


@dataclass
class BatchConfig:
    """Batch pacing for orchestrated checks and caller-side request limits."""

    batch_size: int = 5
    batch_delay_seconds: float = 0.5
    max_keywords: int = 10
    max_tlds: int = 10


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"
    output_format: str = "text"  # 'json', 'text', 'both'


@dataclass
class SystemConfig:
    """Main system configuration combining all sub-configurations."""

    environment: Environment = Environment.PRODUCTION
    registry: RegistryConfig = field(default_factory=RegistryConfig)
    rdap: RdapConfig = field(default_factory=RdapConfig)
    whois: WhoisConfig = field(default_factory=WhoisConfig)
    batch: BatchConfig = field(default_factory=BatchConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _list_env(name: str) -> list[str]:
    raw = os.getenv(name, "")
    return [item.strip().lower().lstrip(".") for item in raw.split(",") if item.strip()]


def _environment_from_env() -> Environment:
    value = (os.getenv("APP_ENV", "") or "production").strip().lower()
    if value in ("dev", "development"):
        return Environment.DEVELOPMENT
    return Environment.PRODUCTION


def load_config_from_env(env_file: Optional[Path] = None) -> SystemConfig:
    """
    Build a SystemConfig from environment variables.

    A ``.env`` file is loaded first (``env_file`` if given, otherwise the
    default lookup of python-dotenv). Variables already present in the
    environment win over the file. Unparseable numbers fall back to the
    defaults.

    Args:
        env_file: Optional path to a dotenv file

    Returns:
        SystemConfig with environment overrides applied
    """
    if env_file is not None:
        load_dotenv(env_file)
    else:
        load_dotenv()

    environment = _environment_from_env()

    interval = refresh_interval_for_environment(environment)
    interval_hours = _float_env("REGISTRY_REFRESH_INTERVAL_HOURS", 0.0)
    if interval_hours > 0:
        interval = interval_hours * HOUR_SECONDS

    registry = RegistryConfig(
        cache_file_path=Path(os.getenv("RDAP_CACHE_FILE", str(RegistryConfig().cache_file_path))),
        bootstrap_url=os.getenv("RDAP_BOOTSTRAP_URL", IANA_BOOTSTRAP_URL),
        refresh_interval_seconds=interval,
        disabled_tlds=_list_env("DISABLED_TLDS"),
    )

    whois_timeout = _float_env("WHOIS_TIMEOUT", WhoisConfig.receive_timeout)
    output_format = os.getenv("LOG_FORMAT", "text").strip().lower()

    return SystemConfig(
        environment=environment,
        registry=registry,
        rdap=RdapConfig(timeout=_float_env("RDAP_TIMEOUT", RdapConfig.timeout)),
        whois=WhoisConfig(
            resolve_timeout=whois_timeout,
            connect_timeout=whois_timeout,
            receive_timeout=whois_timeout,
        ),
        batch=BatchConfig(
            batch_size=max(1, _int_env("CHECK_BATCH_SIZE", BatchConfig.batch_size)),
            batch_delay_seconds=max(
                0.0, _float_env("CHECK_BATCH_DELAY_SECONDS", BatchConfig.batch_delay_seconds)
            ),
        ),
        logging=LoggingConfig(
            level=os.getenv("LOG_LEVEL", "info").strip().lower(),
            output_format=output_format if output_format in LOG_FORMATS else "text",
        ),
    )
