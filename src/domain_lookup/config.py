"""
Configuration dataclasses for the domain lookup engine.

This module defines all configuration structures used throughout the engine,
including upstream endpoints, quota ceilings, authentication, logging and the
HTTP binding. Values default to the deployment defaults and can be taken from
the environment (a local .env file is loaded first).
"""

import os
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlparse

from dotenv import load_dotenv

from .exceptions import ConfigurationError


VALID_LOG_LEVELS = ("debug", "info", "warn", "error")
VALID_LOG_FORMATS = ("json", "text", "both")


@dataclass
class QuotaConfig:
    """Per-caller request ceilings, one per call site."""

    window_seconds: float = 60.0
    detail_ceiling: int = 12
    price_ceiling: int = 12
    suffix_list_ceiling: int = 30
    sweep_interval_seconds: float = 300.0


@dataclass
class UpstreamConfig:
    """External registries queried by the engine."""

    rdap_base_url: str = "https://rdap.org"
    whois_gateway_url: str = "https://api.whoiscx.com/whois/"
    tld_list_url: str = "https://data.iana.org/TLD/tlds-alpha-by-domain.txt"
    rdap_timeout: float = 10.0
    whois_timeout: float = 15.0
    tld_list_timeout: float = 10.0
    tld_list_limit: int = 100
    suffix_cache_ttl_seconds: float = 3600.0
    user_agent: str = "Domain-Query-Tool/1.0"


@dataclass
class AuthConfig:
    """Shared-secret authentication settings."""

    admin_password: Optional[str] = None
    admin_mode: bool = True  # False means 'personal' mode


@dataclass
class ServerConfig:
    """HTTP binding settings."""

    host: str = "0.0.0.0"
    port: int = 8000
    cors_allowed_origins: str = "*"  # Comma-separated


@dataclass
class LoggingConfig:
    """Logging and audit configuration."""

    level: str = "info"
    audit_mode: bool = False
    audit_signing_key: Optional[str] = None
    output_format: str = "text"  # 'json', 'text', 'both'


@dataclass
class EngineConfig:
    """Main configuration combining all sub-configurations."""

    quota: QuotaConfig = field(default_factory=QuotaConfig)
    upstream: UpstreamConfig = field(default_factory=UpstreamConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "EngineConfig":
        """Create config from environment variables (after loading .env)."""
        load_dotenv(dotenv_path)

        defaults = cls()
        return cls(
            quota=QuotaConfig(
                window_seconds=_float_env("QUOTA_WINDOW_SECONDS", defaults.quota.window_seconds),
                detail_ceiling=_int_env("DETAIL_QUOTA", defaults.quota.detail_ceiling),
                price_ceiling=_int_env("PRICE_QUOTA", defaults.quota.price_ceiling),
                suffix_list_ceiling=_int_env(
                    "SUFFIX_LIST_QUOTA", defaults.quota.suffix_list_ceiling
                ),
                sweep_interval_seconds=_float_env(
                    "QUOTA_SWEEP_INTERVAL", defaults.quota.sweep_interval_seconds
                ),
            ),
            upstream=UpstreamConfig(
                rdap_base_url=os.getenv("RDAP_BASE_URL", defaults.upstream.rdap_base_url),
                whois_gateway_url=os.getenv(
                    "WHOIS_GATEWAY_URL", defaults.upstream.whois_gateway_url
                ),
                tld_list_url=os.getenv("TLD_LIST_URL", defaults.upstream.tld_list_url),
                rdap_timeout=_float_env("RDAP_TIMEOUT", defaults.upstream.rdap_timeout),
                whois_timeout=_float_env("WHOIS_TIMEOUT", defaults.upstream.whois_timeout),
                suffix_cache_ttl_seconds=_float_env(
                    "SUFFIX_CACHE_TTL", defaults.upstream.suffix_cache_ttl_seconds
                ),
            ),
            auth=AuthConfig(
                admin_password=os.getenv("ADMIN_PASSWORD") or None,
                admin_mode=os.getenv("ADMIN_MODE", "true").strip().lower() != "false",
            ),
            server=ServerConfig(
                host=os.getenv("HTTP_HOST", defaults.server.host),
                port=_int_env("HTTP_PORT", defaults.server.port),
                cors_allowed_origins=os.getenv(
                    "CORS_ALLOWED_ORIGINS", defaults.server.cors_allowed_origins
                ),
            ),
            logging=LoggingConfig(
                level=os.getenv("LOG_LEVEL", defaults.logging.level).lower(),
                audit_mode=os.getenv("AUDIT_MODE", "0") == "1",
                audit_signing_key=os.getenv("AUDIT_SIGNING_KEY") or None,
                output_format=os.getenv("LOG_FORMAT", defaults.logging.output_format).lower(),
            ),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ConfigurationError: If any value is out of range
        """
        for name, url in (
            ("rdap_base_url", self.upstream.rdap_base_url),
            ("whois_gateway_url", self.upstream.whois_gateway_url),
            ("tld_list_url", self.upstream.tld_list_url),
        ):
            if urlparse(url).scheme.lower() != "https":
                raise ConfigurationError(
                    code="insecure_endpoint",
                    message=f"{name} must use HTTPS: {url}",
                    details={"setting": name, "url": url},
                )

        for name, timeout in (
            ("rdap_timeout", self.upstream.rdap_timeout),
            ("whois_timeout", self.upstream.whois_timeout),
            ("tld_list_timeout", self.upstream.tld_list_timeout),
        ):
            if timeout <= 0:
                raise ConfigurationError(
                    code="invalid_timeout",
                    message=f"Invalid {name}: {timeout}",
                    details={"setting": name, "value": timeout},
                )

        for name, ceiling in (
            ("detail_ceiling", self.quota.detail_ceiling),
            ("price_ceiling", self.quota.price_ceiling),
            ("suffix_list_ceiling", self.quota.suffix_list_ceiling),
        ):
            if ceiling < 1:
                raise ConfigurationError(
                    code="invalid_ceiling",
                    message=f"Invalid {name}: {ceiling}",
                    details={"setting": name, "value": ceiling},
                )

        if self.quota.window_seconds <= 0:
            raise ConfigurationError(
                code="invalid_window",
                message=f"Invalid quota window: {self.quota.window_seconds}",
            )

        if self.logging.level not in VALID_LOG_LEVELS:
            raise ConfigurationError(
                code="invalid_log_level",
                message=f"Invalid log level: {self.logging.level}",
            )

        if self.logging.output_format not in VALID_LOG_FORMATS:
            raise ConfigurationError(
                code="invalid_log_format",
                message=f"Invalid log output format: {self.logging.output_format}",
            )

        if self.logging.audit_mode and not self.logging.audit_signing_key:
            raise ConfigurationError(
                code="missing_signing_key",
                message="Audit mode requires an audit signing key",
            )

        if not 1 <= self.server.port <= 65535:
            raise ConfigurationError(
                code="invalid_port",
                message=f"Invalid port number: {self.server.port}",
            )


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
