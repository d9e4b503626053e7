"""
Configuration module for alertsync.

Loads configuration from environment variables.
"""

import os
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class BackendConfig:
    """Alerting backend connection configuration."""

    url: str = "http://localhost:3000"
    auth: str = field(default="", repr=False)  # Never log credentials
    org_id: int = 1
    request_timeout: int = 30  # seconds

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        auth = os.getenv("ALERTING_AUTH", "")
        if not auth:
            raise ValueError(
                "ALERTING_AUTH environment variable must be set. "
                "Use an API token or 'user:password'."
            )

        return cls(
            url=os.getenv("ALERTING_URL", "http://localhost:3000").rstrip("/"),
            auth=auth,
            org_id=int(os.getenv("ALERTING_ORG_ID", "1")),
            request_timeout=int(os.getenv("ALERTING_REQUEST_TIMEOUT", "30")),
        )


@dataclass
class RetryConfig:
    """Retry policy for contact point creation in non-default organizations."""

    timeout: float = 120.0  # total budget in seconds
    base_delay: float = 0.5  # first backoff delay in seconds
    max_delay: float = 10.0  # cap for a single backoff delay
    jitter_factor: float = 0.1  # ±10% jitter

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        return cls(
            timeout=float(os.getenv("RETRY_TIMEOUT", "120")),
            base_delay=float(os.getenv("RETRY_BASE_DELAY", "0.5")),
            max_delay=float(os.getenv("RETRY_MAX_DELAY", "10")),
            jitter_factor=float(os.getenv("RETRY_JITTER_FACTOR", "0.1")),
        )


@dataclass
class CLIConfig:
    """Command line configuration."""

    log_level: str = "INFO"
    output_format: str = "yaml"

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            output_format=os.getenv("ALERTCTL_OUTPUT", "yaml"),
        )


@dataclass
class Config:
    """Main configuration object."""

    backend: BackendConfig
    retry: RetryConfig
    cli: CLIConfig

    @classmethod
    def from_env(cls):
        """Load all configuration from environment variables."""
        return cls(
            backend=BackendConfig.from_env(),
            retry=RetryConfig.from_env(),
            cli=CLIConfig.from_env(),
        )

    @classmethod
    def default(cls):
        """Return default configuration."""
        return cls(
            backend=BackendConfig(),
            retry=RetryConfig(),
            cli=CLIConfig(),
        )


# Global config instance
config: Optional[Config] = None


def load_config() -> Config:
    """Load configuration (singleton pattern)."""
    global config
    if config is None:
        config = Config.from_env()
    return config


def get_config() -> Config:
    """Get the current configuration."""
    if config is None:
        return load_config()
    return config


def reset_config() -> None:
    """Reset configuration (mainly for testing)."""
    global config
    config = None
