"""
Configuration settings for DNS Speed Tester.

Uses Pydantic Settings so every timeout, pacing delay and path can be
overridden through ``DNS_SPEEDTESTER_*`` environment variables or a
``.env`` file.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Per-query timeouts (seconds)
    tcp_timeout: float = Field(5.0, gt=0)
    udp_timeout: float = Field(3.0, gt=0)
    ping_timeout: float = Field(3.0, gt=0)

    # Fixed pacing between probe steps (seconds)
    warmup_domain: str = "www.example.com"
    warmup_delay: float = Field(0.05, ge=0)
    tcp_query_delay: float = Field(0.2, ge=0)
    udp_query_delay: float = Field(0.1, ge=0)
    ping_delay: float = Field(0.1, ge=0)

    # ICMP echo
    ping_count: int = Field(4, ge=1)
    ping_payload_size: int = Field(32, ge=0)
    ping_correction: float = Field(1.2, gt=0)

    # Resolution
    random_domain_suffix: str = "example.com"
    bind_to_resolver: bool = True

    # Application
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".dns_speedtester")
    log_level: str = "WARNING"
    json_logs: bool = False

    model_config = SettingsConfigDict(
        env_prefix="DNS_SPEEDTESTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
