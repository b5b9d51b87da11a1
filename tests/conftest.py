"""
Pytest configuration for DNS Speed Tester.

Provides fixtures for:
- Settings with all pacing delays disabled and a temporary data directory
- Resolver records
"""

from __future__ import annotations

from pathlib import Path

import pytest

from dns_speedtester.config import Settings
from dns_speedtester.models import ResolverConfig


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings with no pacing delays and an isolated data directory."""
    return Settings(
        warmup_delay=0,
        tcp_query_delay=0,
        udp_query_delay=0,
        ping_delay=0,
        data_dir=tmp_path / "data",
    )


@pytest.fixture
def resolver() -> ResolverConfig:
    return ResolverConfig(name="Test DNS", primary_ip="192.0.2.53", secondary_ip="192.0.2.54")
