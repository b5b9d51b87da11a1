"""
DNS Speed Tester - find the fastest DNS resolver from where you are.

Measures each resolver with several independent probes and combines
them into one outlier-resistant latency.
"""

import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "1.0.0"

from .models import ResolverConfig, RunResult, ServerStatus, TestDomain  # noqa: E402
from .runner import TestRunner  # noqa: E402
from .statistics import StatisticsEngine  # noqa: E402
from .tester import ResolverTester  # noqa: E402

__all__ = [
    "__version__",
    "ResolverConfig",
    "RunResult",
    "ServerStatus",
    "TestDomain",
    "TestRunner",
    "ResolverTester",
    "StatisticsEngine",
]
