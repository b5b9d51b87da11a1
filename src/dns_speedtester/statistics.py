"""
Statistics for DNS latency measurement.

Covers the three reductions a test run needs:
- Probe mean: the truncated mean of one probe's successful samples
- Aggregation: combining up to four probe results into one latency
- Ranking: ordering a resolver collection, plus a numeric summary of
  a finished run
"""

from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from .models import ResolverConfig


@dataclass
class RunSummary:
    """Latency summary over the resolvers of a finished run."""
    measured: int
    failed: int
    min_latency: Optional[int] = None
    max_latency: Optional[int] = None
    mean_latency: Optional[float] = None
    median_latency: Optional[float] = None


class StatisticsEngine:
    """Reductions over latency samples and resolver collections."""

    @staticmethod
    def probe_mean(samples: Iterable[int]) -> Optional[int]:
        """
        Arithmetic mean of a probe's samples, truncated to whole ms.

        Returns None when there are no samples.
        """
        values = list(samples)
        if not values:
            return None
        return sum(values) // len(values)

    @staticmethod
    def aggregate(samples: Iterable[Optional[int]]) -> Optional[int]:
        """
        Combine probe results into a single latency.

        Missing (None) results are dropped first, then:
        - 0 samples: None
        - 1 sample: that sample
        - 2 samples: the larger one
        - 3 or more: the element at index len // 2 of the sorted samples
          (middle of three, upper-middle of four)

        Args:
            samples: Probe results, None for a failed probe

        Returns:
            Aggregate latency in ms, or None when no probe produced a signal
        """
        values = [s for s in samples if s is not None]

        if not values:
            return None
        if len(values) == 1:
            return values[0]
        if len(values) == 2:
            return max(values)

        values.sort()
        return values[len(values) // 2]

    @staticmethod
    def rank(resolvers: Iterable[ResolverConfig]) -> list[ResolverConfig]:
        """
        Order resolvers by ascending latency.

        Unmeasured resolvers go last; ties keep their original order.
        """
        return sorted(
            resolvers,
            key=lambda r: (r.latency is None, r.latency if r.latency is not None else 0),
        )

    @staticmethod
    def summarize(resolvers: Iterable[ResolverConfig]) -> RunSummary:
        """
        Summarize the measured latencies of a resolver collection.

        Args:
            resolvers: Resolvers after a run

        Returns:
            RunSummary; latency fields stay None when nothing was measured
        """
        resolvers = list(resolvers)
        measured = [r.latency for r in resolvers if r.latency is not None]
        failed = len(resolvers) - len(measured)

        if not measured:
            return RunSummary(measured=0, failed=failed)

        latencies = np.array(measured)
        return RunSummary(
            measured=len(measured),
            failed=failed,
            min_latency=int(np.min(latencies)),
            max_latency=int(np.max(latencies)),
            mean_latency=float(np.mean(latencies)),
            median_latency=float(np.median(latencies)),
        )
