"""
Test runner for DNS latency measurement.

Fans a single-resolver test out over a whole resolver collection:
- Every resolver is reset to TESTING before anything is dispatched
- All tests run concurrently, one task per resolver
- Completions are consumed in arrival order, one progress step each
- A failing test is confined to its own resolver
- The collection is finally re-ordered by ascending latency
"""

import asyncio
from datetime import datetime
from typing import Optional

from .events import RunObserver
from .models import ResolverConfig, RunResult
from .statistics import StatisticsEngine
from .tester import ResolverTester
from .utils.logging import get_logger

log = get_logger(__name__)


class TestRunner:
    """
    Orchestrates a concurrent test run.

    There is no overall time budget: a run ends when every resolver test
    has ended, which each probe's own per-query timeouts guarantee.
    """

    __test__ = False  # not a pytest class

    def __init__(
        self,
        tester: Optional[ResolverTester] = None,
        observer: Optional[RunObserver] = None,
    ):
        """
        Initialize the test runner.

        Args:
            tester: Single-resolver tester (default: four standard probes)
            observer: Receives state changes, progress and the final result
        """
        self.tester = tester or ResolverTester()
        self.observer = observer or RunObserver()
        self.tested_count = 0
        self.total_count = 0

    async def run(self, resolvers: list[ResolverConfig], domain: str) -> RunResult:
        """
        Test every resolver against ``domain``.

        ``resolvers`` is re-ordered in place once all tests are done:
        ascending latency, unmeasured last, ties in their previous order.

        Args:
            resolvers: Resolver collection to test
            domain: Test domain

        Returns:
            RunResult with the ordered resolvers and the winner
        """
        if len({id(r) for r in resolvers}) != len(resolvers):
            raise ValueError("A resolver record appears more than once in the run")

        started_at = datetime.now()
        self.total_count = len(resolvers)
        self.tested_count = 0
        self.observer.on_progress(self.tested_count, self.total_count)

        log.info("Testing %d resolvers against %s", self.total_count, domain)

        for resolver in resolvers:
            resolver.mark_testing()
            self.observer.on_resolver_changed(resolver)

        pending: dict[asyncio.Task, ResolverConfig] = {
            asyncio.create_task(self.tester.test(resolver, domain)): resolver
            for resolver in resolvers
        }

        while pending:
            done, _ = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)

            for task in done:
                resolver = pending.pop(task)
                try:
                    task.result()
                except Exception as e:
                    log.warning("Test task for %s raised: %s", resolver.name, e)
                    resolver.mark_error(str(e))

                self.tested_count += 1
                self.observer.on_resolver_changed(resolver)
                self.observer.on_progress(self.tested_count, self.total_count)

        resolvers[:] = StatisticsEngine.rank(resolvers)

        result = RunResult(
            started_at=started_at,
            completed_at=datetime.now(),
            domain=domain,
            tested_count=self.tested_count,
            total_count=self.total_count,
            resolvers=list(resolvers),
        )

        winner = result.winner
        log.info(
            "Run finished in %.1fs, winner: %s",
            result.duration_seconds,
            f"{winner.name} ({winner.latency}ms)" if winner else "none",
        )
        self.observer.on_run_complete(result)
        return result
