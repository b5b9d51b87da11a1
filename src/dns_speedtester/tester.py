"""
Single-resolver tester.

Runs the four probes against one resolver, reduces their results with the
aggregation rule and writes the terminal state back into the resolver
record.
"""

from typing import Optional

from .config import Settings
from .models import ProbeSamples, ResolverConfig
from .probes import BaseProbe, default_probes
from .statistics import StatisticsEngine
from .utils.logging import get_logger

log = get_logger(__name__)


class ResolverTester:
    """
    Measures one resolver at a time.

    The tester owns the record it is given for the duration of ``test``;
    observers polling the record see TESTING until a terminal state lands.
    """

    def __init__(
        self,
        probes: Optional[list[BaseProbe]] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the tester.

        Args:
            probes: Probes to run, in order (default: the four standard probes)
            settings: Settings passed to the default probes
        """
        self.probes = probes if probes is not None else default_probes(settings)

    async def collect(self, resolver: ResolverConfig, domain: str) -> ProbeSamples:
        """Run every probe in turn and gather their results."""
        samples = ProbeSamples()
        for probe in self.probes:
            samples.set(probe.kind, await probe.measure(resolver, domain))
        return samples

    async def test(self, resolver: ResolverConfig, domain: str) -> ResolverConfig:
        """
        Measure ``resolver`` against ``domain`` and record the outcome.

        Ends in SUCCESS with the aggregate latency, TIMEOUT when no probe
        produced a signal, or ERROR with the message of an unexpected
        exception.

        Returns:
            The same resolver record, updated in place
        """
        resolver.mark_testing()

        try:
            samples = await self.collect(resolver, domain)
            latency = StatisticsEngine.aggregate(samples.values())
        except Exception as e:
            log.warning("Testing %s failed: %s", resolver.name, e)
            resolver.mark_error(str(e))
            return resolver

        if latency is not None:
            resolver.mark_success(latency)
            log.info("%s: %dms (samples %s)", resolver.name, latency, samples)
        else:
            resolver.mark_timeout()
            log.info("%s: no probe succeeded", resolver.name)

        return resolver
