"""
Run observers.

A test run reports to a RunObserver: every resolver state change, the
tested/total progress counter and the final result. Subclass RunObserver
and override what you need, or wrap plain functions in CallbackObserver.
"""

from typing import Callable, Optional

from .models import ResolverConfig, RunResult

# (message, current, total)
ProgressCallback = Callable[[str, int, int], None]


class RunObserver:
    """No-op base observer."""

    def on_resolver_changed(self, resolver: ResolverConfig) -> None:
        pass

    def on_progress(self, tested: int, total: int) -> None:
        pass

    def on_run_complete(self, result: RunResult) -> None:
        pass


class CallbackObserver(RunObserver):
    """Observer that forwards events to optional callables."""

    def __init__(
        self,
        progress_callback: Optional[ProgressCallback] = None,
        resolver_callback: Optional[Callable[[ResolverConfig], None]] = None,
        complete_callback: Optional[Callable[[RunResult], None]] = None,
    ):
        self.progress_callback = progress_callback
        self.resolver_callback = resolver_callback
        self.complete_callback = complete_callback

    def on_resolver_changed(self, resolver: ResolverConfig) -> None:
        if self.resolver_callback:
            self.resolver_callback(resolver)

    def on_progress(self, tested: int, total: int) -> None:
        if self.progress_callback:
            self.progress_callback(f"Testing progress: {tested}/{total}", tested, total)

    def on_run_complete(self, result: RunResult) -> None:
        if self.complete_callback:
            self.complete_callback(result)
