"""
Application session.

Holds the working resolver and test-domain collections (built-in entries
followed by the user's own), keeps the user store in sync with additions
and removals, and runs full tests against the selected domain.
"""

from typing import Optional

from .config import Settings, get_settings
from .events import RunObserver
from .models import ResolverConfig, RunResult, TestDomain
from .resolvers import (
    DEFAULT_TEST_DOMAIN,
    RANDOM_CATEGORY,
    create_custom_resolver,
    create_custom_test_domain,
    get_common_resolvers,
    get_common_test_domains,
    random_test_domain,
)
from .runner import TestRunner
from .store import UserStore
from .tester import ResolverTester
from .utils.logging import get_logger

log = get_logger(__name__)


class SpeedTestSession:
    """Resolver and domain collections plus the actions on them."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[UserStore] = None,
        tester: Optional[ResolverTester] = None,
    ):
        self.settings = settings or get_settings()
        self.store = store or UserStore(self.settings.data_dir)
        self.tester = tester or ResolverTester(settings=self.settings)
        self.resolvers: list[ResolverConfig] = []
        self.test_domains: list[TestDomain] = []
        self.selected_domain: Optional[TestDomain] = None

    def load(self) -> None:
        """(Re)build both collections from the built-in lists and the store."""
        try:
            custom_servers = self.store.load_custom_servers()
        except Exception as e:
            log.error("Could not load custom DNS servers: %s", e)
            custom_servers = []

        try:
            custom_domains = self.store.load_custom_domains()
        except Exception as e:
            log.error("Could not load custom test domains: %s", e)
            custom_domains = []

        self.resolvers = get_common_resolvers() + custom_servers
        self.test_domains = get_common_test_domains(self.settings.random_domain_suffix) + custom_domains
        self.selected_domain = self.default_domain()

    def default_domain(self) -> Optional[TestDomain]:
        for domain in self.test_domains:
            if domain.domain == DEFAULT_TEST_DOMAIN:
                return domain
        return self.test_domains[0] if self.test_domains else None

    def find_domain(self, value: str) -> Optional[TestDomain]:
        """Look a test domain up by domain string or display name."""
        for domain in self.test_domains:
            if value in (domain.domain, domain.name):
                return domain
        return None

    def select_domain(self, value: str) -> TestDomain:
        domain = self.find_domain(value)
        if domain is None:
            raise ValueError(f"Unknown test domain: {value}")
        self.selected_domain = domain
        return domain

    # User-added resolvers

    def add_custom_server(
        self,
        name: str,
        primary_ip: str,
        secondary_ip: Optional[str] = None,
    ) -> ResolverConfig:
        server = create_custom_resolver(name, primary_ip, secondary_ip)
        for existing in self.resolvers:
            if existing.name == server.name and existing.primary_ip == server.primary_ip:
                raise ValueError(f"DNS server already exists: {server.name} ({server.primary_ip})")

        self.resolvers.append(server)
        self._save_servers()
        return server

    def remove_custom_server(self, name: str) -> ResolverConfig:
        for server in self.resolvers:
            if server.name == name:
                if not server.is_custom:
                    raise ValueError(f"Built-in DNS server cannot be removed: {name}")
                self.resolvers.remove(server)
                self._save_servers()
                return server
        raise ValueError(f"Unknown DNS server: {name}")

    def _save_servers(self) -> None:
        try:
            self.store.save_custom_servers([s for s in self.resolvers if s.is_custom])
        except OSError as e:
            log.error("Error saving custom DNS servers: %s", e)

    # User-added test domains

    def add_custom_domain(self, name: str, domain: str) -> TestDomain:
        test_domain = create_custom_test_domain(name, domain)
        if any(d.domain == test_domain.domain for d in self.test_domains):
            raise ValueError(f"Test domain already exists: {test_domain.domain}")

        self.test_domains.append(test_domain)
        self.selected_domain = test_domain
        self._save_domains()
        return test_domain

    def remove_custom_domain(self, value: str) -> TestDomain:
        test_domain = self.find_domain(value)
        if test_domain is None:
            raise ValueError(f"Unknown test domain: {value}")
        if not test_domain.is_custom:
            raise ValueError(f"Built-in test domain cannot be removed: {value}")

        self.test_domains.remove(test_domain)
        self._save_domains()
        if self.selected_domain is test_domain:
            self.selected_domain = self.default_domain()
        return test_domain

    def _save_domains(self) -> None:
        try:
            self.store.save_custom_domains([d for d in self.test_domains if d.is_custom])
        except OSError as e:
            log.error("Error saving custom test domains: %s", e)

    def refresh_random_domain(self) -> Optional[TestDomain]:
        """Replace the random-category entry, in place, with a fresh name."""
        for index, old in enumerate(self.test_domains):
            if old.category == RANDOM_CATEGORY:
                new = random_test_domain(self.settings.random_domain_suffix)
                self.test_domains[index] = new
                if self.selected_domain is old:
                    self.selected_domain = new
                log.debug("Random test domain refreshed: %s", new.domain)
                return new
        return None

    # Running

    async def run(
        self,
        domain: Optional[str] = None,
        observer: Optional[RunObserver] = None,
    ) -> RunResult:
        """
        Test every resolver in the session.

        Args:
            domain: Domain to test against (default: the selected domain)
            observer: Receives progress and state changes

        Returns:
            RunResult; ``self.resolvers`` ends up in ranked order
        """
        if domain is None:
            if self.selected_domain is None:
                raise ValueError("No test domain selected")
            domain = self.selected_domain.domain

        runner = TestRunner(self.tester, observer)
        try:
            return await runner.run(self.resolvers, domain)
        finally:
            self.refresh_random_domain()
