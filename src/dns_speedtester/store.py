"""
Persistence of user-added resolvers and test domains.

Two JSON files under the data directory hold the user's own entries.
Loading never fails: a missing, empty or corrupt file (with no usable
``.bak`` backup) yields an empty list. Saving keeps a backup of the
previous file and replaces the target atomically.
"""

import json
import os
import shutil
from pathlib import Path
from typing import Any, Callable, TypeVar

from .models import ResolverConfig, TestDomain
from .resolvers import create_custom_resolver, create_custom_test_domain
from .utils.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")

CUSTOM_DNS_FILE = "custom_dns.json"
CUSTOM_DOMAINS_FILE = "custom_domains.json"


class UserStore:
    """JSON-backed store for user-added entries."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.servers_path = self.data_dir / CUSTOM_DNS_FILE
        self.domains_path = self.data_dir / CUSTOM_DOMAINS_FILE

    # Resolvers

    def load_custom_servers(self) -> list[ResolverConfig]:
        servers = self._load(self.servers_path, self._server_from_dict)
        log.info("Loaded %d custom DNS servers", len(servers))
        return servers

    def save_custom_servers(self, servers: list[ResolverConfig]) -> None:
        data = [
            {
                "name": s.name,
                "primary_ip": s.primary_ip,
                "secondary_ip": s.secondary_ip,
            }
            for s in servers
        ]
        self._save(self.servers_path, data)
        log.info("Saved %d custom DNS servers", len(data))

    @staticmethod
    def _server_from_dict(item: dict[str, Any]) -> ResolverConfig:
        return create_custom_resolver(item["name"], item["primary_ip"], item.get("secondary_ip"))

    # Test domains

    def load_custom_domains(self) -> list[TestDomain]:
        domains = self._load(self.domains_path, self._domain_from_dict)
        log.info("Loaded %d custom test domains", len(domains))
        return domains

    def save_custom_domains(self, domains: list[TestDomain]) -> None:
        data = [{"name": d.name, "domain": d.domain} for d in domains]
        self._save(self.domains_path, data)
        log.info("Saved %d custom test domains", len(data))

    @staticmethod
    def _domain_from_dict(item: dict[str, Any]) -> TestDomain:
        return create_custom_test_domain(item["name"], item["domain"])

    # File handling

    def _load(self, path: Path, convert: Callable[[dict[str, Any]], T]) -> list[T]:
        for candidate in (path, path.with_name(path.name + ".bak")):
            if not candidate.exists():
                continue
            try:
                text = candidate.read_text(encoding="utf-8")
                if not text.strip():
                    return []
                return [convert(item) for item in json.loads(text)]
            except (OSError, ValueError, KeyError, TypeError) as e:
                log.error("Error loading %s: %s", candidate, e)
        return []

    def _save(self, path: Path, data: list[dict[str, Any]]) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)

        if path.exists():
            shutil.copyfile(path, path.with_name(path.name + ".bak"))

        tmp_path = path.with_name(path.name + ".tmp")
        try:
            tmp_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise
