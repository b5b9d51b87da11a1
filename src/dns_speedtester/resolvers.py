"""
Built-in resolvers and test domains.

Provides the public DNS resolvers offered out of the box, the default
test domains, the cache-busting random domain generator and factories
for user-added entries.
"""

import ipaddress
import secrets
import string
from typing import Optional

from .models import ResolverConfig, TestDomain

RANDOM_CATEGORY = "Random"
RANDOM_DOMAIN_NAME = "Random domain"
DEFAULT_RANDOM_SUFFIX = "example.com"
DEFAULT_TEST_DOMAIN = "www.baidu.com"

# (name, primary, secondary)
RESOLVERS: list[tuple[str, str, Optional[str]]] = [
    ("Google DNS", "8.8.8.8", "8.8.4.4"),
    ("Cloudflare DNS", "1.1.1.1", "1.0.0.1"),
    ("Quad9", "9.9.9.9", "149.112.112.112"),
    ("OpenDNS", "208.67.222.222", "208.67.220.220"),
    ("AdGuard DNS", "94.140.14.14", "94.140.15.15"),
    ("AliDNS", "223.5.5.5", "223.6.6.6"),
    ("DNSPod", "119.29.29.29", "182.254.116.116"),
    ("114 DNS", "114.114.114.114", "114.114.115.115"),
    ("Tencent DNS", "119.28.28.28", "182.254.118.118"),
    ("Baidu DNS", "180.76.76.76", None),
    ("360 DNS", "101.226.4.6", "218.30.118.6"),
    ("CNNIC SDNS", "1.2.4.8", "210.2.4.8"),
    ("DNS PAI", "101.226.4.6", "218.30.118.6"),
    ("Volcengine DNS", "180.184.1.1", "180.184.2.2"),
]

# (name, domain, category)
TEST_DOMAINS: list[tuple[str, str, str]] = [
    # Domestic
    ("Baidu", "www.baidu.com", "Domestic"),
    ("Taobao", "www.taobao.com", "Domestic"),
    ("Tencent", "www.qq.com", "Domestic"),
    ("NetEase", "www.163.com", "Domestic"),
    ("Bilibili", "www.bilibili.com", "Domestic"),
    ("Zhihu", "www.zhihu.com", "Domestic"),
    # International
    ("Google", "www.google.com", "International"),
    ("YouTube", "www.youtube.com", "International"),
    ("Microsoft", "www.microsoft.com", "International"),
    ("Amazon", "www.amazon.com", "International"),
    ("Facebook", "www.facebook.com", "International"),
    ("Twitter", "twitter.com", "International"),
    # CDN / cloud
    ("CloudFlare", "www.cloudflare.com", "CDN/Cloud"),
    ("Akamai", "www.akamai.com", "CDN/Cloud"),
    ("AWS", "aws.amazon.com", "CDN/Cloud"),
    ("Azure", "azure.microsoft.com", "CDN/Cloud"),
]


def generate_random_domain(suffix: str = DEFAULT_RANDOM_SUFFIX, length: int = 8) -> str:
    """Generate a random subdomain under ``suffix`` to bypass caches."""
    chars = string.ascii_lowercase + string.digits
    label = "".join(secrets.choice(chars) for _ in range(length))
    return f"{label}.{suffix}"


def get_common_resolvers() -> list[ResolverConfig]:
    """Fresh, untested records for the built-in resolvers."""
    return [
        ResolverConfig(name=name, primary_ip=primary, secondary_ip=secondary)
        for name, primary, secondary in RESOLVERS
    ]


def get_common_test_domains(random_suffix: str = DEFAULT_RANDOM_SUFFIX) -> list[TestDomain]:
    """Built-in test domains, ending with a freshly generated random one."""
    domains = [TestDomain(name, domain, category) for name, domain, category in TEST_DOMAINS]
    domains.append(random_test_domain(random_suffix))
    return domains


def random_test_domain(suffix: str = DEFAULT_RANDOM_SUFFIX) -> TestDomain:
    return TestDomain(RANDOM_DOMAIN_NAME, generate_random_domain(suffix), RANDOM_CATEGORY)


def validate_ip(address: str) -> str:
    """Normalize an IPv4/IPv6 address or raise ValueError."""
    try:
        return str(ipaddress.ip_address(address.strip()))
    except ValueError:
        raise ValueError(f"Invalid IP address: {address!r}") from None


def create_custom_resolver(
    name: str,
    primary_ip: str,
    secondary_ip: Optional[str] = None,
) -> ResolverConfig:
    """Create a user-added resolver after validating its addresses."""
    if not name or not name.strip():
        raise ValueError("Resolver name must not be empty")
    return ResolverConfig(
        name=name.strip(),
        primary_ip=validate_ip(primary_ip),
        secondary_ip=validate_ip(secondary_ip) if secondary_ip and secondary_ip.strip() else None,
        is_custom=True,
    )


def create_custom_test_domain(name: str, domain: str) -> TestDomain:
    """Create a user-added test domain; the domain must contain a dot."""
    name, domain = (name or "").strip(), (domain or "").strip()
    if not name or not domain:
        raise ValueError("Test domain name and value must not be empty")
    if "." not in domain:
        raise ValueError(f"Invalid test domain: {domain!r}")
    return TestDomain(name, domain, "Custom", is_custom=True)
