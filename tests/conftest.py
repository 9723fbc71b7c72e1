"""
Brief: Global pytest configuration and shared DNS fakes.

Inputs:
  - None

Outputs:
  - fake_dns fixture: in-memory DnsLookup + ForwardResolver recording queries.
"""

import os
import signal
import sys
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

# Ensure 'src' is on sys.path so 'siplocator' is importable in tests
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC_DIR = os.path.join(ROOT, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from siplocator.errors import HostNotFoundError  # noqa: E402
from siplocator.lookup import (  # noqa: E402
    AddressRecord,
    NaptrCandidate,
    SrvCandidate,
    validate_query_name,
)


def _alarm_handler(signum, frame):
    """
    Brief: Signal handler that raises TimeoutError when alarm triggers.

    Inputs:
      - signum: signal number (int)
      - frame: current frame (ignored)

    Outputs:
      - None: Raises TimeoutError to fail the test
    """
    raise TimeoutError("Test exceeded 10 seconds")


if hasattr(signal, "SIGALRM"):
    signal.signal(signal.SIGALRM, _alarm_handler)


@pytest.fixture(autouse=True)
def enforce_test_timeout():
    """
    Brief: Enforce a hard 10-second timeout for each test.

    Inputs:
      - None

    Outputs:
      - None: Cancels alarm after test
    """
    if hasattr(signal, "SIGALRM"):
        signal.alarm(10)
        try:
            yield
        finally:
            signal.alarm(0)
    else:
        yield


class FakeDns:
    """
    Brief: Scriptable DnsLookup/ForwardResolver pair for locator tests.

    Attributes:
      - naptr: domain -> list of NaptrCandidate (returned as given).
      - srv: service name -> list of SrvCandidate.
      - a / aaaa: domain -> list of address strings.
      - hosts: name -> address for forward resolution.
      - queries: ordered log of (kind, name) tuples.
    """

    def __init__(self) -> None:
        self.naptr: Dict[str, List[NaptrCandidate]] = {}
        self.srv: Dict[str, List[SrvCandidate]] = {}
        self.a: Dict[str, List[str]] = {}
        self.aaaa: Dict[str, List[str]] = {}
        self.hosts: Dict[str, str] = {}
        self.queries: List[Tuple[str, str]] = []
        self.naptr_calls: List[Tuple[str, bool, Tuple[str, ...]]] = []

    # Scripting helpers
    def add_srv(self, name: str, *records: Tuple[int, int, int, str]) -> None:
        self.srv.setdefault(name, []).extend(
            SrvCandidate(priority=p, weight=w, port=port, target=t)
            for p, w, port, t in records
        )

    def add_naptr(
        self,
        domain: str,
        service: str,
        replacement: str,
        *,
        order: int = 10,
        preference: int = 10,
    ) -> None:
        self.naptr.setdefault(domain, []).append(
            NaptrCandidate(
                order=order,
                preference=preference,
                flags="s",
                service=service,
                regexp="",
                replacement=replacement,
            )
        )

    def queried(self, kind: str) -> List[str]:
        return [name for k, name in self.queries if k == kind]

    # DnsLookup
    def lookup_naptr(
        self, domain: str, secure: bool, supported_transports: Sequence[str]
    ) -> List[NaptrCandidate]:
        self.queries.append(("NAPTR", domain))
        self.naptr_calls.append((domain, secure, tuple(supported_transports)))
        return list(self.naptr.get(domain, []))

    def lookup_srv(self, service_name: str) -> List[SrvCandidate]:
        self.queries.append(("SRV", service_name))
        validate_query_name(service_name)
        return list(self.srv.get(service_name, []))

    def lookup_a(self, domain: str) -> List[AddressRecord]:
        self.queries.append(("A", domain))
        return [AddressRecord(a) for a in self.a.get(domain, [])]

    def lookup_aaaa(self, domain: str) -> List[AddressRecord]:
        self.queries.append(("AAAA", domain))
        return [AddressRecord(a) for a in self.aaaa.get(domain, [])]

    # ForwardResolver
    def resolve(self, name: str) -> str:
        self.queries.append(("RESOLVE", name))
        try:
            return self.hosts[name]
        except KeyError:
            raise HostNotFoundError(f"{name}: not found")


@pytest.fixture
def fake_dns() -> FakeDns:
    """
    Brief: Fresh FakeDns per test.

    Inputs:
      - None

    Outputs:
      - FakeDns instance
    """
    return FakeDns()


@pytest.fixture
def make_locator(fake_dns):
    """
    Brief: Factory building a ServerLocator wired to fake_dns.

    Inputs:
      - None

    Outputs:
      - callable(**kwargs) -> ServerLocator
    """
    from siplocator.locator import ServerLocator

    def _make(supported: Optional[Sequence[str]] = None, **kwargs):
        if supported is None:
            supported = ("udp", "tcp", "tls")
        return ServerLocator(supported, lookup=fake_dns, forward=fake_dns, **kwargs)

    return _make
