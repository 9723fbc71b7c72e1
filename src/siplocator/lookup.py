"""DNS lookup collaborators for SIP server location.

Brief:
  The locator core only talks to the narrow DnsLookup / ForwardResolver
  protocols defined here. Two DNS backends implement them:
    - DnspythonLookup: dnspython's stub resolver (system resolv.conf or an
      explicit nameserver list).
    - DnslibLookup: queries built and parsed with dnslib and sent over plain
      UDP (TCP on truncation) to configured nameservers.
  Forward name resolution for SRV targets and local host names goes through
  the operating system resolver (SystemForwardResolver).

Inputs:
  - Domain names and SRV service names.

Outputs:
  - Lists of NaptrCandidate / SrvCandidate / AddressRecord. "Not found"
    conditions (NXDOMAIN, NODATA, timeouts, unreachable nameservers) are
    reported as empty lists, never as exceptions.
"""

from __future__ import annotations

import ipaddress
import logging
import socket
from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol, Sequence

import dns.exception
import dns.name
import dns.resolver
from dnslib import QTYPE, RCODE, DNSRecord

from .errors import ConfigError, HostNotFoundError, MalformedQueryError
from .hop import SCTP, TCP, TLS, UDP
from .literal import is_literal, strip_brackets
from .transports.tcp import TCPError, tcp_query
from .transports.udp import UDPError, udp_query

logger = logging.getLogger(__name__)

# NAPTR service field -> transport the endpoint must support (RFC 3263,
# RFC 4168 for SCTP, RFC 7118 for WS).
NAPTR_SERVICES = {
    "SIP+D2U": UDP,
    "SIP+D2T": TCP,
    "SIPS+D2T": TLS,
    "SIP+D2S": SCTP,
    "SIPS+D2S": SCTP,
    "SIP+D2W": "ws",
    "SIPS+D2W": "wss",
}


@dataclass(frozen=True)
class NaptrCandidate:
    """NAPTR record relevant to SIP service discovery."""

    order: int
    preference: int
    flags: str
    service: str
    regexp: str
    replacement: str


@dataclass(frozen=True)
class SrvCandidate:
    """SRV record: where a service lives and how to prefer it."""

    priority: int
    weight: int
    port: int
    target: str


@dataclass(frozen=True)
class AddressRecord:
    """A or AAAA record data: one literal address."""

    address: str


class DnsLookup(Protocol):
    """Brief: DNS capabilities the locator consumes."""

    def lookup_naptr(
        self, domain: str, secure: bool, supported_transports: Sequence[str]
    ) -> List[NaptrCandidate]: ...

    def lookup_srv(self, service_name: str) -> List[SrvCandidate]: ...

    def lookup_a(self, domain: str) -> List[AddressRecord]: ...

    def lookup_aaaa(self, domain: str) -> List[AddressRecord]: ...


class ForwardResolver(Protocol):
    """Brief: Host name to literal address resolution (system resolver)."""

    def resolve(self, name: str) -> str: ...


def _text(value: object) -> str:
    if isinstance(value, bytes):
        return value.decode("ascii", errors="replace")
    return str(value)


def _target(value: object) -> str:
    """Brief: Render a domain name without its trailing root dot."""

    text = _text(value)
    if text.endswith(".") and text != ".":
        text = text[:-1]
    return text


def validate_query_name(name: str) -> dns.name.Name:
    """
    Brief: Check that a query name is syntactically valid DNS.

    Inputs:
      - name: Text domain name (e.g. '_sip._udp.example.com').

    Outputs:
      - dns.name.Name: absolute name suitable for querying.

    Raises:
      - MalformedQueryError: empty labels, labels over 63 octets, names over
        255 octets and similar syntax failures.
    """

    try:
        return dns.name.from_text(name)
    except (dns.exception.DNSException, UnicodeError, ValueError) as exc:
        raise MalformedQueryError(f"invalid DNS name {name!r}: {exc}") from exc


def filter_naptr(
    records: Iterable[NaptrCandidate],
    secure: bool,
    supported_transports: Sequence[str],
) -> List[NaptrCandidate]:
    """
    Brief: Keep usable SIP NAPTR records and order them for selection.

    Inputs:
      - records: Raw NAPTR candidates for a domain.
      - secure: True for sips: URIs (only SIPS+ services are usable).
      - supported_transports: Transports this endpoint can use.

    Outputs:
      - list[NaptrCandidate]: terminal ('s' flag) records whose service maps
        to a supported transport, sorted by (order, preference).
    """

    supported = {t.lower() for t in supported_transports}
    kept = []
    for rec in records:
        if "s" not in rec.flags.lower():
            continue
        service = rec.service.upper()
        transport = NAPTR_SERVICES.get(service)
        if transport is None or transport not in supported:
            continue
        if secure and not service.startswith("SIPS+"):
            continue
        kept.append(rec)
    return sorted(kept, key=lambda r: (r.order, r.preference))


class RecordLookup:
    """
    Brief: Shared DnsLookup logic on top of a backend-specific raw query.

    Subclasses implement _query(name, rdtype) returning rdata objects exposing
    the usual NAPTR/SRV attributes, and _address(rdata) for A/AAAA data.
    """

    def _query(self, name: dns.name.Name, rdtype: str) -> list:
        raise NotImplementedError

    def _address(self, rdata: object) -> str:
        raise NotImplementedError

    def lookup_naptr(
        self, domain: str, secure: bool, supported_transports: Sequence[str]
    ) -> List[NaptrCandidate]:
        try:
            name = validate_query_name(domain)
        except MalformedQueryError as exc:
            logger.error("Impossible to parse the parameters for NAPTR lookup: %s", exc)
            return []
        records = [
            NaptrCandidate(
                order=int(rd.order),
                preference=int(rd.preference),
                flags=_text(rd.flags),
                service=_text(rd.service),
                regexp=_text(rd.regexp),
                replacement=_target(rd.replacement),
            )
            for rd in self._query(name, "NAPTR")
        ]
        return filter_naptr(records, secure, supported_transports)

    def lookup_srv(self, service_name: str) -> List[SrvCandidate]:
        """Brief: SRV lookup; raises MalformedQueryError for invalid names."""

        name = validate_query_name(service_name)
        return [
            SrvCandidate(
                priority=int(rd.priority),
                weight=int(rd.weight),
                port=int(rd.port),
                target=_target(rd.target),
            )
            for rd in self._query(name, "SRV")
        ]

    def _lookup_address(self, domain: str, rdtype: str) -> List[AddressRecord]:
        try:
            name = validate_query_name(domain)
        except MalformedQueryError as exc:
            logger.error("Impossible to parse the parameters for %s lookup: %s", rdtype, exc)
            return []
        return [
            AddressRecord(address=self._address(rd)) for rd in self._query(name, rdtype)
        ]

    def lookup_a(self, domain: str) -> List[AddressRecord]:
        return self._lookup_address(domain, "A")

    def lookup_aaaa(self, domain: str) -> List[AddressRecord]:
        return self._lookup_address(domain, "AAAA")


class DnspythonLookup(RecordLookup):
    """
    Brief: DnsLookup backed by dnspython's stub resolver.

    Inputs:
      - nameservers: Optional list of nameserver IPs. When empty/None the
        system resolver configuration is used.
      - port: Port for explicit nameservers.
      - timeout_ms: Total lifetime for a single query.
      - resolver: Optional pre-built dns.resolver.Resolver (tests).

    Outputs:
      - DnspythonLookup instance.

    Raises:
      - ConfigError: no nameservers given and the system resolver
        configuration cannot be read.
    """

    def __init__(
        self,
        nameservers: Optional[List[str]] = None,
        *,
        port: int = 53,
        timeout_ms: int = 2000,
        resolver: Optional[dns.resolver.Resolver] = None,
    ) -> None:
        if resolver is None:
            if nameservers:
                resolver = dns.resolver.Resolver(configure=False)
                # port must be set before nameservers, which capture it
                resolver.port = int(port)
                resolver.nameservers = list(nameservers)
            else:
                try:
                    resolver = dns.resolver.Resolver(configure=True)
                except (dns.resolver.NoResolverConfiguration, OSError) as exc:
                    raise ConfigError(
                        f"No system resolver configuration, set dns.nameservers: {exc}"
                    ) from exc
            resolver.lifetime = timeout_ms / 1000.0
        self._resolver = resolver

    def _query(self, name: dns.name.Name, rdtype: str) -> list:
        try:
            answer = self._resolver.resolve(name, rdtype)
        except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer):
            return []
        except dns.exception.DNSException as exc:
            logger.debug("%s lookup for %s failed: %s", rdtype, name, exc)
            return []
        return list(answer)

    def _address(self, rdata: object) -> str:
        return str(rdata.address)


class DnslibLookup(RecordLookup):
    """
    Brief: DnsLookup that speaks plain DNS to explicit nameservers via dnslib.

    Nameservers are tried in order; a transport error or SERVFAIL/REFUSED
    moves on to the next one. A truncated UDP answer is retried over TCP
    against the same nameserver.

    Inputs:
      - nameservers: Non-empty list of nameserver IPs.
      - port: Nameserver port (UDP and TCP).
      - timeout_ms: Per-attempt timeout in milliseconds.

    Outputs:
      - DnslibLookup instance.
    """

    _RETRY_RCODES = (RCODE.SERVFAIL, RCODE.REFUSED)

    def __init__(
        self, nameservers: List[str], *, port: int = 53, timeout_ms: int = 2000
    ) -> None:
        if not nameservers:
            raise ValueError("DnslibLookup requires at least one nameserver")
        self.nameservers = list(nameservers)
        self.port = int(port)
        self.timeout_ms = int(timeout_ms)

    def _exchange(self, nameserver: str, query: DNSRecord) -> DNSRecord:
        wire = query.pack()
        resp = DNSRecord.parse(
            udp_query(nameserver, self.port, wire, timeout_ms=self.timeout_ms)
        )
        if resp.header.tc:
            logger.debug("Truncated answer from %s, retrying over TCP", nameserver)
            resp = DNSRecord.parse(
                tcp_query(
                    nameserver,
                    self.port,
                    wire,
                    connect_timeout_ms=self.timeout_ms,
                    read_timeout_ms=self.timeout_ms,
                )
            )
        if resp.header.id != query.header.id:
            raise UDPError(f"mismatched transaction id from {nameserver}")
        return resp

    def _query(self, name: dns.name.Name, rdtype: str) -> list:
        qtype = getattr(QTYPE, rdtype)
        query = DNSRecord.question(name.to_text(), rdtype)
        for nameserver in self.nameservers:
            try:
                resp = self._exchange(nameserver, query)
            except (UDPError, TCPError) as exc:
                logger.debug(
                    "%s query for %s via %s failed: %s", rdtype, name, nameserver, exc
                )
                continue
            except Exception as exc:  # DNSError and struct errors from bad wire data
                logger.warning(
                    "Unparseable answer from %s for %s: %s", nameserver, name, exc
                )
                continue
            rcode = resp.header.rcode
            if rcode in self._RETRY_RCODES:
                continue
            if rcode != RCODE.NOERROR:
                return []
            return [rr.rdata for rr in resp.rr if rr.rtype == qtype]
        return []

    def _address(self, rdata: object) -> str:
        return str(ipaddress.ip_address(str(rdata)))


class SystemForwardResolver:
    """
    Brief: ForwardResolver using the operating system resolver.

    Inputs:
      - family: Address family passed to getaddrinfo (AF_UNSPEC by default).

    Outputs:
      - SystemForwardResolver instance whose resolve() returns the first
        address getaddrinfo yields.
    """

    def __init__(self, family: int = socket.AF_UNSPEC) -> None:
        self.family = family

    def resolve(self, name: str) -> str:
        if is_literal(name):
            return strip_brackets(name)
        try:
            infos = socket.getaddrinfo(name, None, self.family, socket.SOCK_STREAM)
        except (socket.gaierror, UnicodeError) as exc:
            raise HostNotFoundError(f"{name}: {exc}") from exc
        for info in infos:
            return str(info[4][0])
        raise HostNotFoundError(f"{name}: no addresses")
