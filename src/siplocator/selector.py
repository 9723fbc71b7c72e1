"""Transport selection for SIP targets (RFC 3263 section 4.1).

Brief:
  Decides which transport to use for a non-numeric target and keeps any DNS
  data fetched along the way so the hop resolver does not repeat queries:
    - explicit transport parameter: used as given
    - explicit port without transport: scheme default (UDP / TCP for sips:)
    - otherwise: NAPTR lookup, then per-transport SRV probing, then the
      scheme default
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .errors import MalformedQueryError
from .hop import TCP, TLS, UDP, default_transport
from .lookup import DnsLookup, NaptrCandidate, SrvCandidate
from .registry import ConcurrentNameSet

logger = logging.getLogger(__name__)

SERVICE_SIPS = "SIPS"
SERVICE_D2U = "D2U"


def srv_service_name(host: str, transport: str, secure: bool) -> str:
    """
    Brief: Build the SRV owner name for a SIP service.

    Inputs:
      - host: Target domain.
      - transport: Transport label (lower-cased into the name).
      - secure: Use the '_sips' service identifier instead of '_sip'.

    Outputs:
      - str: e.g. '_sip._udp.example.com'.
    """

    service = "_sips._" if secure else "_sip._"
    return f"{service}{transport.lower()}.{host}"


def transport_for_naptr_service(service: str) -> str:
    """Brief: Map a NAPTR service field to TLS, UDP or TCP."""

    upper = service.upper()
    if SERVICE_SIPS in upper:
        return TLS
    if SERVICE_D2U in upper:
        return UDP
    return TCP


@dataclass(frozen=True)
class TransportSelection:
    """Outcome of transport selection.

    Inputs:
      - transport: Lower-case transport name to use.
      - naptr: NAPTR record that chose the transport, when NAPTR applied.
      - srv_records: SRV records returned by a successful per-transport
        probe (empty when no probe succeeded or none ran).

    Outputs:
      - Immutable selection consumed by HopResolver.
    """

    transport: str
    naptr: Optional[NaptrCandidate] = None
    srv_records: Tuple[SrvCandidate, ...] = ()


class TransportSelector:
    """
    Brief: RFC 3263 section 4.1 transport selection.

    Inputs:
      - lookup: DnsLookup used for NAPTR and SRV queries.
      - supported_transports: Registry of transports this endpoint supports;
        read once per selection.

    Outputs:
      - TransportSelector instance.
    """

    def __init__(self, lookup: DnsLookup, supported_transports: ConcurrentNameSet):
        self.lookup = lookup
        self.supported_transports = supported_transports

    def select(
        self,
        host: str,
        port: Optional[int],
        transport: Optional[str],
        secure: bool,
    ) -> TransportSelection:
        """
        Brief: Pick the transport for host and keep NAPTR/SRV data for later.

        Inputs:
          - host: Non-numeric target domain.
          - port: Explicit URI port, or None.
          - transport: Explicit transport parameter, or None.
          - secure: True for sips: URIs.

        Outputs:
          - TransportSelection with a lower-cased transport.
        """

        if transport:
            return TransportSelection(transport=transport.lower())

        if port is not None:
            return TransportSelection(transport=default_transport(secure))

        supported = self.supported_transports.snapshot()
        naptr_records = self.lookup.lookup_naptr(host, secure, supported)
        if naptr_records:
            naptr = naptr_records[0]
            chosen = transport_for_naptr_service(naptr.service)
            logger.debug(
                "NAPTR for %s selected service %s -> %s (replacement %s)",
                host,
                naptr.service,
                chosen,
                naptr.replacement,
            )
            return TransportSelection(transport=chosen.lower(), naptr=naptr)

        srv_records, probed = self._probe_supported(host, secure, supported)
        if probed is not None:
            logger.debug("SRV probe for %s succeeded with transport %s", host, probed)
        # RFC 3263: "If no SRV records are found, the client SHOULD use TCP for
        # a SIPS URI, and UDP for a SIP URI". Applied even after a successful
        # probe; the probed records are still handed on.
        chosen = default_transport(secure)
        return TransportSelection(transport=chosen.lower(), srv_records=srv_records)

    def _probe_supported(
        self, host: str, secure: bool, supported: Sequence[str]
    ) -> Tuple[Tuple[SrvCandidate, ...], Optional[str]]:
        """
        Brief: Query SRV for each supported transport until one answers.

        Inputs:
          - host: Target domain.
          - secure: True for sips: URIs.
          - supported: Snapshot of supported transports, in registry order.

        Outputs:
          - (records, transport): records of the first non-empty probe and the
            transport that produced them, or ((), None).
        """

        for candidate in supported:
            name = srv_service_name(host, candidate, secure)
            try:
                records = self.lookup.lookup_srv(name)
            except MalformedQueryError as exc:
                logger.error("Impossible to parse the parameters for dns lookup: %s", exc)
                continue
            if records:
                return tuple(records), candidate
        return (), None
