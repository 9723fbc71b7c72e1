"""Hop resolution for SIP targets (RFC 3263 section 4.2).

Brief:
  Once the transport is known, determines addresses and ports:
    - explicit port: A then AAAA lookup of the host
    - NAPTR selected: SRV lookup of the NAPTR replacement
    - no SRV data yet: SRV lookup of _sip(s)._<transport>.<host>
    - SRV data kept from transport probing: used directly
  Every SRV path falls back to A/AAAA lookups when it yields no records.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .assembler import hops_from_addresses, hops_from_srv
from .errors import MalformedQueryError
from .hop import TLS, Hop
from .lookup import DnsLookup, ForwardResolver, SrvCandidate
from .ranking import SrvRanking, rank_srv
from .selector import TransportSelection, srv_service_name

logger = logging.getLogger(__name__)


class HopResolver:
    """
    Brief: Turn a host plus transport selection into an ordered hop list.

    Inputs:
      - lookup: DnsLookup used for SRV and A/AAAA queries.
      - forward: ForwardResolver used to resolve SRV targets.
      - ranking: SRV ordering policy (rank_srv by default).

    Outputs:
      - HopResolver instance.
    """

    def __init__(
        self,
        lookup: DnsLookup,
        forward: ForwardResolver,
        ranking: SrvRanking = rank_srv,
    ) -> None:
        self.lookup = lookup
        self.forward = forward
        self.ranking = ranking

    def resolve(
        self,
        host: str,
        port: Optional[int],
        secure: bool,
        selection: TransportSelection,
    ) -> List[Hop]:
        """
        Brief: Produce hops for host using the data gathered by selection.

        Inputs:
          - host: Non-numeric target domain.
          - port: Explicit URI port, or None.
          - secure: True for sips: URIs.
          - selection: Output of TransportSelector.select().

        Outputs:
          - list[Hop]: ordered hops; empty when nothing resolved.
        """

        transport = selection.transport

        if port is not None:
            return self.address_hops(host, port, transport)

        if selection.naptr is not None:
            replacement = selection.naptr.replacement
            try:
                records = self.lookup.lookup_srv(replacement)
            except MalformedQueryError as exc:
                logger.error("Impossible to parse the NAPTR replacement: %s", exc)
                records = []
            if records:
                return self.srv_hops(host, transport, records)
            logger.debug("No SRV records at %s, falling back to A/AAAA", replacement)
            return self.address_hops(host, port, transport)

        if not selection.srv_records:
            name = srv_service_name(host, transport, secure or transport == TLS)
            try:
                records = self.lookup.lookup_srv(name)
            except MalformedQueryError as exc:
                logger.error("Impossible to parse the parameters for dns lookup: %s", exc)
                records = []
            if not records:
                logger.debug("No SRV records at %s, falling back to A/AAAA", name)
                return self.address_hops(host, port, transport)
            return self.srv_hops(host, transport, records)

        return self.srv_hops(host, transport, selection.srv_records)

    def srv_hops(
        self, host: str, transport: str, records: Sequence[SrvCandidate]
    ) -> List[Hop]:
        """Brief: Rank SRV records and resolve their targets into hops."""

        return hops_from_srv(self.ranking(records), transport, self.forward, host=host)

    def address_hops(self, host: str, port: Optional[int], transport: str) -> List[Hop]:
        """
        Brief: A then AAAA lookup of host, one hop per address.

        Inputs:
          - host: Domain to look up.
          - port: Port copied onto every hop (may be None).
          - transport: Transport copied onto every hop.

        Outputs:
          - list[Hop]: IPv4 hops first, then IPv6 hops.
        """

        hops = hops_from_addresses(self.lookup.lookup_a(host), port, transport)
        hops.extend(hops_from_addresses(self.lookup.lookup_aaaa(host), port, transport))
        return hops
