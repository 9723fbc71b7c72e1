from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple, Union

from .errors import HostNotFoundError
from .hop import DEFAULT_SUPPORTED_TRANSPORTS, Hop, default_port, default_transport
from .literal import is_literal, strip_brackets
from .lookup import DnsLookup, DnspythonLookup, ForwardResolver, SystemForwardResolver
from .ranking import SrvRanking, rank_srv
from .registry import ConcurrentNameSet
from .resolver import HopResolver
from .selector import TransportSelector
from .uri import SessionURI, TargetURI, parse_uri

logger = logging.getLogger(__name__)


class ServerLocator:
    """
    Brief: Locate the ordered next hops for a SIP request URI (RFC 3263).

    Resolution order for a sip:/sips: URI:
      1. Numeric host: a single hop, no DNS.
      2. Host registered as a local host name: forward-resolve it directly.
      3. Otherwise: transport selection (NAPTR / SRV probing) followed by
         SRV or A/AAAA hop resolution.
    tel: URIs never produce hops.

    Inputs:
      - supported_transports: Transports this endpoint can use, in probing
        order (default: udp, tcp, tls).
      - lookup: DnsLookup backend (dnspython stub resolver by default).
      - forward: ForwardResolver for host names (system resolver by default).
      - local_host_names: Host names that belong to this endpoint.
      - ranking: SRV ordering policy.

    Outputs:
      - ServerLocator instance; safe to share across threads.

    Example:
      >>> locator = ServerLocator(lookup=my_lookup)
      >>> locator.locate_hops("sip:192.0.2.10")
      [Hop(host='192.0.2.10', port=5060, transport='udp')]
    """

    def __init__(
        self,
        supported_transports: Iterable[str] = DEFAULT_SUPPORTED_TRANSPORTS,
        *,
        lookup: Optional[DnsLookup] = None,
        forward: Optional[ForwardResolver] = None,
        local_host_names: Iterable[str] = (),
        ranking: SrvRanking = rank_srv,
    ) -> None:
        self._supported_transports = ConcurrentNameSet(supported_transports)
        self._local_host_names = ConcurrentNameSet(local_host_names)
        self.lookup = lookup if lookup is not None else DnspythonLookup()
        self.forward = forward if forward is not None else SystemForwardResolver()
        self.selector = TransportSelector(self.lookup, self._supported_transports)
        self.resolver = HopResolver(self.lookup, self.forward, ranking)

    @property
    def supported_transports(self) -> Tuple[str, ...]:
        return self._supported_transports.snapshot()

    @property
    def local_host_names(self) -> Tuple[str, ...]:
        return self._local_host_names.snapshot()

    def add_supported_transport(self, transport: str) -> None:
        self._supported_transports.add(transport)

    def remove_supported_transport(self, transport: str) -> None:
        self._supported_transports.remove(transport)

    def add_local_host_name(self, name: str) -> None:
        self._local_host_names.add(name)

    def remove_local_host_name(self, name: str) -> None:
        self._local_host_names.remove(name)

    def locate_hops(self, uri: Union[TargetURI, str]) -> List[Hop]:
        """
        Brief: Return the hops to try, in order, for uri.

        Inputs:
          - uri: SessionURI / TelephoneURI, or URI text parsed with parse_uri().

        Outputs:
          - list[Hop]: first element is the first choice. An empty list means
            no route was found; that is a normal outcome, not an error.

        Raises:
          - UriParseError: only when uri is text that cannot be parsed.
        """

        if isinstance(uri, str):
            uri = parse_uri(uri)
        if not uri.resolvable:
            return []
        return self._locate_session_hops(uri)

    def _locate_session_hops(self, uri: SessionURI) -> List[Hop]:
        host = uri.host
        logger.debug("Resolving %s transport %s", host, uri.transport)

        if is_literal(host):
            # RFC 3263 section 4.2: a numeric target is used as is.
            transport = uri.transport or default_transport(uri.secure)
            port = uri.port
            if port is None:
                port = default_port(transport, uri.secure)
            logger.debug("Host %s is a numeric IP address, no DNS lookup", host)
            return [Hop(strip_brackets(host), port, transport)]

        if self._local_host_names.contains(host):
            try:
                address = self.forward.resolve(host)
            except HostNotFoundError as exc:
                logger.warning(
                    "Local host name %s cannot be resolved: %s", host, exc
                )
            else:
                return [Hop(address, uri.port, uri.transport)]

        selection = self.selector.select(host, uri.port, uri.transport, uri.secure)
        hops = self.resolver.resolve(host, uri.port, uri.secure, selection)
        logger.debug("Located %d hop(s) for %s: %s", len(hops), uri, hops)
        return hops
