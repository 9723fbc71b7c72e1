from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

UDP = "udp"
TCP = "tcp"
TLS = "tls"
SCTP = "sctp"

DEFAULT_PORT = 5060
DEFAULT_TLS_PORT = 5061

DEFAULT_SUPPORTED_TRANSPORTS = (UDP, TCP, TLS)


@dataclass(frozen=True)
class Hop:
    """Next network hop for a SIP request.

    Inputs:
      - host: Literal IPv4/IPv6 address string.
      - port: Destination port, or None when the request URI carried no port
        and the resolution path did not supply one.
      - transport: Transport name ('udp', 'tcp', 'tls', ...), or None when a
        local-endpoint shortcut was taken for a URI without a transport param.

    Outputs:
      - Immutable hop; lists of hops are ordered by attempt preference.
    """

    host: str
    port: Optional[int]
    transport: Optional[str]

    def __str__(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        text = host if self.port is None else f"{host}:{self.port}"
        if self.transport:
            text += f";transport={self.transport}"
        return text


def default_transport(secure: bool) -> str:
    """Brief: Scheme default transport (UDP for sip:, TCP for sips:)."""

    return TCP if secure else UDP


def default_port(transport: str, secure: bool) -> int:
    """Brief: Default port for a transport when the URI omits one.

    Inputs:
      - transport: Transport name (case-insensitive).
      - secure: True for a sips: URI.

    Outputs:
      - int: 5061 for TLS, or TCP under a sips: URI; 5060 otherwise.
    """

    t = transport.lower()
    if t == TLS or (t == TCP and secure):
        return DEFAULT_TLS_PORT
    return DEFAULT_PORT
