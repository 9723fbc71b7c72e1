"""Request URI model for server location.

Brief:
  Two URI variants participate in hop location:
    - SessionURI: sip:/sips: URIs carrying a host, optional port, optional
      transport parameter and a secure flag.
    - TelephoneURI: tel: URIs, which carry no resolvable host.

  Callers dispatch on the `resolvable` attribute rather than on the concrete
  class, so additional URI kinds can be added without touching the locator.

Inputs:
  - Request URI strings passed to parse_uri().

Outputs:
  - SessionURI / TelephoneURI instances.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Optional, Union

from .errors import UriParseError

_HOSTPORT_RE = re.compile(
    r"^(?P<host>\[[0-9A-Fa-f:.%\w]+\]|[^:\[\]]+)(?::(?P<port>\d+))?$"
)


@dataclass(frozen=True)
class SessionURI:
    """sip: or sips: request URI.

    Inputs:
      - host: Domain name or literal address (IPv6 kept bracketed as written).
      - port: Explicit port, or None when absent.
      - transport: Value of the 'transport' URI parameter, or None.
      - secure: True for sips: URIs.
      - user: Optional user part.
      - params: Remaining URI parameters.

    Outputs:
      - Immutable SessionURI.
    """

    host: str
    port: Optional[int] = None
    transport: Optional[str] = None
    secure: bool = False
    user: Optional[str] = None
    params: Dict[str, Optional[str]] = field(default_factory=dict, compare=False)

    resolvable = True

    @property
    def scheme(self) -> str:
        return "sips" if self.secure else "sip"

    def __str__(self) -> str:
        text = f"{self.scheme}:"
        if self.user:
            text += f"{self.user}@"
        text += self.host
        if self.port is not None:
            text += f":{self.port}"
        if self.transport:
            text += f";transport={self.transport}"
        for key, value in self.params.items():
            text += f";{key}" if value is None else f";{key}={value}"
        return text


@dataclass(frozen=True)
class TelephoneURI:
    """tel: URI; never resolved to hops."""

    number: str
    params: Dict[str, Optional[str]] = field(default_factory=dict, compare=False)

    resolvable = False

    def __str__(self) -> str:
        return f"tel:{self.number}"


TargetURI = Union[SessionURI, TelephoneURI]


def _parse_params(raw: str) -> Dict[str, Optional[str]]:
    params: Dict[str, Optional[str]] = {}
    for item in raw.split(";"):
        if not item:
            continue
        key, sep, value = item.partition("=")
        params[key.strip().lower()] = value.strip() if sep else None
    return params


def parse_uri(text: str) -> TargetURI:
    """
    Brief: Parse a sip:, sips: or tel: URI string.

    Inputs:
      - text: URI text, e.g. 'sips:alice@example.com:5061;transport=tcp'.

    Outputs:
      - SessionURI or TelephoneURI.

    Raises:
      - UriParseError: unknown scheme, empty host, or non-numeric/out of range
        port.

    Example:
      >>> parse_uri("sip:example.com;transport=TCP").transport
      'TCP'
    """

    if not isinstance(text, str) or ":" not in text:
        raise UriParseError(f"not a URI: {text!r}")
    scheme, _, rest = text.strip().partition(":")
    scheme = scheme.lower()

    # Headers never affect routing.
    rest = rest.split("?", 1)[0]

    if scheme == "tel":
        number, _, raw_params = rest.partition(";")
        if not number:
            raise UriParseError(f"empty telephone number in {text!r}")
        return TelephoneURI(number=number, params=_parse_params(raw_params))

    if scheme not in ("sip", "sips"):
        raise UriParseError(f"unsupported URI scheme {scheme!r} in {text!r}")

    user: Optional[str] = None
    if "@" in rest:
        user, _, rest = rest.rpartition("@")
    hostport, _, raw_params = rest.partition(";")
    match = _HOSTPORT_RE.match(hostport.strip())
    if match is None:
        raise UriParseError(f"invalid host/port in {text!r}")

    port: Optional[int] = None
    if match.group("port") is not None:
        port = int(match.group("port"))
        if not 0 < port < 65536:
            raise UriParseError(f"port out of range in {text!r}")

    params = _parse_params(raw_params)
    transport = params.pop("transport", None)
    return SessionURI(
        host=match.group("host"),
        port=port,
        transport=transport or None,
        secure=scheme == "sips",
        user=user or None,
        params=params,
    )
