from __future__ import annotations

import ipaddress


def strip_brackets(host: str) -> str:
    """Brief: Remove the [] around an IPv6 reference, decoding a %25 zone escape."""

    if host.startswith("[") and host.endswith("]"):
        # RFC 6874: the zone delimiter is written "%25" inside brackets
        return host[1:-1].replace("%25", "%", 1)
    return host


def is_literal(host: str) -> bool:
    """
    Brief: Return True when host is a literal IPv4 or IPv6 address.

    Inputs:
      - host: Host token from a request URI. IPv6 references may be bracketed
        ('[2001:db8::1]') and may carry a zone index ('fe80::1%eth0').

    Outputs:
      - bool: True for literal addresses, False for domain names.

    Example:
      >>> is_literal("192.0.2.1"), is_literal("[::1]"), is_literal("example.com")
      (True, True, False)
    """

    if not host:
        return False
    candidate = strip_brackets(host.strip())
    # ipaddress only accepts zone indices on Python 3.9+
    if "%" in candidate:
        candidate, _, zone = candidate.partition("%")
        if not zone or ":" not in candidate:
            return False
    try:
        ipaddress.ip_address(candidate)
    except ValueError:
        return False
    return True
