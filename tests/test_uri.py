"""
Brief: Tests for request URI parsing and the URI variants.

Inputs:
  - None

Outputs:
  - None
"""

import pytest

from siplocator.errors import UriParseError
from siplocator.uri import SessionURI, TelephoneURI, parse_uri


def test_parse_full_sips_uri():
    """
    Brief: User, host, port, transport and extra params are split out.

    Inputs:
      - None

    Outputs:
      - None
    """
    uri = parse_uri("sips:alice@Example.com:5061;transport=tcp;lr?subject=x")
    assert isinstance(uri, SessionURI)
    assert uri.resolvable is True
    assert uri.secure is True
    assert uri.user == "alice"
    assert uri.host == "Example.com"
    assert uri.port == 5061
    assert uri.transport == "tcp"
    assert uri.params == {"lr": None}


def test_parse_minimal_sip_uri():
    """
    Brief: Port and transport default to None.

    Inputs:
      - None

    Outputs:
      - None
    """
    uri = parse_uri("SIP:example.com")
    assert uri == SessionURI(host="example.com")
    assert uri.port is None and uri.transport is None and uri.secure is False


def test_parse_bracketed_ipv6_with_port():
    """
    Brief: Bracketed IPv6 references keep brackets and parse the port.

    Inputs:
      - None

    Outputs:
      - None
    """
    uri = parse_uri("sip:[2001:db8::1]:5070")
    assert uri.host == "[2001:db8::1]"
    assert uri.port == 5070


def test_parse_tel_uri():
    """
    Brief: tel: URIs become non-resolvable TelephoneURI values.

    Inputs:
      - None

    Outputs:
      - None
    """
    uri = parse_uri("tel:+15551234;phone-context=example.com")
    assert isinstance(uri, TelephoneURI)
    assert uri.resolvable is False
    assert uri.number == "+15551234"
    assert str(uri) == "tel:+15551234"


@pytest.mark.parametrize(
    "text",
    ["example.com", "http://example.com", "sip:", "sip:example.com:99999", "sip:example.com:abc", "tel:", 42],
)
def test_parse_errors(text):
    """
    Brief: Malformed URIs raise UriParseError.

    Inputs:
      - text: bad URI

    Outputs:
      - None
    """
    with pytest.raises(UriParseError):
        parse_uri(text)


def test_session_uri_str_roundtrip_shape():
    """
    Brief: str() renders scheme, user, host, port and transport.

    Inputs:
      - None

    Outputs:
      - None
    """
    uri = SessionURI(host="example.com", port=5060, transport="udp", secure=True, user="bob")
    assert str(uri) == "sips:bob@example.com:5060;transport=udp"
