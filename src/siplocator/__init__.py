"""siplocator package"""

from .hop import Hop
from .locator import ServerLocator
from .uri import SessionURI, TelephoneURI, parse_uri

__all__ = ["Hop", "ServerLocator", "SessionURI", "TelephoneURI", "parse_uri"]
