class LocatorError(Exception):
    """
    Brief: Base class for siplocator errors.

    Inputs:
    - message: description

    Outputs:
    - Exception instance
    """

    pass


class MalformedQueryError(LocatorError):
    """
    Brief: A DNS query name failed syntactic validation before being sent.

    Inputs:
    - message: description including the offending name

    Outputs:
    - Exception instance
    """

    pass


class HostNotFoundError(LocatorError):
    """
    Brief: Forward name resolution could not map a host name to an address.

    Inputs:
    - message: description including the host name

    Outputs:
    - Exception instance
    """

    pass


class UriParseError(LocatorError, ValueError):
    """Raised when a request URI string cannot be parsed."""

    pass


class ConfigError(LocatorError, ValueError):
    """Raised for invalid or unreadable configuration."""

    pass
