import socket

# Smallest well-formed DNS message: the fixed header.
DNS_HEADER_LEN = 12


class TCPError(Exception):
    """
    A DNS-over-TCP transport error.

    Brief: Raised for connect/read/write failures and framing errors.
    """


def tcp_query(
    host: str,
    port: int,
    query: bytes,
    *,
    connect_timeout_ms: int = 1000,
    read_timeout_ms: int = 1500,
) -> bytes:
    """
    Send one DNS query over a fresh TCP connection (RFC 7766 framing).

    The dnslib backend only uses TCP to repeat a query whose UDP answer came
    back truncated, so connections are not pooled or reused.

    Inputs:
      - host: Nameserver host/IP.
      - port: Nameserver TCP port.
      - query: Wire-format DNS query bytes.
      - connect_timeout_ms: TCP connect timeout.
      - read_timeout_ms: Timeout for each send/receive.
    Outputs:
      - bytes: Wire-format DNS response.

    Example:
      >>> resp = tcp_query('192.0.2.53', 53, query_wire)
    """
    framed = len(query).to_bytes(2, byteorder="big") + query
    try:
        with socket.create_connection(
            (host, port), timeout=connect_timeout_ms / 1000.0
        ) as sock:
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            sock.settimeout(read_timeout_ms / 1000.0)
            sock.sendall(framed)
            size = int.from_bytes(_recv_exact(sock, 2), byteorder="big")
            if size < DNS_HEADER_LEN:
                raise TCPError(f"{host}:{port} sent a {size}-byte DNS message")
            return _recv_exact(sock, size)
    except OSError as e:
        raise TCPError(f"Network error: {e}") from e


def _recv_exact(sock: socket.socket, n: int) -> bytes:
    """
    Receive exactly n bytes from a blocking socket.

    Inputs:
      - sock: Connected socket.
      - n: Number of bytes to read.
    Outputs:
      - bytes: Exactly n bytes.

    Raises:
      - TCPError: when the peer closes the connection early.
    """
    buf = bytearray()
    while len(buf) < n:
        chunk = sock.recv(n - len(buf))
        if not chunk:
            raise TCPError(f"connection closed after {len(buf)} of {n} bytes")
        buf.extend(chunk)
    return bytes(buf)
