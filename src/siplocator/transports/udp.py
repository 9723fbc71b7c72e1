import ipaddress
import socket
import time
from typing import Optional


class UDPError(Exception):
    """
    Brief: DNS-over-UDP transport error (timeout, socket failure).

    Inputs:
    - message: description

    Outputs:
    - Exception instance
    """


def _family_for(host: str) -> int:
    try:
        if ipaddress.ip_address(host).version == 6:
            return socket.AF_INET6
    except ValueError:
        pass
    return socket.AF_INET


def udp_query(
    host: str,
    port: int,
    query: bytes,
    *,
    timeout_ms: int = 2000,
    source_ip: Optional[str] = None,
) -> bytes:
    """
    Brief: Send one DNS query over UDP and wait for its answer.

    Datagrams from other peers, or whose transaction id differs from the
    query's, are dropped while the deadline has not passed.

    Inputs:
    - host: nameserver IP (IPv4 or IPv6)
    - port: nameserver UDP port
    - query: wire-format DNS query bytes (first two bytes are the id)
    - timeout_ms: overall deadline in milliseconds
    - source_ip: optional source address to bind

    Outputs:
    - bytes: wire-format DNS response

    Example:
        >>> try:
        ...     udp_query('127.0.0.1', 9, b'\x00\x01', timeout_ms=10)
        ... except UDPError:
        ...     pass
    """
    txid = query[:2]
    deadline = time.monotonic() + timeout_ms / 1000.0
    try:
        with socket.socket(_family_for(host), socket.SOCK_DGRAM) as s:
            if source_ip:
                s.bind((source_ip, 0))
            s.connect((host, int(port)))
            s.send(query)
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise UDPError(f"timed out waiting for {host}:{port}")
                s.settimeout(remaining)
                data = s.recv(4096)
                if data[:2] == txid:
                    return data
    except OSError as e:
        raise UDPError(f"UDP error: {e}") from e
