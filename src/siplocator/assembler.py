from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from .errors import HostNotFoundError
from .hop import Hop
from .lookup import AddressRecord, ForwardResolver, SrvCandidate

logger = logging.getLogger(__name__)


def hops_from_srv(
    records: Iterable[SrvCandidate],
    transport: str,
    forward: ForwardResolver,
    *,
    host: str = "",
) -> List[Hop]:
    """
    Brief: Turn ordered SRV candidates into hops.

    Inputs:
      - records: SRV candidates, already ranked.
      - transport: Transport for every emitted hop.
      - forward: Resolver mapping each candidate target to a literal address.
      - host: Original request host (log context only).

    Outputs:
      - list[Hop]: one hop per candidate whose target resolved, in input
        order. Candidates whose target cannot be resolved are logged and
        skipped, so the list may be empty.
    """

    hops: List[Hop] = []
    for record in records:
        try:
            address = forward.resolve(record.target)
        except HostNotFoundError as exc:
            logger.error(
                "Impossible to get the host address of SRV target %s for %s/%s: %s",
                record.target,
                host,
                transport,
                exc,
            )
            continue
        logger.debug(
            "SRV lookup for %s/%s: target=%s address=%s port=%d",
            host,
            transport,
            record.target,
            address,
            record.port,
        )
        hops.append(Hop(address, record.port, transport))
    return hops


def hops_from_addresses(
    records: Iterable[AddressRecord], port: Optional[int], transport: str
) -> List[Hop]:
    """Brief: One hop per A/AAAA record, carrying port and transport through."""

    return [Hop(record.address, port, transport) for record in records]
