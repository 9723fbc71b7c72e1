from __future__ import annotations

from typing import Iterable, List, Protocol

from .lookup import SrvCandidate


class SrvRanking(Protocol):
    """Brief: Policy ordering SRV candidates before hops are emitted."""

    def __call__(self, candidates: Iterable[SrvCandidate]) -> List[SrvCandidate]: ...


def rank_srv(candidates: Iterable[SrvCandidate]) -> List[SrvCandidate]:
    """
    Brief: Deterministic RFC 2782 ordering of SRV candidates.

    Inputs:
      - candidates: SRV records from one lookup, in answer order.

    Outputs:
      - list[SrvCandidate]: ascending priority; within a priority, higher
        weight first. Ties keep answer order (sorted() is stable).

    Example:
      >>> a = SrvCandidate(20, 0, 5060, "b")
      >>> b = SrvCandidate(10, 5, 5060, "a")
      >>> [c.target for c in rank_srv([a, b])]
      ['a', 'b']
    """

    return sorted(candidates, key=lambda c: (c.priority, -c.weight))
