"""Append-only ledger of distance equalities with provenance."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Literal, Optional

logger = logging.getLogger(__name__)

CitationRule = Literal["given", "def15", "prop", "cn1", "cn3", "cn4"]


@dataclass(frozen=True, order=True)
class DistancePair:
    """Unordered pair of point ids standing for the distance between them."""

    a: str
    b: str

    def __post_init__(self) -> None:
        if self.b < self.a:
            a, b = self.b, self.a
            object.__setattr__(self, "a", a)
            object.__setattr__(self, "b", b)

    @property
    def key(self) -> str:
        return f"{self.a}|{self.b}"

    @property
    def is_trivial(self) -> bool:
        return self.a == self.b


def distance_pair(a: str, b: str) -> DistancePair:
    return DistancePair(a, b)


@dataclass(frozen=True)
class Citation:
    rule: CitationRule
    circle_id: Optional[str] = None
    prop_id: Optional[int] = None
    via: Optional[DistancePair] = None
    whole: Optional[DistancePair] = None
    part: Optional[DistancePair] = None

    def __str__(self) -> str:
        if self.rule == "def15":
            return "Def.15"
        if self.rule == "prop":
            return f"I.{self.prop_id}"
        if self.rule == "given":
            return "Given"
        return f"C.N.{self.rule[2:]}"


@dataclass(frozen=True)
class Fact:
    id: int
    left: DistancePair
    right: DistancePair
    citation: Citation
    statement: str
    justification: str
    at_step: int

    def __str__(self) -> str:  # pragma: no cover - debugging helper
        return f"#{self.id} {self.statement} [{self.citation}] @ step {self.at_step}"


@dataclass
class FactStore:
    """Equality facts plus a union-find over distance keys.

    Adding a fact that is already implied, directly or by transitivity, is a
    no-op and returns an empty list.
    """

    facts: List[Fact] = field(default_factory=list)
    next_id: int = 1
    _parent: Dict[str, str] = field(default_factory=dict, repr=False)

    def _find(self, key: str) -> str:
        root = key
        while self._parent.get(root, root) != root:
            root = self._parent[root]
        while key != root:
            nxt = self._parent.get(key, key)
            self._parent[key] = root
            key = nxt
        return root

    def _union(self, left: str, right: str) -> None:
        lr = self._find(left)
        rr = self._find(right)
        if lr != rr:
            self._parent[rr] = lr

    def query_equality(self, left: DistancePair, right: DistancePair) -> bool:
        if left == right:
            return True
        return self._find(left.key) == self._find(right.key)

    def add_fact(
        self,
        left: DistancePair,
        right: DistancePair,
        citation: Citation,
        statement: str,
        justification: str,
        at_step: int,
    ) -> List[Fact]:
        if left.is_trivial or right.is_trivial or self.query_equality(left, right):
            logger.debug("Skipping known fact %s", statement)
            return []
        fact = Fact(self.next_id, left, right, citation, statement, justification, at_step)
        self.next_id += 1
        self.facts.append(fact)
        self._union(left.key, right.key)
        return [fact]

    def equal_distances(self, pair: DistancePair) -> List[DistancePair]:
        """Every distance known to equal ``pair``, including itself."""

        root = self._find(pair.key)
        seen: Dict[str, DistancePair] = {pair.key: pair}
        for fact in self.facts:
            for side in (fact.left, fact.right):
                if side.key not in seen and self._find(side.key) == root:
                    seen[side.key] = side
        return sorted(seen.values())

    def facts_at_step(self, step: int) -> List[Fact]:
        return [fact for fact in self.facts if fact.at_step == step]

    @classmethod
    def rebuild(cls, facts: Iterable[Fact]) -> "FactStore":
        """Store holding exactly ``facts``, e.g. after truncating a replay."""

        store = cls()
        for fact in facts:
            store.facts.append(fact)
            store._union(fact.left.key, fact.right.key)
            store.next_id = max(store.next_id, fact.id + 1)
        return store

    def __len__(self) -> int:
        return len(self.facts)

    def __iter__(self) -> Iterator[Fact]:
        return iter(self.facts)

    def summary(self) -> str:
        return f"FactStore(facts={len(self.facts)})"


__all__ = [
    "CitationRule",
    "DistancePair",
    "distance_pair",
    "Citation",
    "Fact",
    "FactStore",
]
