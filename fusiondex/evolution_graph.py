"""
evolution_graph – Lineage for a whole population.

Records only author forward edges (``evolutions``).  ``build_lineage``
derives, for every record:

  - ``evolves_to``      – its own edges, with the target's name resolved
  - ``evolves_from``    – the edges other records point at it with
  - ``evolution_chain`` – every record of its lineage component, root first,
                          then each branch depth-first

Every member of a component gets the very same chain tuple.  Targets missing
from the population are kept with an unresolved (``None``) name.  Cycles in
the authored edges raise ``LineageCycleError``.

The builder needs global edge visibility, so it always runs over the complete
population in one thread.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from fusiondex.species import CreatureRecord, DuplicateCreatureError

logger = logging.getLogger(__name__)


class LineageCycleError(ValueError):
    """The authored evolution edges loop back on themselves."""

    def __init__(self, path: List[str]):
        super().__init__("Evolution cycle: " + " -> ".join(path))
        self.path = path


@dataclass(frozen=True)
class EvolutionLink:
    """One evolution edge; ``name`` is the display name of the far end."""
    source: str
    target: str
    method: str
    param: str
    name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "target": self.target,
            "method": self.method,
            "param": self.param or None,
            "name": self.name,
        }


@dataclass(frozen=True)
class ChainLink:
    """A chain member and the first edge it evolves by, if any."""
    id: str
    name: str
    target: Optional[str] = None
    method: Optional[str] = None
    param: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "target": self.target,
            "method": self.method,
            "param": self.param or None,
        }


@dataclass(frozen=True)
class LineageEntry:
    id: str
    evolves_from: Tuple[EvolutionLink, ...]
    evolves_to: Tuple[EvolutionLink, ...]
    evolution_chain: Tuple[ChainLink, ...]

    @property
    def is_root(self) -> bool:
        return not self.evolves_from

    def to_dict(self) -> Dict[str, Any]:
        return {
            "evolves_from": [link.to_dict() for link in self.evolves_from],
            "evolves_to": [link.to_dict() for link in self.evolves_to],
            "evolution_chain": [link.to_dict() for link in self.evolution_chain],
        }


Chain = Tuple[ChainLink, ...]


def build_lineage(records: Iterable[CreatureRecord]) -> Dict[str, LineageEntry]:
    """Compute lineage entries for every record, keyed by id.

    The input records are left untouched; calling this twice on the same
    records gives equal results.
    """
    index: Dict[str, CreatureRecord] = {}
    for record in records:
        if record.id in index:
            raise DuplicateCreatureError(record.id)
        index[record.id] = record

    outbound, inbound = _materialize_edges(index)

    chains: Dict[str, Chain] = {}
    for record_id in index:
        if record_id in chains:
            continue
        root = _find_root(record_id, inbound)
        chain = _walk_chain(root, index, outbound)
        for link in chain:
            # Records reachable from two roots keep the first chain they got.
            chains.setdefault(link.id, chain)

    lineage = {
        record_id: LineageEntry(
            id=record_id,
            evolves_from=tuple(inbound[record_id]),
            evolves_to=tuple(outbound[record_id]),
            evolution_chain=chains[record_id],
        )
        for record_id in index
    }
    logger.debug("Built lineage for %d records (%d distinct chains)",
                 len(lineage), len({id(c) for c in chains.values()}))
    return lineage


def _materialize_edges(
    index: Dict[str, CreatureRecord],
) -> Tuple[Dict[str, List[EvolutionLink]], Dict[str, List[EvolutionLink]]]:
    """Resolve authored edges and derive the inbound ones."""
    outbound: Dict[str, List[EvolutionLink]] = {}
    inbound: Dict[str, List[EvolutionLink]] = {record_id: [] for record_id in index}
    dangling = 0

    for record_id, record in index.items():
        links: List[EvolutionLink] = []
        for evo in record.evolutions:
            target = index.get(evo.target)
            if target is None:
                dangling += 1
                logger.debug("Unresolved evolution target: %s -> %s", record_id, evo.target)
                links.append(EvolutionLink(record_id, evo.target, evo.method, evo.param))
                continue
            links.append(EvolutionLink(record_id, evo.target, evo.method, evo.param,
                                       name=target.name))
            inbound[evo.target].append(
                EvolutionLink(record_id, evo.target, evo.method, evo.param,
                              name=record.name)
            )
        outbound[record_id] = links

    if dangling:
        logger.info("%d evolution edges point outside the population", dangling)
    return outbound, inbound


def _find_root(record_id: str, inbound: Dict[str, List[EvolutionLink]]) -> str:
    """Follow first inbound edges back to a record nothing evolves into."""
    path = [record_id]
    seen: Set[str] = {record_id}
    current = record_id
    while inbound[current]:
        current = inbound[current][0].source
        path.append(current)
        if current in seen:
            raise LineageCycleError(list(reversed(path)))
        seen.add(current)
    return current


def _walk_chain(root: str, index: Dict[str, CreatureRecord],
                outbound: Dict[str, List[EvolutionLink]]) -> Chain:
    """Depth-first over every branch starting at *root*."""
    chain: List[ChainLink] = []
    visited: Set[str] = set()
    path: List[str] = []

    def visit(record_id: str) -> None:
        visited.add(record_id)
        path.append(record_id)
        links = outbound[record_id]
        first = links[0] if links else None
        chain.append(ChainLink(
            id=record_id,
            name=index[record_id].name,
            target=first.target if first else None,
            method=first.method if first else None,
            param=first.param if first else None,
        ))
        for link in links:
            if link.target not in index:
                continue
            if link.target in path:
                raise LineageCycleError(path + [link.target])
            if link.target not in visited:
                visit(link.target)
        path.pop()

    visit(root)
    return tuple(chain)
