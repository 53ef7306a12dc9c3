"""
population – Full population derivation: base + every fusion + triples.

Fusions are synthesized for every ordered (head, body) pair of base
records, head-major, optionally including self-fusions.  Each pair is
independent, so rows of heads can be fanned out to worker processes; the
result order is the same either way.
"""

from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from fusiondex.config import DEFAULT_WORKERS, INCLUDE_SELF_FUSIONS
from fusiondex.evolution_graph import LineageEntry, build_lineage
from fusiondex.fusion import synthesize
from fusiondex.species import CreatureRecord, DuplicateCreatureError, RecordKind
from fusiondex.split_names import NameTable, UnknownNameError

logger = logging.getLogger(__name__)


# ── Synthesis ───────────────────────────────────────────────────────────────

def fuse_row(head: CreatureRecord, bodies: Sequence[CreatureRecord],
             names: NameTable, include_self: bool = INCLUDE_SELF_FUSIONS) -> List[CreatureRecord]:
    """Every fusion with *head* as the head, in body order."""
    return [
        synthesize(head, body, names)
        for body in bodies
        if include_self or body.id != head.id
    ]


def synthesize_all(
    base: Sequence[CreatureRecord],
    names: NameTable,
    include_self: bool = INCLUDE_SELF_FUSIONS,
    workers: int = DEFAULT_WORKERS,
) -> Iterator[CreatureRecord]:
    """Yield the fusion of every ordered pair of *base* records."""
    base = list(base)
    missing = [r.id for r in base if r.id not in names]
    if missing:
        raise UnknownNameError(f"No name fragments for ids {', '.join(missing)}")
    if workers <= 1 or len(base) < 2:
        for head in base:
            yield from fuse_row(head, base, names, include_self)
        return

    logger.info("Synthesizing %d fusion rows across %d workers", len(base), workers)
    row = partial(fuse_row, bodies=base, names=names, include_self=include_self)
    with ProcessPoolExecutor(max_workers=workers) as pool:
        # map() keeps submission order, so output matches the serial path.
        for fusions in pool.map(row, base, chunksize=max(1, len(base) // (workers * 4))):
            yield from fusions


# ── Population ──────────────────────────────────────────────────────────────

@dataclass
class AnnotatedCreature:
    """A record together with its computed lineage."""
    record: CreatureRecord
    lineage: LineageEntry

    @property
    def id(self) -> str:
        return self.record.id

    def to_dict(self) -> Dict[str, Any]:
        data = self.record.to_dict()
        del data["evolutions"]
        data.update(self.lineage.to_dict())
        return data


@dataclass
class Population:
    """All records of one run keyed by id, in base → fusion → triple order."""
    records: Dict[str, CreatureRecord] = field(default_factory=dict)

    @classmethod
    def from_records(cls, records: Iterable[CreatureRecord]) -> "Population":
        population = cls()
        for record in records:
            population.add(record)
        return population

    def add(self, record: CreatureRecord) -> None:
        if record.id in self.records:
            raise DuplicateCreatureError(record.id)
        self.records[record.id] = record

    def __getitem__(self, record_id: str) -> CreatureRecord:
        return self.records[record_id]

    def __contains__(self, record_id: object) -> bool:
        return record_id in self.records

    def __iter__(self) -> Iterator[CreatureRecord]:
        return iter(self.records.values())

    def __len__(self) -> int:
        return len(self.records)

    def get(self, record_id: str) -> Optional[CreatureRecord]:
        return self.records.get(record_id)

    def of_kind(self, kind: RecordKind) -> List[CreatureRecord]:
        return [r for r in self.records.values() if r.kind == kind]

    def counts(self) -> Dict[str, int]:
        result = {kind.value: 0 for kind in RecordKind}
        for record in self.records.values():
            result[record.kind.value] += 1
        return result

    def annotate(self) -> Dict[str, AnnotatedCreature]:
        """New annotated view of every record; the population is not modified."""
        lineage = build_lineage(self.records.values())
        return {
            record_id: AnnotatedCreature(record, lineage[record_id])
            for record_id, record in self.records.items()
        }


def build_population(
    base: Sequence[CreatureRecord],
    triples: Sequence[CreatureRecord],
    names: NameTable,
    include_self: bool = INCLUDE_SELF_FUSIONS,
    workers: int = DEFAULT_WORKERS,
) -> Population:
    """Base records, then every fusion, then the triples."""
    population = Population.from_records(base)
    for fusion in synthesize_all(base, names, include_self=include_self, workers=workers):
        population.add(fusion)
    for triple in triples:
        population.add(triple)
    logger.info("Population ready: %s", population.counts())
    return population
