"""
main_runner – Top-level derivation pipeline.

  1. Parse the fusion name fragments.
  2. Load base and triple records from the decoded species data.
  3. Synthesize every ordered fusion pair.
  4. Build the evolution lineage over the full population.
  5. Export to JSON and / or SQLite, with sprite annotations when a
     graphics folder is available.

Every run recomputes everything from scratch.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Optional

import psutil

from fusiondex.config import (
    DATABASE_PATH,
    DEFAULT_WORKERS,
    DEX_ENTRIES_PATH,
    GRAPHICS_DIR,
    JSON_EXPORT_PATH,
    SPECIES_JSON_PATH,
    SPLIT_NAMES_PATH,
    SPRITE_CREDITS_PATH,
)
from fusiondex.database import init_db, insert_artists, insert_creatures, population_summary
from fusiondex.export import write_population_json
from fusiondex.loader import apply_dex_entries, load_dex_entries, load_species
from fusiondex.population import AnnotatedCreature, build_population
from fusiondex.species import RecordKind
from fusiondex.split_names import load_name_table
from fusiondex.sprites import SpriteResolver, aggregate_artists, read_sprite_credits

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Outcome of one derivation run."""
    counts: Dict[str, int] = field(default_factory=dict)
    json_entries: int = 0
    db_rows: int = 0
    artists: int = 0
    duration_seconds: float = 0.0
    rss_mb: float = 0.0
    outputs: List[str] = field(default_factory=list)

    def summary(self) -> Dict[str, object]:
        return {
            "base_records": self.counts.get(RecordKind.BASE.value, 0),
            "fusion_records": self.counts.get(RecordKind.FUSION.value, 0),
            "triple_records": self.counts.get(RecordKind.TRIPLE.value, 0),
            "json_entries": self.json_entries,
            "db_rows": self.db_rows,
            "artists": self.artists,
            "duration_seconds": round(self.duration_seconds, 2),
            "rss_mb": round(self.rss_mb, 1),
            "outputs": ", ".join(self.outputs) or "none",
        }


def resolve_workers(requested: int) -> int:
    """``0`` means one worker per physical core."""
    if requested > 0:
        return requested
    return psutil.cpu_count(logical=False) or 1


def _with_dex_entries(creatures: Iterable[AnnotatedCreature],
                      dex_entries: Mapping[str, str]) -> Iterator[AnnotatedCreature]:
    for creature in creatures:
        record = apply_dex_entries(creature.record, dex_entries)
        if record is creature.record:
            yield creature
        else:
            yield AnnotatedCreature(record, creature.lineage)


def run(
    species_path: Path = SPECIES_JSON_PATH,
    split_names_path: Path = SPLIT_NAMES_PATH,
    json_path: Optional[Path] = JSON_EXPORT_PATH,
    db_path: Optional[Path] = DATABASE_PATH,
    dex_entries_path: Path = DEX_ENTRIES_PATH,
    credits_path: Path = SPRITE_CREDITS_PATH,
    sprites_root: Optional[Path] = GRAPHICS_DIR,
    include_self: bool = True,
    workers: int = DEFAULT_WORKERS,
    limit: Optional[int] = None,
) -> RunResult:
    """Run the whole pipeline and return its summary."""
    start = time.time()
    result = RunResult()

    names = load_name_table(split_names_path)
    base, triples = load_species(species_path)
    if limit is not None:
        base = base[:limit]
        logger.info("Limiting synthesis to the first %d base records", len(base))

    population = build_population(base, triples, names,
                                  include_self=include_self,
                                  workers=resolve_workers(workers))
    result.counts = population.counts()

    logger.info("Building evolution chains...")
    annotated = population.annotate()
    dex_entries = load_dex_entries(dex_entries_path)

    resolver = None
    if sprites_root is not None and Path(sprites_root).is_dir():
        resolver = SpriteResolver.from_root(sprites_root, read_sprite_credits(credits_path))
    else:
        logger.info("No sprite folder at %s, skipping sprite annotations", sprites_root)

    if json_path is not None:
        result.json_entries = write_population_json(
            _with_dex_entries(annotated.values(), dex_entries), json_path, resolver=resolver)
        result.outputs.append(str(json_path))

    if db_path is not None:
        base_names = {r.id: r.name for r in base}
        init_db(db_path)
        result.db_rows = insert_creatures(
            _with_dex_entries(annotated.values(), dex_entries),
            base_names, db_path=db_path, resolver=resolver,
        )
        if resolver is not None:
            artists = aggregate_artists(
                resolver,
                ((r.id, r.name, [r.primary_type, r.secondary_type]) for r in population),
            )
            insert_artists(artists, db_path)
            result.artists = len(artists)
        logger.info("Database summary: %s",
                    {k: v for k, v in population_summary(db_path).items() if k != "base_names"})
        result.outputs.append(str(db_path))

    result.duration_seconds = time.time() - start
    result.rss_mb = psutil.Process().memory_info().rss / (1024 ** 2)
    return result


# ── CLI entry point ──────────────────────────────────────────────────────────

def main() -> None:
    parser = argparse.ArgumentParser(
        description="Fusion dex – derive every fusion and its evolution lineage",
    )
    parser.add_argument(
        "--species",
        type=Path,
        default=SPECIES_JSON_PATH,
        help=f"Decoded species JSON (default: {SPECIES_JSON_PATH})",
    )
    parser.add_argument(
        "--split-names",
        type=Path,
        default=SPLIT_NAMES_PATH,
        help=f"SplitNames.rb name fragments (default: {SPLIT_NAMES_PATH})",
    )
    parser.add_argument(
        "--json",
        type=Path,
        default=JSON_EXPORT_PATH,
        help=f"JSON output path (default: {JSON_EXPORT_PATH})",
    )
    parser.add_argument(
        "--no-json",
        action="store_true",
        help="Skip the JSON export",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=DATABASE_PATH,
        help=f"SQLite output path (default: {DATABASE_PATH})",
    )
    parser.add_argument(
        "--no-db",
        action="store_true",
        help="Skip the SQLite export",
    )
    parser.add_argument(
        "--dex-entries",
        type=Path,
        default=DEX_ENTRIES_PATH,
        help="Custom pokedex entries JSON (optional)",
    )
    parser.add_argument(
        "--credits",
        type=Path,
        default=SPRITE_CREDITS_PATH,
        help="Sprite credits CSV (optional)",
    )
    parser.add_argument(
        "--sprites-root",
        type=Path,
        default=GRAPHICS_DIR,
        help=f"Graphics folder for sprite lookups (default: {GRAPHICS_DIR})",
    )
    parser.add_argument(
        "--no-self-fusions",
        action="store_true",
        help="Skip fusions of a species with itself",
    )
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=DEFAULT_WORKERS,
        help="Worker processes for fusion synthesis, 0 = one per core "
             f"(default: {DEFAULT_WORKERS})",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Only fuse the first N base records",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        result = run(
            species_path=args.species,
            split_names_path=args.split_names,
            json_path=None if args.no_json else args.json,
            db_path=None if args.no_db else args.db,
            dex_entries_path=args.dex_entries,
            credits_path=args.credits,
            sprites_root=args.sprites_root,
            include_self=not args.no_self_fusions,
            workers=args.workers,
            limit=args.limit,
        )
    except (OSError, ValueError, KeyError) as exc:
        logger.error("Derivation failed: %s", exc)
        sys.exit(1)

    # Print summary
    print("\n" + "=" * 60)
    print("  Fusion Dex — Derivation Summary")
    print("=" * 60)
    for key, val in result.summary().items():
        print(f"  {key:.<40} {val}")
    print("=" * 60)


if __name__ == "__main__":
    main()
