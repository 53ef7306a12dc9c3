"""
export – JSON dump of the annotated population.

The output is one object keyed by creature id.  With a few hundred base
species the population runs to hundreds of thousands of records, so entries
are written one at a time instead of building the whole document in memory.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Optional

from fusiondex.config import JSON_EXPORT_PATH, PROGRESS_EVERY
from fusiondex.population import AnnotatedCreature
from fusiondex.sprites import SpriteResolver

logger = logging.getLogger(__name__)


def write_population_json(creatures: Iterable[AnnotatedCreature],
                          path: Path = JSON_EXPORT_PATH,
                          resolver: Optional[SpriteResolver] = None) -> int:
    """Write ``{id: record, ...}`` to *path* and return the number of entries.

    With a *resolver*, every lineage link also carries its sprite path.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with open(path, "w", encoding="utf-8") as f:
        f.write("{\n")
        for creature in creatures:
            if count:
                f.write(",\n")
            f.write(json.dumps(creature.id))
            f.write(": ")
            data = creature.to_dict()
            if resolver is not None:
                resolver.add_link_images(data)
            f.write(json.dumps(data, ensure_ascii=False, indent=2))
            count += 1
            if count % PROGRESS_EVERY == 0:
                logger.info("Processed %d entries...", count)
        f.write("\n}\n")
    logger.info("Evolution data saved to %s (%d entries)", path, count)
    return count
