"""
loader – Base and triple records from the decoded species data.

``species.dat`` is a Ruby Marshal dump keyed twice per species (by numeric
id and by symbolic id).  It is decoded to JSON upstream; this module reads
that JSON list and turns it into ``CreatureRecord`` values:

  - boss variants are skipped
  - triple fusions are recognised by their symbolic id and given dotted ids
  - duplicate display names are disambiguated
  - prevolution rows are dropped from the evolution data and symbolic
    evolution targets are mapped to record ids
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from fusiondex.config import DEX_ENTRIES_PATH, SPECIES_JSON_PATH
from fusiondex.species import (
    CreatureRecord,
    Evolution,
    LearnedMove,
    MalformedRecordError,
)
from fusiondex.util import deep_equal, unique

logger = logging.getLogger(__name__)

UNKNOWN_TARGET = "ERROR"

# A lot of species share a display name upstream.
NAME_OVERRIDES: Dict[str, str] = {
    "29": "Nidoran F",
    "32": "Nidoran M",
    "430": "Oricorio Baile Style",
    "431": "Oricorio Pom-Pom Style",
    "432": "Oricorio Pa'u Style",
    "433": "Oricorio Sensu Style",
    "464": "Lycanroc Midday",
    "465": "Lycanroc Midnight",
    "466": "Meloetta Aria Forme",
    "467": "Meloetta Pirouette Forme",
    "470": "Ultra Necrozma",
}

TRIPLE_IDS: Dict[str, str] = {
    "ZAPMOLTICUNO": "144.145.146",
    "ENRAICUNE": "243.244.245",
    "KYODONQUAZA": "340.341.342",
    "PALDIATINA": "343.344.345",
    "ZEKYUSHIRAM": "349.350.351",
    "CELEMEWCHI": "151.251.381",
    "VENUSTOIZARD": "3.6.9",
    "MEGALIGASION": "154.157.160",
    "SWAMPTILIKEN": "278.281.284",
    "TORTERNEON": "318.321.324",
    "DEOSECTWO": "150.348.380",
    "TRIPLE_KANTO1": "1.4.7",
    "TRIPLE_KANTO2": "2.5.8",
    "TRIPLE_JOHTO1": "152.155.158",
    "TRIPLE_JOHTO2": "153.156.159",
    "TRIPLE_HOENN1": "276.279.282",
    "TRIPLE_HOENN2": "277.280.283",
    "TRIPLE_SINNOH1": "316.319.322",
    "TRIPLE_SINNOH2": "317.320.323",
    "REGITRIO": "447.448.449",
}

BOSSES = frozenset({
    "BIRDBOSS",
    "BIRDBOSS_1",
    "BIRDBOSS_2",
    "BIRDBOSS_3",
    "SILVERBOSS_1",
    "SILVERBOSS_2",
    "SILVERBOSS_3",
    "TYRANTRUM_CARDBOARD",
})

# Ultra Necrozma is not an evolution upstream.
EVOLUTION_OVERRIDES: Dict[str, Tuple[Evolution, ...]] = {
    "450": (Evolution("U_NECROZMA", "NECROZMA", ""),),
}

_STAT_KEYS = (
    ("hp", "HP"),
    ("atk", "ATTACK"),
    ("def", "DEFENSE"),
    ("sp_atk", "SPECIAL_ATTACK"),
    ("sp_def", "SPECIAL_DEFENSE"),
    ("spd", "SPEED"),
)

_COPIED_KEYS = (
    "base_exp", "growth_rate", "gender_ratio", "catch_rate", "happiness",
    "hatch_steps", "height", "weight", "color", "shape", "habitat",
    "back_sprite_x", "back_sprite_y", "front_sprite_x", "front_sprite_y",
    "shadow_x", "shadow_size",
)


def natural_id_key(record_id: str) -> Tuple[int, ...]:
    """Sort key ordering ``"3.6.9"`` before ``"144.145.146"``."""
    return tuple(int(part) if part.isdigit() else 0 for part in re.split(r"\D+", record_id))


def _transform_evolutions(raw: Iterable[Any]) -> List[Evolution]:
    """Forward edges only; the data also lists prevolutions."""
    edges = []
    for row in raw:
        target, method, param = row[0], row[1], row[2]
        is_prevolution = bool(row[3]) if len(row) > 3 else False
        if is_prevolution:
            continue
        edges.append(Evolution(str(target), str(method), "" if param is None else str(param)))
    return unique(edges)


def _record_from_entry(record_id: str, entry: Mapping[str, Any]) -> CreatureRecord:
    try:
        stats = entry["base_stats"]
        evs = entry["evs"]
        data: Dict[str, Any] = {
            "id": record_id,
            "name": NAME_OVERRIDES.get(record_id, entry["real_name"]),
            "category": entry["real_category"],
            "pokedex_entry": entry["real_pokedex_entry"],
            "primary_type": entry["type1"],
            "secondary_type": entry.get("type2"),
            "egg_groups": unique(entry.get("egg_groups") or ()),
            "front_sprite_a": entry["front_sprite_altitude"],
            "moves": unique(
                LearnedMove(move=str(move), level=level)
                for level, move in entry.get("moves") or ()
            ),
            "tutor_moves": unique(entry.get("tutor_moves") or ()),
            "egg_moves": unique(entry.get("egg_moves") or ()),
            "abilities": unique(entry.get("abilities") or ()),
            "hidden_abilities": unique(entry.get("hidden_abilities") or ()),
        }
        for short, upstream in _STAT_KEYS:
            data["base_" + short] = stats[upstream]
            data["ev_" + short] = evs[upstream]
        for key in _COPIED_KEYS:
            data[key] = entry[key]
    except KeyError as exc:
        raise MalformedRecordError(record_id, str(exc.args[0])) from None

    overrides = EVOLUTION_OVERRIDES.get(record_id)
    data["evolutions"] = overrides if overrides is not None else _transform_evolutions(
        entry.get("evolutions") or ()
    )
    return CreatureRecord.from_dict(data)


def parse_species(entries: Iterable[Mapping[str, Any]]) -> Tuple[List[CreatureRecord], List[CreatureRecord]]:
    """Split decoded species entries into (base records, triple records)."""
    base: List[CreatureRecord] = []
    triples: List[CreatureRecord] = []
    symbol_to_id: Dict[str, str] = {}
    first_entries: Dict[str, Mapping[str, Any]] = {}

    for entry in entries:
        symbol = entry.get("id")
        number = entry.get("id_number")
        if symbol is None or number is None:
            continue
        if symbol in BOSSES:
            logger.debug("Skipping boss entry %s", symbol)
            continue
        if symbol in symbol_to_id:
            # same species again under its symbolic key
            if not deep_equal(entry, first_entries[symbol]):
                logger.warning("Conflicting entries for %s, keeping the first", symbol)
            continue

        is_triple = symbol in TRIPLE_IDS
        record_id = TRIPLE_IDS[symbol] if is_triple else str(number)
        symbol_to_id[symbol] = record_id
        first_entries[symbol] = entry
        record = _record_from_entry(record_id, entry)
        (triples if is_triple else base).append(record)

    base = [_resolve_targets(r, symbol_to_id) for r in base]
    triples = [_resolve_targets(r, symbol_to_id) for r in triples]
    triples.sort(key=lambda r: natural_id_key(r.id))
    logger.info("Loaded %d base records and %d triples", len(base), len(triples))
    return base, triples


def _resolve_targets(record: CreatureRecord, symbol_to_id: Mapping[str, str]) -> CreatureRecord:
    if not record.evolutions:
        return record
    evolutions = []
    for evo in record.evolutions:
        target = symbol_to_id.get(evo.target)
        if target is None:
            logger.warning("Unknown evolution target %s on %s", evo.target, record.id)
            target = UNKNOWN_TARGET
        evolutions.append(replace(evo, target=target))
    return replace(record, evolutions=tuple(evolutions))


def load_species(path: Path = SPECIES_JSON_PATH) -> Tuple[List[CreatureRecord], List[CreatureRecord]]:
    """Read the decoded species JSON (a list, or a mapping of key → entry)."""
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    entries = raw.values() if isinstance(raw, dict) else raw
    return parse_species(entries)


def load_dex_entries(path: Path = DEX_ENTRIES_PATH) -> Dict[str, str]:
    """Custom pokedex entries keyed by record id (``{"sprite": "1.4.png", "entry": ...}``)."""
    path = Path(path)
    if not path.exists():
        logger.info("No dex entry overrides at %s", path)
        return {}
    with open(path, "r", encoding="utf-8") as f:
        rows = json.load(f)
    result: Dict[str, str] = {}
    for row in rows:
        sprite = row.get("sprite")
        entry = row.get("entry")
        if not sprite or entry is None:
            continue
        # first row for a sprite wins
        result.setdefault(Path(sprite).stem, entry)
    logger.info("Loaded %d dex entry overrides", len(result))
    return result


def apply_dex_entries(record: CreatureRecord, dex_entries: Mapping[str, str]) -> CreatureRecord:
    entry: Optional[str] = dex_entries.get(record.id)
    if entry is None:
        return record
    return replace(record, pokedex_entry=entry)
