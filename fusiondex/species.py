"""
species – Creature record data model shared by every derivation step.

A record is one member of the population: a base species (``"25"``),
a fusion (``"25.6"``, head then body) or a pre-declared triple
(``"144.145.146"``).  Records are immutable; lineage data computed by
``evolution_graph`` lives next to them, never on them.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from fusiondex.config import ID_SEPARATOR


# ── Enumerated tokens ───────────────────────────────────────────────────────

class ElementType(str, Enum):
    NORMAL = "NORMAL"
    FIGHTING = "FIGHTING"
    FLYING = "FLYING"
    POISON = "POISON"
    GROUND = "GROUND"
    ROCK = "ROCK"
    BUG = "BUG"
    GHOST = "GHOST"
    STEEL = "STEEL"
    QMARKS = "QMARKS"
    FIRE = "FIRE"
    WATER = "WATER"
    GRASS = "GRASS"
    ELECTRIC = "ELECTRIC"
    PSYCHIC = "PSYCHIC"
    ICE = "ICE"
    DRAGON = "DRAGON"
    DARK = "DARK"
    FAIRY = "FAIRY"


class GrowthRate(str, Enum):
    FAST = "Fast"
    MEDIUM = "Medium"
    SLOW = "Slow"
    PARABOLIC = "Parabolic"
    ERRATIC = "Erratic"
    FLUCTUATING = "Fluctuating"


class RecordKind(str, Enum):
    BASE = "base"
    FUSION = "fusion"
    TRIPLE = "triple"


NO_HABITAT = "None"
UNDISCOVERED_EGG_GROUP = "Undiscovered"

STAT_FIELDS = (
    "base_hp", "base_atk", "base_def", "base_sp_atk", "base_sp_def", "base_spd",
)
EV_FIELDS = ("ev_hp", "ev_atk", "ev_def", "ev_sp_atk", "ev_sp_def", "ev_spd")
SPRITE_FIELDS = (
    "back_sprite_x", "back_sprite_y",
    "front_sprite_x", "front_sprite_y", "front_sprite_a",
    "shadow_x", "shadow_size",
)
_INT_FIELDS = STAT_FIELDS + EV_FIELDS + SPRITE_FIELDS + (
    "base_exp", "catch_rate", "happiness", "hatch_steps", "height", "weight",
)
_STR_FIELDS = (
    "name", "category", "pokedex_entry", "primary_type",
    "growth_rate", "gender_ratio", "color", "shape", "habitat",
)


# ── Errors ──────────────────────────────────────────────────────────────────

class MalformedRecordError(ValueError):
    """A record is missing a required field or carries the wrong type."""

    def __init__(self, record_id: Any, field_name: str, reason: str = "missing"):
        super().__init__(f"Record {record_id!r}: field {field_name!r} is {reason}")
        self.record_id = record_id
        self.field_name = field_name


class DuplicateCreatureError(ValueError):
    """Two records in one population share an id."""

    def __init__(self, record_id: str):
        super().__init__(f"Duplicate creature id: {record_id}")
        self.record_id = record_id


# ── Records ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Evolution:
    """A forward evolution edge authored on a record."""
    target: str
    method: str
    param: str = ""


@dataclass(frozen=True)
class LearnedMove:
    move: str
    level: int


@dataclass(frozen=True)
class CreatureRecord:
    """Core data for one creature of the population."""
    id: str
    name: str
    category: str
    pokedex_entry: str
    primary_type: str
    secondary_type: Optional[str]
    base_hp: int
    base_atk: int
    base_def: int
    base_sp_atk: int
    base_sp_def: int
    base_spd: int
    ev_hp: int
    ev_atk: int
    ev_def: int
    ev_sp_atk: int
    ev_sp_def: int
    ev_spd: int
    base_exp: int
    growth_rate: str
    gender_ratio: str
    catch_rate: int
    happiness: int
    egg_groups: Tuple[str, ...]
    hatch_steps: int
    height: int
    weight: int
    color: str
    shape: str
    habitat: str
    back_sprite_x: int = 0
    back_sprite_y: int = 0
    front_sprite_x: int = 0
    front_sprite_y: int = 0
    front_sprite_a: int = 0
    shadow_x: int = 0
    shadow_size: int = 0
    moves: Tuple[LearnedMove, ...] = ()
    tutor_moves: Tuple[str, ...] = ()
    egg_moves: Tuple[str, ...] = ()
    abilities: Tuple[str, ...] = ()
    hidden_abilities: Tuple[str, ...] = ()
    evolutions: Tuple[Evolution, ...] = field(default=())

    @property
    def component_ids(self) -> Tuple[str, ...]:
        """Base ids this record is made of (one for a base record)."""
        return tuple(self.id.split(ID_SEPARATOR))

    @property
    def kind(self) -> RecordKind:
        return kind_of(self.id)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CreatureRecord":
        """Build a record from its snake_case mapping (as written by ``to_dict``)."""
        record_id = data.get("id")
        if record_id is None or record_id == "":
            raise MalformedRecordError(None, "id")
        record_id = str(record_id)

        values: Dict[str, Any] = {"id": record_id}
        for name in _STR_FIELDS:
            value = data.get(name)
            if value is None:
                raise MalformedRecordError(record_id, name)
            values[name] = str(value)
        for name in _INT_FIELDS:
            if name in SPRITE_FIELDS and name not in data:
                continue
            values[name] = _require_int(record_id, name, data.get(name))
        values["secondary_type"] = data.get("secondary_type")

        values["egg_groups"] = tuple(data.get("egg_groups") or ())
        values["moves"] = tuple(_parse_move(record_id, m) for m in data.get("moves") or ())
        values["tutor_moves"] = tuple(data.get("tutor_moves") or ())
        values["egg_moves"] = tuple(data.get("egg_moves") or ())
        values["abilities"] = tuple(data.get("abilities") or ())
        values["hidden_abilities"] = tuple(data.get("hidden_abilities") or ())
        values["evolutions"] = tuple(
            _parse_evolution(record_id, e) for e in data.get("evolutions") or ()
        )
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Plain JSON-ready mapping with lists in place of tuples."""
        data = asdict(self)
        for name, value in data.items():
            if isinstance(value, tuple):
                data[name] = list(value)
        return data


def kind_of(record_id: str) -> RecordKind:
    """Classify an id by how many base ids it is made of."""
    parts = record_id.count(ID_SEPARATOR) + 1
    if parts == 1:
        return RecordKind.BASE
    if parts == 2:
        return RecordKind.FUSION
    return RecordKind.TRIPLE


def _require_int(record_id: str, name: str, value: Any) -> int:
    if value is None:
        raise MalformedRecordError(record_id, name)
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedRecordError(record_id, name, f"not an integer ({value!r})")
    return value


def _parse_move(record_id: str, raw: Any) -> LearnedMove:
    if isinstance(raw, LearnedMove):
        return raw
    if isinstance(raw, Mapping) and raw.get("move") is not None:
        return LearnedMove(move=str(raw["move"]),
                           level=_require_int(record_id, "moves", raw.get("level")))
    raise MalformedRecordError(record_id, "moves", f"not a move entry ({raw!r})")


def _parse_evolution(record_id: str, raw: Any) -> Evolution:
    if isinstance(raw, Evolution):
        return raw
    if isinstance(raw, Mapping) and raw.get("target") is not None:
        param = raw.get("param")
        return Evolution(
            target=str(raw["target"]),
            method=str(raw.get("method", "")),
            param="" if param is None else str(param),
        )
    raise MalformedRecordError(record_id, "evolutions", f"not an evolution entry ({raw!r})")
