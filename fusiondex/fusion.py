"""
fusion – Fusion synthesis: one head record + one body record → one fused record.

Combination rules follow the fan game's FusedSpecies:
  - id ``head.body``, name from the head's prefix and the body's suffix
  - hp / sp_atk / sp_def lean on the head, atk / def / spd on the body
  - effort values, experience, hatch steps, height and weight are averaged
  - sprite geometry and shape come from the body, colour and happiness from
    the head
  - moves, egg groups and evolutions are merged and de-duplicated

``synthesize`` is pure: it never touches its inputs and always returns the
same record for the same (head, body) pair.  Swapping the arguments gives a
different creature.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from fusiondex.config import ID_SEPARATOR
from fusiondex.species import (
    EV_FIELDS,
    NO_HABITAT,
    SPRITE_FIELDS,
    UNDISCOVERED_EGG_GROUP,
    CreatureRecord,
    ElementType,
    Evolution,
    GrowthRate,
)
from fusiondex.split_names import NameTable, fuse_names
from fusiondex.util import unique


# ── Tables ──────────────────────────────────────────────────────────────────

# The first rate either parent has wins.
GROWTH_RATE_PRIORITY: Tuple[GrowthRate, ...] = (
    GrowthRate.SLOW,
    GrowthRate.ERRATIC,
    GrowthRate.FLUCTUATING,
    GrowthRate.PARABOLIC,
    GrowthRate.MEDIUM,
    GrowthRate.FAST,
)

GENDERLESS = "Genderless"
ALWAYS_MALE = "AlwaysMale"
ALWAYS_FEMALE = "AlwaysFemale"

# Female chance out of 255, in declared order; ties resolve to the earlier entry.
GENDER_RATIOS: Dict[str, Optional[int]] = {
    ALWAYS_MALE: 0,
    "FemaleOneEighth": 31,
    "Female25Percent": 63,
    "Female50Percent": 127,
    "Female75Percent": 191,
    "FemaleSevenEighths": 223,
    ALWAYS_FEMALE: 255,
    GENDERLESS: None,
}

RARE_HABITATS: Tuple[str, ...] = ("Rare", "Sea", "Cave")

# (stat field, head is dominant)
_STAT_DOMINANCE: Tuple[Tuple[str, bool], ...] = (
    ("base_hp", True),
    ("base_atk", False),
    ("base_def", False),
    ("base_sp_atk", True),
    ("base_sp_def", True),
    ("base_spd", False),
)


# ── Formulas ────────────────────────────────────────────────────────────────

def calc_stat(dominant: int, recessive: int) -> int:
    """Weighted 2:1 toward the dominant parent, never below 1."""
    return max(1, (dominant + dominant + recessive) // 3)


def calc_ev(a: int, b: int) -> int:
    return max(0, (a + b) // 2)


def average(a: int, b: int) -> int:
    return (a + b) // 2


def split_and_combine(start: str, end: str, separator: str) -> str:
    """First piece of *start* + separator + second piece of *end*.

    Only the first two pieces of *end* are considered, so a body text with a
    single piece contributes that piece.  With three or more pieces this is
    not the last one: body category ``"Big Flame Lizard"`` contributes
    ``"Flame"``.
    """
    head_piece = start.split(separator, 1)[0]
    body_piece = end.split(separator)[:2][-1]
    return head_piece + separator + body_piece


# ── Attribute rules ─────────────────────────────────────────────────────────

def resolve_types(head: CreatureRecord, body: CreatureRecord) -> Tuple[str, Optional[str]]:
    """Primary type from the head, secondary from the body, never the same twice."""
    primary = head.primary_type
    if primary == ElementType.NORMAL and head.secondary_type == ElementType.FLYING:
        primary = ElementType.FLYING.value
    secondary = body.secondary_type
    if primary == secondary:
        secondary = body.primary_type
    return primary, secondary


def resolve_growth_rate(head_rate: str, body_rate: str) -> str:
    for rate in GROWTH_RATE_PRIORITY:
        if rate == head_rate or rate == body_rate:
            return rate.value
    return GrowthRate.MEDIUM.value


def resolve_gender_ratio(head_ratio: str, body_ratio: str) -> str:
    """Combine two gender ratio tokens.

    Genderless beats single-gender, single-gender beats mixed.  Mixed
    parents average their female chance and take the closest table entry.
    """
    for token in (head_ratio, body_ratio):
        if token not in GENDER_RATIOS:
            raise ValueError(f"Unknown gender ratio: {token}")
    parents = (head_ratio, body_ratio)
    if GENDERLESS in parents:
        return GENDERLESS
    if ALWAYS_MALE in parents:
        return ALWAYS_MALE
    if ALWAYS_FEMALE in parents:
        return ALWAYS_FEMALE

    target = average(GENDER_RATIOS[head_ratio], GENDER_RATIOS[body_ratio])
    best_token = head_ratio
    best_distance: Optional[int] = None
    for token, chance in GENDER_RATIOS.items():
        if chance is None:
            continue
        distance = abs(chance - target)
        if best_distance is None or distance < best_distance:
            best_token, best_distance = token, distance
    return best_token


def resolve_habitat(head_habitat: str, body_habitat: str) -> str:
    if head_habitat == body_habitat:
        return head_habitat
    if head_habitat.lower() == NO_HABITAT.lower():
        return body_habitat
    if body_habitat.lower() == NO_HABITAT.lower():
        return head_habitat
    for habitat in (head_habitat, body_habitat):
        if habitat in RARE_HABITATS:
            return habitat
    return head_habitat


def _first_or_only(values: Sequence[str], index: int) -> Optional[str]:
    """``values[index]`` falling back to ``values[0]``; None when empty."""
    if len(values) > index:
        return values[index]
    return values[0] if values else None


def _rename(text: str, old: str, new: str) -> str:
    return text.replace(old, new) if old else text


def merge_abilities(head: CreatureRecord, body: CreatureRecord) -> List[str]:
    picks = [
        body.abilities[0] if body.abilities else None,
        _first_or_only(head.abilities, 1),
    ]
    return unique([a for a in picks if a is not None])


def merge_hidden_abilities(head: CreatureRecord, body: CreatureRecord) -> List[str]:
    picks = [
        head.abilities[0] if head.abilities else None,
        _first_or_only(body.abilities, 1),
        body.hidden_abilities[0] if body.hidden_abilities else None,
        head.hidden_abilities[0] if head.hidden_abilities else None,
    ]
    return unique([a for a in picks if a is not None])


def merge_evolutions(head: CreatureRecord, body: CreatureRecord) -> List[Evolution]:
    """Retarget both parents' edges onto the matching fusion ids."""
    edges = [
        Evolution(evo.target + ID_SEPARATOR + body.id, evo.method, evo.param)
        for evo in head.evolutions
    ]
    edges.extend(
        Evolution(head.id + ID_SEPARATOR + evo.target, evo.method, evo.param)
        for evo in body.evolutions
    )
    return unique(edges)


# ── Synthesis ───────────────────────────────────────────────────────────────

def synthesize(head: CreatureRecord, body: CreatureRecord,
               names: NameTable) -> CreatureRecord:
    """Fuse *head* and *body* into a new record."""
    fused_id = head.id + ID_SEPARATOR + body.id
    name = fuse_names(names, head.id, body.id)

    category = split_and_combine(head.category, body.category, " ")
    pokedex_entry = split_and_combine(
        _rename(head.pokedex_entry, head.name, name),
        _rename(body.pokedex_entry, body.name, name),
        ".",
    ) + "."

    primary_type, secondary_type = resolve_types(head, body)

    stats = {}
    for stat, head_dominant in _STAT_DOMINANCE:
        h, b = getattr(head, stat), getattr(body, stat)
        stats[stat] = calc_stat(h, b) if head_dominant else calc_stat(b, h)

    evs = {
        ev: calc_ev(getattr(head, ev), getattr(body, ev))
        for ev in EV_FIELDS
    }
    sprite_geometry = {field_name: getattr(body, field_name) for field_name in SPRITE_FIELDS}

    egg_groups = unique(head.egg_groups, body.egg_groups) or [UNDISCOVERED_EGG_GROUP]

    return CreatureRecord(
        id=fused_id,
        name=name,
        category=category,
        pokedex_entry=pokedex_entry,
        primary_type=primary_type,
        secondary_type=secondary_type,
        **stats,
        **evs,
        base_exp=average(head.base_exp, body.base_exp),
        growth_rate=resolve_growth_rate(head.growth_rate, body.growth_rate),
        gender_ratio=resolve_gender_ratio(head.gender_ratio, body.gender_ratio),
        catch_rate=min(head.catch_rate, body.catch_rate),
        happiness=head.happiness,
        egg_groups=tuple(egg_groups),
        hatch_steps=average(head.hatch_steps, body.hatch_steps),
        height=average(head.height, body.height),
        weight=average(head.weight, body.weight),
        color=head.color,
        shape=body.shape,
        habitat=resolve_habitat(head.habitat, body.habitat),
        **sprite_geometry,
        moves=tuple(unique(head.moves, body.moves)),
        tutor_moves=tuple(unique(head.tutor_moves, body.tutor_moves)),
        egg_moves=tuple(unique(head.egg_moves, body.egg_moves)),
        abilities=tuple(merge_abilities(head, body)),
        hidden_abilities=tuple(merge_hidden_abilities(head, body)),
        evolutions=tuple(merge_evolutions(head, body)),
    )
