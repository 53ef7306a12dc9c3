"""
Shared fixtures for the test suite.
"""
import json
import sys
from pathlib import Path

import pytest

# Ensure project root is importable
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from fusiondex.species import CreatureRecord, Evolution, LearnedMove  # noqa: E402
from fusiondex.split_names import parse_split_names  # noqa: E402


SPLIT_NAMES_SOURCE = """\
# Generated from the game's name list
module GameData
  SPLIT_NAMES = [
    ["", ""],
    ["Bulb", "basaur"],
    ["Ivy", "vysaur"],
    ["Venu", "nusaur"],
    ["Char", "mander"],
    ["Char", "meleon"],
    ["Char", "izard"],
    ["Pika", "achu"],
    ["nido", "king"],
  ]
  NAT_DEX_MAPPING = {
    # forms sharing a row
    9 => 8,
  }
end
"""

BULBASAUR_ENTRY = (
    "A strange seed was planted on its back at birth. "
    "The plant sprouts and grows with this Pokémon."
)
CHARMANDER_ENTRY = (
    "Obviously prefers hot places. "
    "When it rains, steam is said to spout from the tip of its tail."
)


def _make_record(record_id="1", **overrides):
    data = dict(
        id=record_id,
        name="Bulbasaur",
        category="Seed",
        pokedex_entry=BULBASAUR_ENTRY,
        primary_type="GRASS",
        secondary_type="POISON",
        base_hp=45, base_atk=49, base_def=49,
        base_sp_atk=65, base_sp_def=65, base_spd=45,
        ev_hp=0, ev_atk=0, ev_def=0, ev_sp_atk=1, ev_sp_def=0, ev_spd=0,
        base_exp=64,
        growth_rate="Parabolic",
        gender_ratio="FemaleOneEighth",
        catch_rate=45,
        happiness=70,
        egg_groups=("Monster", "Grass"),
        hatch_steps=5355,
        height=7,
        weight=69,
        color="Green",
        shape="Quadruped",
        habitat="Grassland",
        back_sprite_x=0, back_sprite_y=20,
        front_sprite_x=0, front_sprite_y=19, front_sprite_a=0,
        shadow_x=0, shadow_size=2,
        moves=(LearnedMove("TACKLE", 1), LearnedMove("GROWL", 3)),
        tutor_moves=("CUT",),
        egg_moves=("SKULLBASH",),
        abilities=("OVERGROW",),
        hidden_abilities=("CHLOROPHYLL",),
        evolutions=(),
    )
    data.update(overrides)
    return CreatureRecord(**data)


@pytest.fixture
def make_record():
    """Factory for records; keyword arguments override the Bulbasaur defaults."""
    return _make_record


@pytest.fixture
def names():
    return parse_split_names(SPLIT_NAMES_SOURCE, max_id=9)


@pytest.fixture
def split_names_file(tmp_path):
    path = tmp_path / "SplitNames.rb"
    path.write_text(SPLIT_NAMES_SOURCE, encoding="utf-8")
    return path


@pytest.fixture
def bulbasaur():
    return _make_record("1", evolutions=(Evolution("2", "Level", "16"),))


@pytest.fixture
def ivysaur():
    return _make_record("2", name="Ivysaur", base_hp=60, base_atk=62, base_def=63,
                        base_sp_atk=80, base_sp_def=80, base_spd=60)


@pytest.fixture
def charmander():
    return _make_record(
        "4",
        name="Charmander",
        category="Lizard",
        pokedex_entry=CHARMANDER_ENTRY,
        primary_type="FIRE",
        secondary_type=None,
        base_hp=39, base_atk=52, base_def=43,
        base_sp_atk=60, base_sp_def=50, base_spd=65,
        ev_sp_atk=0, ev_spd=1,
        base_exp=62,
        egg_groups=("Monster", "Dragon"),
        height=6,
        weight=85,
        color="Red",
        shape="BipedalTail",
        habitat="Mountain",
        back_sprite_y=21, front_sprite_y=20, shadow_size=1,
        moves=(LearnedMove("SCRATCH", 1), LearnedMove("GROWL", 3)),
        tutor_moves=("CUT", "FIREPUNCH"),
        egg_moves=("BELLYDRUM",),
        abilities=("BLAZE",),
        hidden_abilities=("SOLARPOWER",),
        evolutions=(Evolution("5", "Level", "16"),),
    )


@pytest.fixture
def charmeleon():
    return _make_record("5", name="Charmeleon", category="Flame", primary_type="FIRE",
                        secondary_type=None, abilities=("BLAZE",),
                        hidden_abilities=("SOLARPOWER",))


@pytest.fixture
def base_records(bulbasaur, ivysaur, charmander, charmeleon):
    return [bulbasaur, ivysaur, charmander, charmeleon]


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary database path for isolated DB tests."""
    return tmp_path / "test_fusiondex.db"


@pytest.fixture
def init_tmp_db(tmp_db):
    """Initialize a fresh database at a temp path and return the path."""
    from fusiondex.database import init_db
    init_db(tmp_db)
    return tmp_db


def _species_entry(symbol="BULBASAUR", number=1, **overrides):
    """One decoded ``species.dat`` entry, shaped like the upstream JSON."""
    entry = {
        "id": symbol,
        "id_number": number,
        "real_name": symbol.capitalize(),
        "real_category": "Seed",
        "real_pokedex_entry": BULBASAUR_ENTRY,
        "type1": "GRASS",
        "type2": "POISON",
        "base_stats": {"HP": 45, "ATTACK": 49, "DEFENSE": 49,
                       "SPECIAL_ATTACK": 65, "SPECIAL_DEFENSE": 65, "SPEED": 45},
        "evs": {"HP": 0, "ATTACK": 0, "DEFENSE": 0,
                "SPECIAL_ATTACK": 1, "SPECIAL_DEFENSE": 0, "SPEED": 0},
        "base_exp": 64,
        "growth_rate": "Parabolic",
        "gender_ratio": "FemaleOneEighth",
        "catch_rate": 45,
        "happiness": 70,
        "egg_groups": ["Monster", "Grass"],
        "hatch_steps": 5355,
        "height": 7,
        "weight": 69,
        "color": "Green",
        "shape": "Quadruped",
        "habitat": "Grassland",
        "back_sprite_x": 0,
        "back_sprite_y": 20,
        "front_sprite_x": 0,
        "front_sprite_y": 19,
        "front_sprite_altitude": 0,
        "shadow_x": 0,
        "shadow_size": 2,
        "moves": [[1, "TACKLE"], [3, "GROWL"], [1, "TACKLE"]],
        "tutor_moves": ["CUT"],
        "egg_moves": ["SKULLBASH"],
        "abilities": ["OVERGROW"],
        "hidden_abilities": ["CHLOROPHYLL"],
        "evolutions": [],
    }
    entry.update(overrides)
    return entry


@pytest.fixture
def species_entry():
    """Factory for decoded species entries."""
    return _species_entry


@pytest.fixture
def species_file(tmp_path):
    """Bulbasaur → Ivysaur and a lone Charmander, as a decoded species JSON file."""
    entries = [
        _species_entry("BULBASAUR", 1, real_name="Bulbasaur",
                       evolutions=[["IVYSAUR", "Level", 16, False]]),
        _species_entry("IVYSAUR", 2, real_name="Ivysaur",
                       evolutions=[["BULBASAUR", "Level", 16, True]]),
        _species_entry("CHARMANDER", 4, real_name="Charmander", real_category="Lizard",
                       real_pokedex_entry=CHARMANDER_ENTRY, type1="FIRE", type2=None),
    ]
    path = tmp_path / "species.json"
    path.write_text(json.dumps(entries), encoding="utf-8")
    return path
