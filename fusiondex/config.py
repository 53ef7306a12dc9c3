"""
Global configuration for fusiondex.
All paths, constants, and tunable parameters live here.
"""

from pathlib import Path

# ── Paths ────────────────────────────────────────────────────────────────────
ROOT_DIR = Path(__file__).resolve().parent.parent
PACKAGE_DIR = ROOT_DIR / "fusiondex"
DATA_DIR = ROOT_DIR / "data"
GRAPHICS_DIR = ROOT_DIR / "graphics"
DATABASE_PATH = ROOT_DIR / "data.sqlite"
JSON_EXPORT_PATH = ROOT_DIR / "pokemons_data.json"

# Upstream data (decoded species.dat, Ruby name-fragment source, CSV credits)
SPECIES_JSON_PATH = DATA_DIR / "json" / "species.json"
SPLIT_NAMES_PATH = DATA_DIR / "SplitNames.rb"
DEX_ENTRIES_PATH = DATA_DIR / "dex.json"
SPRITE_CREDITS_PATH = GRAPHICS_DIR / "Sprite Credits.csv"

# ── Sprites ──────────────────────────────────────────────────────────────────
BASE_SPRITES_DIR = GRAPHICS_DIR / "custom-sprites" / "Other" / "BaseSprites"
CUSTOM_BATTLERS_DIR = GRAPHICS_DIR / "custom-sprites" / "CustomBattlers"
TRIPLE_SPRITES_DIR = GRAPHICS_DIR / "custom-sprites" / "Other" / "Triples"
AUTOGEN_SPRITES_DIR = GRAPHICS_DIR / "autogen-sprites"
SPRITE_EXTENSION = ".png"

# ── Dataset ──────────────────────────────────────────────────────────────────
MAX_SPECIES_ID = 470  # highest base id covered by the name-fragment table
ID_SEPARATOR = "."

# ── Derivation ───────────────────────────────────────────────────────────────
DEFAULT_WORKERS = 1  # 0 on the command line means one per physical core
INCLUDE_SELF_FUSIONS = True

# ── Export ───────────────────────────────────────────────────────────────────
INSERT_CHUNK_SIZE = 10000
PROGRESS_EVERY = 1000
