"""
database – SQLite persistence for the derived population.

Creates and manages ``data.sqlite`` with one row per creature (base,
fusion and triple) and one row per sprite artist, plus read / query
helpers used by the CLI summary and the tests.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, Iterable, List, Mapping, Optional

from fusiondex.config import DATABASE_PATH, INSERT_CHUNK_SIZE
from fusiondex.population import AnnotatedCreature
from fusiondex.sprites import ArtistSummary, SpriteResolver

logger = logging.getLogger(__name__)


# ── Schema ───────────────────────────────────────────────────────────────────

_SCHEMA = """
CREATE TABLE IF NOT EXISTS sprites (
    id               TEXT PRIMARY KEY,
    kind             TEXT    NOT NULL,
    name             TEXT    NOT NULL,
    category         TEXT,
    pokedex_entry    TEXT,
    base_pokemons    JSON,
    primary_type     TEXT,
    secondary_type   TEXT,
    base_hp          INTEGER,
    base_atk         INTEGER,
    base_def         INTEGER,
    base_sp_atk      INTEGER,
    base_sp_def      INTEGER,
    base_spd         INTEGER,
    ev_hp            INTEGER,
    ev_atk           INTEGER,
    ev_def           INTEGER,
    ev_sp_atk        INTEGER,
    ev_sp_def        INTEGER,
    ev_spd           INTEGER,
    base_exp         INTEGER,
    growth_rate      TEXT,
    gender_ratio     TEXT,
    catch_rate       INTEGER,
    happiness        INTEGER,
    egg_groups       JSON,
    hatch_steps      INTEGER,
    height           INTEGER,
    weight           INTEGER,
    color            TEXT,
    shape            TEXT,
    habitat          TEXT,
    back_sprite_x    INTEGER,
    back_sprite_y    INTEGER,
    front_sprite_x   INTEGER,
    front_sprite_y   INTEGER,
    front_sprite_a   INTEGER,
    shadow_x         INTEGER,
    shadow_size      INTEGER,
    moves            JSON,
    tutor_moves      JSON,
    egg_moves        JSON,
    abilities        JSON,
    hidden_abilities JSON,
    evolves_from     JSON,
    evolves_to       JSON,
    evolution_chain  JSON,
    primary_image    JSON,
    alternative_sprites JSON
);

CREATE INDEX IF NOT EXISTS idx_sprites_kind ON sprites(kind);

CREATE TABLE IF NOT EXISTS artists (
    artist_name   TEXT PRIMARY KEY,
    total_sprites INTEGER NOT NULL DEFAULT 0,
    sprites_data  JSON
);
"""

_JSON_COLUMNS = (
    "base_pokemons", "egg_groups", "moves", "tutor_moves", "egg_moves",
    "abilities", "hidden_abilities", "evolves_from", "evolves_to",
    "evolution_chain", "primary_image", "alternative_sprites",
)

_COLUMNS = (
    "id", "kind", "name", "category", "pokedex_entry", "base_pokemons",
    "primary_type", "secondary_type",
    "base_hp", "base_atk", "base_def", "base_sp_atk", "base_sp_def", "base_spd",
    "ev_hp", "ev_atk", "ev_def", "ev_sp_atk", "ev_sp_def", "ev_spd",
    "base_exp", "growth_rate", "gender_ratio", "catch_rate", "happiness",
    "egg_groups", "hatch_steps", "height", "weight", "color", "shape", "habitat",
    "back_sprite_x", "back_sprite_y", "front_sprite_x", "front_sprite_y",
    "front_sprite_a", "shadow_x", "shadow_size",
    "moves", "tutor_moves", "egg_moves", "abilities", "hidden_abilities",
    "evolves_from", "evolves_to", "evolution_chain",
    "primary_image", "alternative_sprites",
)

_INSERT_SQL = (
    f"INSERT OR REPLACE INTO sprites ({', '.join(_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in _COLUMNS)})"
)


# ── Connection helper ────────────────────────────────────────────────────────

@contextmanager
def _connect(db_path: Path = DATABASE_PATH) -> Generator[sqlite3.Connection, None, None]:
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL;")
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(db_path: Path = DATABASE_PATH) -> None:
    """Create the database and tables if they don't exist."""
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with _connect(db_path) as conn:
        conn.executescript(_SCHEMA)


# ── Write ────────────────────────────────────────────────────────────────────

def creature_row(
    creature: AnnotatedCreature,
    base_names: Mapping[str, str],
    resolver: Optional[SpriteResolver] = None,
) -> Dict[str, Any]:
    """Flatten an annotated creature into the ``sprites`` column layout."""
    data = creature.to_dict()
    data["kind"] = creature.record.kind.value
    data["base_pokemons"] = {
        part: base_names.get(part) for part in creature.record.component_ids
    }
    if resolver is not None:
        data["primary_image"] = resolver.primary_image(creature.id).to_dict()
        data["alternative_sprites"] = [
            image.to_dict() for image in resolver.alternative_images(creature.id)
        ]
        resolver.add_link_images(data)
    else:
        data["primary_image"] = None
        data["alternative_sprites"] = []
    return data


def _row_values(row: Mapping[str, Any]) -> tuple:
    return tuple(
        json.dumps(row.get(col), ensure_ascii=False) if col in _JSON_COLUMNS else row.get(col)
        for col in _COLUMNS
    )


def insert_creatures(
    creatures: Iterable[AnnotatedCreature],
    base_names: Mapping[str, str],
    db_path: Path = DATABASE_PATH,
    resolver: Optional[SpriteResolver] = None,
    chunk_size: int = INSERT_CHUNK_SIZE,
) -> int:
    """Insert creatures in chunked transactions and return how many were written.

    A failing chunk is rolled back and the error re-raised.
    """
    total = 0
    chunk: List[tuple] = []

    def flush() -> None:
        nonlocal total
        with _connect(db_path) as conn:
            conn.executemany(_INSERT_SQL, chunk)
        total += len(chunk)
        chunk.clear()
        logger.info("Inserted %d creatures", total)

    for creature in creatures:
        chunk.append(_row_values(creature_row(creature, base_names, resolver)))
        if len(chunk) >= chunk_size:
            flush()
    if chunk:
        flush()
    return total


def insert_artists(artists: Mapping[str, ArtistSummary], db_path: Path = DATABASE_PATH) -> None:
    with _connect(db_path) as conn:
        conn.executemany(
            """
            INSERT OR REPLACE INTO artists (artist_name, total_sprites, sprites_data)
            VALUES (?, ?, ?)
            """,
            [
                (a.artist_name, a.total_sprites, json.dumps(a.sprites, ensure_ascii=False))
                for a in artists.values()
            ],
        )


# ── Read / Query ─────────────────────────────────────────────────────────────

def _row_to_dict(row: sqlite3.Row) -> Dict[str, Any]:
    data = dict(row)
    for col in _JSON_COLUMNS:
        if data.get(col) is not None:
            data[col] = json.loads(data[col])
    return data


def get_creature(record_id: str, db_path: Path = DATABASE_PATH) -> Optional[Dict[str, Any]]:
    with _connect(db_path) as conn:
        row = conn.execute("SELECT * FROM sprites WHERE id = ?", (record_id,)).fetchone()
    return _row_to_dict(row) if row else None


def fusions_as_head(base_id: str, db_path: Path = DATABASE_PATH) -> List[Dict[str, str]]:
    """Fusions using *base_id* as the head."""
    with _connect(db_path) as conn:
        rows = conn.execute(
            "SELECT id, name FROM sprites WHERE kind = 'fusion' AND id LIKE ? ORDER BY rowid",
            (f"{base_id}.%",),
        ).fetchall()
    return [{"id": r["id"], "name": r["name"]} for r in rows]


def fusions_as_body(base_id: str, db_path: Path = DATABASE_PATH) -> List[Dict[str, str]]:
    """Fusions using *base_id* as the body."""
    with _connect(db_path) as conn:
        rows = conn.execute(
            "SELECT id, name FROM sprites WHERE kind = 'fusion' AND id LIKE ? ORDER BY rowid",
            (f"%.{base_id}",),
        ).fetchall()
    return [{"id": r["id"], "name": r["name"]} for r in rows]


def get_artist(artist_name: str, db_path: Path = DATABASE_PATH) -> Optional[Dict[str, Any]]:
    with _connect(db_path) as conn:
        row = conn.execute(
            "SELECT * FROM artists WHERE artist_name = ?", (artist_name,)
        ).fetchone()
    if row is None:
        return None
    data = dict(row)
    data["sprites_data"] = json.loads(data["sprites_data"] or "[]")
    return data


def population_summary(db_path: Path = DATABASE_PATH) -> Dict[str, Any]:
    """Counts per record kind plus the base id → name index."""
    with _connect(db_path) as conn:
        counts = {
            r["kind"]: r["n"]
            for r in conn.execute("SELECT kind, COUNT(*) AS n FROM sprites GROUP BY kind")
        }
        base_rows = conn.execute(
            "SELECT id, name FROM sprites WHERE kind = 'base' ORDER BY CAST(id AS INTEGER)"
        ).fetchall()
        artist_count = conn.execute("SELECT COUNT(*) FROM artists").fetchone()[0]
    return {
        "total": sum(counts.values()),
        "base": counts.get("base", 0),
        "fusion": counts.get("fusion", 0),
        "triple": counts.get("triple", 0),
        "artists": artist_count,
        "base_names": {r["id"]: r["name"] for r in base_rows},
    }
