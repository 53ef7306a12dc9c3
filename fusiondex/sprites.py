"""
sprites – Sprite lookup and artist attribution for creature ids.

Only used to annotate exported records; nothing here feeds back into
fusion synthesis or lineage.

Layout on disk:
  - base sprites      ``<base dir>/<id>.png``
  - triple sprites    ``<triple dir>/<id>.png``
  - fusion sprites    ``<custom battlers>/<id>.png`` when an artist drew one,
                      otherwise ``<autogen dir>/<head>/<id>.png``
  - alternatives      same folder, ``<id><letter>.png`` (``25.6a.png``)
"""

from __future__ import annotations

import csv
import logging
import re
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from fusiondex.config import (
    AUTOGEN_SPRITES_DIR,
    BASE_SPRITES_DIR,
    CUSTOM_BATTLERS_DIR,
    ID_SEPARATOR,
    SPRITE_CREDITS_PATH,
    SPRITE_EXTENSION,
    TRIPLE_SPRITES_DIR,
)
from fusiondex.species import RecordKind, kind_of

logger = logging.getLogger(__name__)

UNKNOWN_ARTIST = "Unknown"
_ARTIST_SEPARATOR = " & "
_ALT_SUFFIX_RE = re.compile(r"^[a-zA-Z]+$")

# exported lineage column, key holding the linked creature id
_LINK_ID_KEYS = (
    ("evolves_from", "source"),
    ("evolves_to", "target"),
    ("evolution_chain", "id"),
)


# ── Credits ─────────────────────────────────────────────────────────────────

@dataclass
class SpriteCredit:
    """One row of the sprite credits CSV."""
    sprite_id: str
    artists: List[str]
    sprite_type: str = ""
    notes: str = ""


def read_sprite_credits(path: Path = SPRITE_CREDITS_PATH) -> Dict[str, SpriteCredit]:
    """Parse ``id,artist,type,notes`` rows keyed by sprite id."""
    path = Path(path)
    if not path.exists():
        logger.warning("Sprite credits not found: %s", path)
        return {}
    credits: Dict[str, SpriteCredit] = {}
    with open(path, "r", encoding="utf-8", newline="") as f:
        for row in csv.reader(f):
            if not row or not row[0].strip():
                continue
            row = row + [""] * (4 - len(row))
            sprite_id, artist, sprite_type, notes = (cell.strip() for cell in row[:4])
            artists = [a.strip() for a in artist.split(_ARTIST_SEPARATOR) if a.strip()]
            credits[sprite_id] = SpriteCredit(sprite_id, artists, sprite_type, notes)
    logger.info("Read %d sprite credit entries", len(credits))
    return credits


# ── Resolver ────────────────────────────────────────────────────────────────

@dataclass
class SpriteImage:
    path: Path
    artists: List[str] = field(default_factory=list)
    size: Optional[Tuple[int, int]] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "url": self.path.as_posix(),
            "artist": list(self.artists),
            "size": list(self.size) if self.size else None,
        }


def image_size(path: Path) -> Optional[Tuple[int, int]]:
    """(width, height) of an image file, or None when it cannot be read."""
    try:
        with Image.open(path) as img:
            return img.size
    except (OSError, UnidentifiedImageError) as exc:
        logger.debug("Unreadable sprite %s: %s", path, exc)
        return None


class SpriteResolver:
    """Map creature ids to sprite files and their artists."""

    def __init__(
        self,
        credits: Optional[Dict[str, SpriteCredit]] = None,
        base_dir: Path = BASE_SPRITES_DIR,
        custom_dir: Path = CUSTOM_BATTLERS_DIR,
        triple_dir: Path = TRIPLE_SPRITES_DIR,
        autogen_dir: Path = AUTOGEN_SPRITES_DIR,
        read_sizes: bool = False,
    ):
        self.credits = credits or {}
        self.base_dir = Path(base_dir)
        self.custom_dir = Path(custom_dir)
        self.triple_dir = Path(triple_dir)
        self.autogen_dir = Path(autogen_dir)
        self.read_sizes = read_sizes
        self._listing: Dict[Path, Dict[str, List[str]]] = {}

    @classmethod
    def from_root(cls, root: Path, credits: Optional[Dict[str, SpriteCredit]] = None,
                  read_sizes: bool = False) -> "SpriteResolver":
        """Resolver for a graphics root laid out like the default config."""
        root = Path(root)
        return cls(
            credits=credits,
            base_dir=root / "custom-sprites" / "Other" / "BaseSprites",
            custom_dir=root / "custom-sprites" / "CustomBattlers",
            triple_dir=root / "custom-sprites" / "Other" / "Triples",
            autogen_dir=root / "autogen-sprites",
            read_sizes=read_sizes,
        )

    def primary_path(self, record_id: str) -> Path:
        kind = kind_of(record_id)
        filename = record_id + SPRITE_EXTENSION
        if kind == RecordKind.BASE:
            return self.base_dir / filename
        if kind == RecordKind.TRIPLE:
            return self.triple_dir / filename
        custom = self.custom_dir / filename
        if custom.exists():
            return custom
        head_id = record_id.split(ID_SEPARATOR, 1)[0]
        return self.autogen_dir / head_id / filename

    def attribution(self, record_id: str) -> List[str]:
        """Artists credited for *record_id*, falling back to its last component."""
        credit = self.credits.get(record_id)
        if credit is None:
            credit = self.credits.get(record_id.split(ID_SEPARATOR)[-1])
        if credit is None or not credit.artists:
            return [UNKNOWN_ARTIST]
        return list(credit.artists)

    def add_link_images(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Set ``image`` on every lineage link of an exported record mapping."""
        for column, id_key in _LINK_ID_KEYS:
            for link in data.get(column) or ():
                link["image"] = self.primary_path(link[id_key]).as_posix()
        return data

    def primary_image(self, record_id: str) -> SpriteImage:
        return self._image(self.primary_path(record_id), record_id)

    def alternative_images(self, record_id: str) -> List[SpriteImage]:
        """``<id><letters>.png`` files next to the primary sprite, sorted."""
        folder = self.primary_path(record_id).parent
        names = self._folder_listing(folder).get(record_id, [])
        return [self._image(folder / name, Path(name).stem) for name in names]

    def _image(self, path: Path, sprite_id: str) -> SpriteImage:
        size = image_size(path) if self.read_sizes and path.exists() else None
        return SpriteImage(path=path, artists=self.attribution(sprite_id), size=size)

    def _folder_listing(self, folder: Path) -> Dict[str, List[str]]:
        """Alternative sprite filenames in *folder* grouped by their base id."""
        listing = self._listing.get(folder)
        if listing is not None:
            return listing
        grouped: Dict[str, List[str]] = defaultdict(list)
        if folder.is_dir():
            for path in folder.iterdir():
                if path.suffix.lower() != SPRITE_EXTENSION:
                    continue
                base_id, alt = _split_alternative(path.stem)
                if alt:
                    grouped[base_id].append(path.name)
        listing = {k: sorted(v) for k, v in grouped.items()}
        self._listing[folder] = listing
        return listing


def _split_alternative(stem: str) -> Tuple[str, str]:
    """``"25.6b"`` → ``("25.6", "b")``; main sprites have an empty suffix."""
    match = re.match(r"^(\d+(?:\.\d+)*)(.*)$", stem)
    if match is None:
        return stem, ""
    base_id, rest = match.groups()
    if rest and _ALT_SUFFIX_RE.match(rest):
        return base_id, rest
    return base_id, ""


# ── Artists ─────────────────────────────────────────────────────────────────

@dataclass
class ArtistSummary:
    artist_name: str
    total_sprites: int = 0
    sprites: List[Dict[str, object]] = field(default_factory=list)


def aggregate_artists(resolver: SpriteResolver,
                      records: Iterable[Tuple[str, str, List[str]]]) -> Dict[str, ArtistSummary]:
    """Group sprites by artist.

    *records* yields ``(id, name, types)`` triples; every primary and
    alternative sprite of a record counts once per credited artist.
    """
    artists: Dict[str, ArtistSummary] = {}
    for record_id, name, types in records:
        images = [resolver.primary_image(record_id)] + resolver.alternative_images(record_id)
        for image in images:
            for artist in image.artists:
                summary = artists.setdefault(artist, ArtistSummary(artist))
                summary.total_sprites += 1
                summary.sprites.append({
                    "pokemon_name": name,
                    "id": record_id,
                    "image": image.path.as_posix(),
                    "types": [t for t in types if t],
                })
    return artists
