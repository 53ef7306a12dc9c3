"""
split_names – Fusion name fragments and the name synthesizer.

The upstream game only ships its name fragments as Ruby source
(``SplitNames.rb``)::

    module GameData
      SPLIT_NAMES = [
        ["", ""],
        ["Bulb", "basaur"],
        ...
      ]
      NAT_DEX_MAPPING = {
        # comment
        252 => 277,
        ...
      }
    end

Only that exact block structure is accepted.  The table is built once
at start-up with ``load_name_table`` and handed to the synthesizer.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from fusiondex.config import MAX_SPECIES_ID, SPLIT_NAMES_PATH

logger = logging.getLogger(__name__)

NameFragments = Tuple[str, str]


# ── Grammar ─────────────────────────────────────────────────────────────────

_WS_RE = re.compile(r"[ \t\r\n]*")
_COMMENT_RE = re.compile(r"#[^\n]*(?:\n|$)")
_MODULE_START_RE = re.compile(r"module GameData")
_SPLIT_NAMES_START_RE = re.compile(r"SPLIT_NAMES = \[")
_SPLIT_NAMES_ROW_RE = re.compile(r'\["([^"]*)", "([^"]*)"\],?')
_SPLIT_NAMES_END_RE = re.compile(r"\]")
_NAT_DEX_START_RE = re.compile(r"NAT_DEX_MAPPING = \{")
_NAT_DEX_ROW_RE = re.compile(r"([1-9][0-9]*) => ([1-9][0-9]*),?")
_NAT_DEX_END_RE = re.compile(r"\}")
_MODULE_END_RE = re.compile(r"end")


class SplitNamesParseError(ValueError):
    """The name-fragment source does not have the expected structure."""

    def __init__(self, expected: str, offset: int):
        super().__init__(f"Expected {expected} at offset {offset}")
        self.expected = expected
        self.offset = offset


class UnknownNameError(KeyError):
    """No name fragments are known for a base id."""


class _Scanner:
    """Anchored regex matching over a text buffer."""

    def __init__(self, text: str):
        self._text = text
        self.pos = 0

    def match(self, pattern: "re.Pattern[str]") -> Optional["re.Match[str]"]:
        result = pattern.match(self._text, self.pos)
        if result is not None:
            self.pos = result.end()
        return result

    def expect(self, pattern: "re.Pattern[str]", expected: str) -> "re.Match[str]":
        result = self.match(pattern)
        if result is None:
            raise SplitNamesParseError(expected, self.pos)
        return result

    def skip(self) -> None:
        """Skip whitespace and ``#`` comments."""
        while True:
            self.match(_WS_RE)
            if self.match(_COMMENT_RE) is None:
                return

    @property
    def at_end(self) -> bool:
        return self.pos >= len(self._text)


# ── Name table ──────────────────────────────────────────────────────────────

@dataclass
class NameTable:
    """Base id → (prefix, suffix) used to name fusions."""
    entries: Dict[str, NameFragments] = field(default_factory=dict)

    def __getitem__(self, base_id: Union[str, int]) -> NameFragments:
        try:
            return self.entries[str(base_id)]
        except KeyError:
            raise UnknownNameError(f"No name fragments for id {base_id}") from None

    def __contains__(self, base_id: object) -> bool:
        return str(base_id) in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def prefix(self, base_id: Union[str, int]) -> str:
        return self[base_id][0]

    def suffix(self, base_id: Union[str, int]) -> str:
        return self[base_id][1]


def parse_split_names(text: str, max_id: int = MAX_SPECIES_ID) -> NameTable:
    """Parse ``SplitNames.rb`` source into a ``NameTable`` for ids 1..max_id."""
    scanner = _Scanner(text)
    rows: List[NameFragments] = []
    mapping: Dict[int, int] = {}

    scanner.skip()
    scanner.expect(_MODULE_START_RE, "'module GameData'")

    scanner.skip()
    scanner.expect(_SPLIT_NAMES_START_RE, "'SPLIT_NAMES = ['")
    scanner.skip()
    while scanner.match(_SPLIT_NAMES_END_RE) is None:
        row = scanner.expect(_SPLIT_NAMES_ROW_RE, "a SPLIT_NAMES row or ']'")
        rows.append((row.group(1), row.group(2)))
        scanner.skip()

    scanner.skip()
    scanner.expect(_NAT_DEX_START_RE, "'NAT_DEX_MAPPING = {'")
    scanner.skip()
    while scanner.match(_NAT_DEX_END_RE) is None:
        row = scanner.expect(_NAT_DEX_ROW_RE, "a NAT_DEX_MAPPING row or '}'")
        mapping[int(row.group(1))] = int(row.group(2))
        scanner.skip()

    scanner.skip()
    scanner.expect(_MODULE_END_RE, "'end'")
    scanner.skip()
    if not scanner.at_end:
        raise SplitNamesParseError("end of input", scanner.pos)

    # Row 0 is a placeholder, so ids index the row list directly.
    entries: Dict[str, NameFragments] = {}
    for base_id in range(1, max_id + 1):
        row_index = mapping.get(base_id, base_id)
        if row_index < len(rows):
            entries[str(base_id)] = rows[row_index]
        else:
            logger.warning("No SPLIT_NAMES row %d for id %d", row_index, base_id)
    logger.debug("Parsed %d name rows, %d remaps", len(rows), len(mapping))
    return NameTable(entries)


def load_name_table(path: Path = SPLIT_NAMES_PATH,
                    max_id: int = MAX_SPECIES_ID) -> NameTable:
    """Read and parse the name-fragment source file."""
    table = parse_split_names(Path(path).read_text(encoding="utf-8"), max_id)
    logger.info("Loaded %d fusion name entries from %s", len(table), path)
    return table


# ── Synthesizer ─────────────────────────────────────────────────────────────

def fuse_names(table: NameTable, head_id: Union[str, int],
               body_id: Union[str, int]) -> str:
    """Head's prefix + body's suffix, without a doubled joining letter."""
    prefix = table.prefix(head_id)
    suffix = table.suffix(body_id)
    if prefix and suffix and prefix[-1] == suffix[0]:
        prefix = prefix[:-1]
    name = prefix + suffix
    return name[:1].upper() + name[1:]
