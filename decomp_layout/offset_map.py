"""
Offset Map — symbol → absolute address table read from a linker map file.

Map lines of interest look like::

    0x0000000080041a20        g_player
      0000000080041a20        g_player

i.e. a line holding only a 16-digit hexadecimal address and a symbol.
Everything else in the map (section headers, object file lines, size
columns, ``. = ALIGN`` and ``PROVIDE`` assignments) is ignored.
"""

import os
import re
import logging
from typing import Dict, Iterator, Optional

logger = logging.getLogger(__name__)

_MAP_EXTENSION = ".map"

# A whole line: address, blanks, one identifier and nothing after it
_SYMBOL_LINE_RE = re.compile(
    r'^[ \t]*(?:0x)?([0-9a-fA-F]{16})[ \t]+([A-Za-z_][\w$.]*)[ \t]*\r?$',
    re.M,
)

_SKIP_DIRS = {".git", "__pycache__", ".vscode", ".idea"}


class OffsetMap:
    """Read-only symbol → address lookup."""

    def __init__(self, offsets: Optional[Dict[str, int]] = None, source: Optional[str] = None):
        self._offsets: Dict[str, int] = dict(offsets or {})
        self.source = source

    # ────────────────────────────────────────────────────────────────
    #  Construction
    # ────────────────────────────────────────────────────────────────

    @classmethod
    def parse(cls, text: str, source: Optional[str] = None) -> "OffsetMap":
        """Build a table from map-file text.  The first address seen for a symbol wins."""
        offsets: Dict[str, int] = {}
        for m in _SYMBOL_LINE_RE.finditer(text):
            name = m.group(2)
            if name in offsets:
                logger.debug("Map: duplicate symbol %s ignored", name)
                continue
            offsets[name] = int(m.group(1), 16)
        return cls(offsets, source)

    @classmethod
    def from_file(cls, path: str) -> "OffsetMap":
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            table = cls.parse(f.read(), source=path)
        logger.info("Read %d offsets from %s", len(table), path)
        return table

    @classmethod
    def discover(cls, root: str) -> "OffsetMap":
        """Load the first ``*.map`` found under ``root``, or return an empty table."""
        found = list(find_map_files(root))
        if not found:
            logger.info("No .map file found, variable offsets will not be applied")
            return cls()
        if len(found) > 1:
            logger.warning(
                "Found %d .map files, using %s", len(found), os.path.relpath(found[0], root)
            )
        return cls.from_file(found[0])

    # ────────────────────────────────────────────────────────────────
    #  Queries
    # ────────────────────────────────────────────────────────────────

    def get(self, symbol: str, default: int = 0) -> int:
        return self._offsets.get(symbol, default)

    def __contains__(self, symbol: str) -> bool:
        return symbol in self._offsets

    def __len__(self) -> int:
        return len(self._offsets)


def find_map_files(root: str) -> Iterator[str]:
    """Yield ``*.map`` files under ``root``: files of a directory before its subdirectories, sorted."""
    if not os.path.isdir(root):
        return
    for dirpath, dirs, filenames in os.walk(root):
        dirs[:] = sorted(d for d in dirs if d not in _SKIP_DIRS)
        for fname in sorted(filenames):
            if fname.lower().endswith(_MAP_EXTENSION):
                yield os.path.join(dirpath, fname)
