"""
Header Source — discovery and libclang parsing of module headers.

  • discover_headers  — every ``*.h`` under each subdirectory of the root,
                        in a stable (sorted relative path) order
  • HeaderSource      — parses one header into a translation unit and
                        yields its top-level declaration cursors lazily
  • library_of        — module name of the header physically containing
                        a cursor (basename without extension)
"""

import os
import logging
from typing import Iterator, List, Optional

from clang.cindex import (
    Cursor, Diagnostic, Index, LibclangError, TranslationUnit,
)

from .config import LayoutConfig

logger = logging.getLogger(__name__)

_HEADER_EXTENSIONS = {".h"}

_SKIP_DIRS = {".git", "__pycache__", ".vscode", ".idea"}


class HeaderParseError(Exception):
    """libclang is unavailable or could not produce a translation unit."""


def _norm_path(p: str) -> str:
    return p.replace("\\", "/")


def discover_headers(root: str, exclude: Optional[List[str]] = None) -> List[str]:
    """Absolute paths of module headers under ``root``.

    Only subdirectories of ``root`` hold modules; headers sitting directly
    in ``root`` are not picked up.  ``exclude`` lists absolute directories
    to leave out (e.g. the output directory).
    """
    excluded = {os.path.normpath(d) for d in (exclude or [])}
    found = []
    for entry in sorted(os.listdir(root)):
        top = os.path.join(root, entry)
        if not os.path.isdir(top) or entry in _SKIP_DIRS:
            continue
        for dirpath, dirs, filenames in os.walk(top):
            dirs[:] = [
                d for d in dirs
                if d not in _SKIP_DIRS and os.path.normpath(os.path.join(dirpath, d)) not in excluded
            ]
            if os.path.normpath(dirpath) in excluded:
                continue
            for fname in filenames:
                if os.path.splitext(fname)[1] in _HEADER_EXTENSIONS:
                    found.append(os.path.join(dirpath, fname))
    return sorted(found, key=lambda p: _norm_path(os.path.relpath(p, root)))


def library_of(cursor: Cursor) -> Optional[str]:
    """Module name for the header that contains ``cursor``."""
    loc_file = cursor.location.file
    if loc_file is None:
        return None
    return os.path.splitext(os.path.basename(loc_file.name))[0]


class HeaderSource:
    """
    Parses headers with libclang.

    Usage:
        source = HeaderSource(config)
        for cursor in source.declarations("/root/game/actor.h"):
            ...
    """

    def __init__(self, config: LayoutConfig):
        self.config = config
        self._index: Optional[Index] = None
        self._args = config.clang_args()

    @property
    def index(self) -> Index:
        if self._index is None:
            try:
                self._index = Index.create()
            except LibclangError as e:
                raise HeaderParseError(f"libclang could not be loaded: {e}") from e
        return self._index

    @property
    def args(self) -> List[str]:
        return list(self._args)

    def parse(self, path: str) -> TranslationUnit:
        """Parse one header; raises HeaderParseError if no translation unit is produced."""
        try:
            tu = self.index.parse(path, args=self._args)
        except HeaderParseError:
            raise
        except Exception as e:
            raise HeaderParseError(f"Failed to parse {path}: {e}") from e

        for diag in tu.diagnostics:
            if diag.severity >= Diagnostic.Error:
                loc = diag.location
                logger.warning("clang: %s:%s: %s", loc.file, loc.line, diag.spelling)
        return tu

    def declarations(self, path: str) -> Iterator[Cursor]:
        """Top-level declarations of ``path``'s translation unit, in source order.

        Includes declarations pulled in through ``#include`` and the forced
        global header; use ``library_of`` to tell them apart.
        """
        tu = self.parse(path)
        yield from tu.cursor.get_children()
