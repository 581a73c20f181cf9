"""
Declaration Classifier — routes top-level declarations into the Registry.

  STRUCT_DECL / CLASS_DECL  → struct record
  UNION_DECL                → struct record (union)
  VAR_DECL                  → variable record (extern or defined pool)
  TYPEDEF_DECL              → struct record named after the typedef, only
                              for ``typedef struct { ... } Name;``

Module references follow a deliberate asymmetry: an extern variable
re-points its reference on every sighting, while definitions and structs
keep the first module that claimed the name.
"""

import logging
from typing import Callable, Dict, Iterable

from clang.cindex import Cursor, CursorKind

from .header_source import library_of
from .layout_builder import build_struct, build_variable, is_extern
from .models import Outcome
from .offset_map import OffsetMap
from .registry import Registry
from .type_resolver import RECORD_DECL_KINDS, is_named_record

logger = logging.getLogger(__name__)


class DeclarationClassifier:

    def __init__(self, registry: Registry, offsets: OffsetMap):
        self.registry = registry
        self.offsets = offsets
        self._dispatch: Dict[CursorKind, Callable[[Cursor], Outcome]] = {
            CursorKind.STRUCT_DECL: self._classify_struct,
            CursorKind.CLASS_DECL: self._classify_struct,
            CursorKind.UNION_DECL: self._classify_union,
            CursorKind.VAR_DECL: self._classify_variable,
            CursorKind.TYPEDEF_DECL: self._classify_typedef,
        }

    def classify(self, cursor: Cursor) -> Outcome:
        handler = self._dispatch.get(cursor.kind)
        if handler is None:
            return Outcome.skip(f"{cursor.kind.name} not tracked")
        return handler(cursor)

    def classify_all(self, cursors: Iterable[Cursor]) -> int:
        """Classify a declaration sequence; returns the number of accepted records."""
        accepted = 0
        for cursor in cursors:
            outcome = self.classify(cursor)
            if outcome.skipped:
                if cursor.kind in self._dispatch:
                    logger.debug("Skipped %s: %s", cursor.spelling, outcome.skip_reason)
                continue
            accepted += 1
        return accepted

    # ────────────────────────────────────────────────────────────────
    #  Records
    # ────────────────────────────────────────────────────────────────

    def _classify_struct(self, cursor: Cursor) -> Outcome:
        return self._record(cursor, is_union=False)

    def _classify_union(self, cursor: Cursor) -> Outcome:
        return self._record(cursor, is_union=True)

    def _record(self, cursor: Cursor, is_union: bool, name: str = None) -> Outcome:
        if not cursor.is_definition():
            return Outcome.skip("forward declaration")
        if name is None and not is_named_record(cursor):
            return Outcome.skip("untagged record")

        module = library_of(cursor)
        if module is None:
            return Outcome.skip("no source file")

        outcome = build_struct(cursor, self.registry, is_union=is_union, name=name)
        if not outcome.skipped:
            self.registry.add_struct(outcome.value, module)
        return outcome

    def _classify_typedef(self, cursor: Cursor) -> Outcome:
        underlying = cursor.underlying_typedef_type
        decl = underlying.get_declaration()
        if decl.kind not in RECORD_DECL_KINDS or is_named_record(decl):
            return Outcome.skip("typedef of a named or non-record type")
        return self._record(decl, decl.kind == CursorKind.UNION_DECL, name=cursor.spelling)

    # ────────────────────────────────────────────────────────────────
    #  Variables
    # ────────────────────────────────────────────────────────────────

    def _classify_variable(self, cursor: Cursor) -> Outcome:
        name = cursor.spelling
        extern = is_extern(cursor)
        module = library_of(cursor)
        if module is None:
            return Outcome.skip("no source file")

        if self.registry.has_variable(name, extern):
            if extern:
                self.registry.reference_variable(name, module, is_extern=True)
            return Outcome.skip("already registered")

        outcome = build_variable(cursor, self.offsets)
        if outcome.skipped:
            return outcome

        self.registry.add_variable(outcome.value, extern)
        self.registry.reference_variable(name, module, is_extern=extern)
        return outcome
