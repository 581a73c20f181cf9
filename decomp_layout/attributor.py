"""
Library Attributor — groups the populated Registry into module records.

  1. every referenced struct goes into its module
  2. every referenced variable goes into its module, preferring the
     defined record over the extern one
  3. modules left with neither structs nor variables are dropped
  4. ordering: modules by name descending, struct fields by offset,
     variables by name
"""

import logging
from typing import Dict
from dataclasses import replace

from .models import LibraryRecord, StructRecord
from .registry import Registry

logger = logging.getLogger(__name__)


class LibraryAttributor:

    def __init__(self, registry: Registry):
        self.registry = registry

    def build(self) -> Dict[str, LibraryRecord]:
        libs: Dict[str, LibraryRecord] = {}

        for name, module in self.registry.struct_refs.items():
            lib = libs.get(module)
            if lib is None:
                lib = libs[module] = LibraryRecord(module)
            lib.structs[name] = self.registry.structs[name]

        for name, module in self.registry.variable_refs.items():
            lib = libs.get(module)
            if lib is None:
                lib = libs[module] = LibraryRecord(module)
            record = self.registry.lookup_variable(name)
            if record is not None:
                lib.variables[name] = record

        for module in [m for m, lib in libs.items() if lib.is_empty]:
            logger.debug("Dropping empty module %s", module)
            del libs[module]

        return self._ordered(libs)

    @staticmethod
    def _ordered(libs: Dict[str, LibraryRecord]) -> Dict[str, LibraryRecord]:
        ordered: Dict[str, LibraryRecord] = {}
        for module in sorted(libs, reverse=True):
            lib = libs[module]
            lib.structs = {name: _sort_fields(s) for name, s in lib.structs.items()}
            lib.variables = dict(sorted(lib.variables.items(), key=lambda kv: kv[1].name))
            ordered[module] = lib
        return ordered


def _sort_fields(record: StructRecord) -> StructRecord:
    """A copy of ``record`` with its top-level fields ordered by offset (stable)."""
    return replace(
        record, fields=dict(sorted(record.fields.items(), key=lambda kv: kv[1].offset))
    )
