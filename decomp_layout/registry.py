"""
Registry — accepted layout records and their module references.

  • structs            — struct/union records, first declaration wins
  • variables          — defined variables, first definition wins
  • extern_variables   — extern declarations, first declaration wins
  • struct_refs        — struct name   → module name (first wins)
  • variable_refs      — variable name → module name
                         (extern sightings overwrite, definitions only fill)
"""

import logging
from typing import Dict, Optional

from .models import StructRecord, VariableRecord

logger = logging.getLogger(__name__)


class Registry:
    """Process-scoped store filled during classification."""

    def __init__(self):
        self.structs: Dict[str, StructRecord] = {}
        self.variables: Dict[str, VariableRecord] = {}
        self.extern_variables: Dict[str, VariableRecord] = {}
        self.struct_refs: Dict[str, str] = {}
        self.variable_refs: Dict[str, str] = {}

    # ────────────────────────────────────────────────────────────────
    #  Structs
    # ────────────────────────────────────────────────────────────────

    def has_struct(self, name: str) -> bool:
        return name in self.structs

    def add_struct(self, record: StructRecord, module: str) -> bool:
        """Insert a struct; returns False if the name is already taken."""
        if record.name in self.structs:
            logger.debug("Struct %s already registered, %s copy dropped", record.name, module)
            return False
        self.structs[record.name] = record
        self.struct_refs.setdefault(record.name, module)
        return True

    # ────────────────────────────────────────────────────────────────
    #  Variables
    # ────────────────────────────────────────────────────────────────

    def _pool(self, is_extern: bool) -> Dict[str, VariableRecord]:
        return self.extern_variables if is_extern else self.variables

    def has_variable(self, name: str, is_extern: bool) -> bool:
        return name in self._pool(is_extern)

    def add_variable(self, record: VariableRecord, is_extern: bool) -> bool:
        """Insert into the extern or defined pool; returns False on a same-pool duplicate."""
        pool = self._pool(is_extern)
        if record.name in pool:
            return False
        pool[record.name] = record
        return True

    def reference_variable(self, name: str, module: str, is_extern: bool):
        """Record where a variable lives.

        Every extern sighting overwrites the reference; a definition only
        fills it when nothing has claimed the name yet.
        """
        if is_extern:
            self.variable_refs[name] = module
        else:
            self.variable_refs.setdefault(name, module)

    def lookup_variable(self, name: str) -> Optional[VariableRecord]:
        """The defined record if any, else the extern one."""
        record = self.variables.get(name)
        if record is None:
            record = self.extern_variables.get(name)
        return record

    # ────────────────────────────────────────────────────────────────
    #  Stats
    # ────────────────────────────────────────────────────────────────

    def get_summary(self) -> Dict[str, int]:
        return {
            "structs": len(self.structs),
            "variables": len(self.variables),
            "extern_variables": len(self.extern_variables),
            "struct_refs": len(self.struct_refs),
            "variable_refs": len(self.variable_refs),
        }
