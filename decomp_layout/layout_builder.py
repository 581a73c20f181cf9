"""
Layout Builder — turns declaration cursors into layout records.

  • build_variable  — VAR_DECL → VariableRecord
  • build_struct    — STRUCT/UNION/CLASS_DECL → StructRecord
  • extract_fields  — ordered field records of a record type, embedding
                      anonymous unions/structs as AggregateField groups

Every builder returns an ``Outcome``; a skipped outcome carries the
reason and the caller simply moves on to the next declaration or field.
"""

import logging
from typing import Dict, Optional

from clang.cindex import Cursor, CursorKind, StorageClass, Type

from .models import (
    NOT_A_BITFIELD, AggregateField, FieldRecord, Outcome, ScalarField,
    StructRecord, VariableRecord,
)
from .offset_map import OffsetMap
from .registry import Registry
from .type_resolver import RECORD_DECL_KINDS, resolve_type

logger = logging.getLogger(__name__)

BITS_PER_BYTE = 8


def is_extern(cursor: Cursor) -> bool:
    return cursor.storage_class == StorageClass.EXTERN


def anonymous_record_decl(ctype: Type) -> Optional[Cursor]:
    """The declaration of ``ctype`` if it is an untagged, untypedef'd struct/union."""
    decl = ctype.get_canonical().get_declaration()
    if decl.kind in RECORD_DECL_KINDS and decl.is_anonymous():
        return decl
    return None


# ═══════════════════════════════════════════════════════════════════════
#  Variables
# ═══════════════════════════════════════════════════════════════════════

def build_variable(cursor: Cursor, offsets: OffsetMap) -> Outcome[VariableRecord]:
    name = cursor.spelling
    declared = cursor.type
    resolved = resolve_type(declared)

    # Incomplete arrays report a negative size; fall back to one element
    size = declared.get_size()
    if size < 0:
        size = resolved.size
    if size < 0:
        return Outcome.skip(f"size of '{declared.spelling}' cannot be determined")

    return Outcome.ok(VariableRecord(
        name=name,
        type=resolved.name,
        size=size,
        is_pointer=resolved.is_pointer,
        array_dims=resolved.array_dims,
        offset=offsets.get(name),
        type_size=resolved.size,
    ))


# ═══════════════════════════════════════════════════════════════════════
#  Structs / unions
# ═══════════════════════════════════════════════════════════════════════

def build_struct(
    cursor: Cursor,
    registry: Registry,
    is_union: bool = False,
    name: Optional[str] = None,
) -> Outcome[StructRecord]:
    """Build a struct record; ``name`` overrides the cursor spelling (typedef'd records)."""
    name = name or cursor.spelling
    if registry.has_struct(name):
        return Outcome.skip(f"struct '{name}' already registered")

    ctype = cursor.type
    return Outcome.ok(StructRecord(
        name=name,
        size=ctype.get_size(),
        is_union=is_union,
        fields=extract_fields(ctype),
    ))


def extract_fields(record_type: Type, base_bits: int = 0) -> Dict[str, FieldRecord]:
    """Field records of ``record_type`` keyed by name, in declaration order.

    ``base_bits`` is the bit offset of ``record_type`` inside the outermost
    record, so embedded members report absolute offsets.
    """
    fields: Dict[str, FieldRecord] = {}
    for index, field_cursor in enumerate(record_type.get_canonical().get_fields()):
        outcome = build_field(field_cursor, index, base_bits)
        if outcome.skipped:
            logger.debug(
                "Field #%d of %s skipped: %s", index, record_type.spelling, outcome.skip_reason
            )
            continue
        fields.setdefault(outcome.value.name, outcome.value)
    return fields


def _field_name(cursor: Cursor, index: int) -> str:
    name = cursor.spelling
    if name and name.isidentifier():
        return name
    return f"__anon_{index}"


def build_field(cursor: Cursor, index: int, base_bits: int = 0) -> Outcome[FieldRecord]:
    try:
        raw_type = cursor.type
        raw_offset = cursor.get_field_offsetof()
        if raw_offset < 0:
            return Outcome.skip(f"offset unavailable (layout error {raw_offset})")

        bit_offset = base_bits + raw_offset
        resolved = resolve_type(raw_type)

        # Flexible array members report a layout error; use one element
        size = raw_type.get_size()
        if size < 0:
            size = resolved.size

        facts = dict(
            name=_field_name(cursor, index),
            size=size,
            offset=bit_offset // BITS_PER_BYTE,
            bit_offset=bit_offset,
            bits=cursor.get_bitfield_width() if cursor.is_bitfield() else NOT_A_BITFIELD,
            is_pointer=resolved.is_pointer,
            array_dims=resolved.array_dims,
            type_size=resolved.size,
        )

        anon = None if resolved.is_pointer else anonymous_record_decl(resolved.ctype)
        if anon is not None:
            # All members of an anonymous union alias the union's own storage
            return Outcome.ok(AggregateField(
                type="union" if anon.kind == CursorKind.UNION_DECL else "struct",
                members=extract_fields(resolved.ctype, bit_offset),
                **facts,
            ))

        return Outcome.ok(ScalarField(type=resolved.name, **facts))
    except Exception as e:
        return Outcome.skip(f"{type(e).__name__}: {e}")
