"""
Type Resolver — canonical (name, size, pointer, dims) view of a clang type.

Given a ``clang.cindex.Type`` it:
  • strips at most one level of pointer indirection
  • flattens nested array dimensions outer → inner
    (constant arrays give their length, an incomplete array gives -1
    and stops the descent)
  • names the remaining type by its struct/union tag, or its spelling
"""

from typing import List, Tuple
from dataclasses import dataclass, field

from clang.cindex import Cursor, CursorKind, Type, TypeKind

from .models import UNBOUNDED_DIM

RECORD_DECL_KINDS = {
    CursorKind.STRUCT_DECL,
    CursorKind.UNION_DECL,
    CursorKind.CLASS_DECL,
}

_ARRAY_KINDS = {TypeKind.CONSTANTARRAY, TypeKind.INCOMPLETEARRAY}


@dataclass
class ResolvedType:
    """Normalized type facts.  ``ctype`` is the element type that was named."""
    name: str
    size: int
    is_pointer: bool
    array_dims: List[int] = field(default_factory=list)
    ctype: Type = None


def is_named_record(decl: Cursor) -> bool:
    """True for a struct/union/class declaration that carries a usable name."""
    if decl.kind not in RECORD_DECL_KINDS:
        return False
    if decl.is_anonymous():
        return False
    # Newer libclang spells untagged records as "struct (unnamed at ...)"
    return decl.spelling.isidentifier()


def type_name(ctype: Type) -> str:
    decl = ctype.get_declaration()
    if is_named_record(decl):
        return decl.spelling
    return ctype.spelling


def flatten_array(ctype: Type) -> Tuple[List[int], Type]:
    """Return (dims, element_type) for a possibly nested array type."""
    dims: List[int] = []
    while ctype.kind in _ARRAY_KINDS:
        if ctype.kind == TypeKind.INCOMPLETEARRAY:
            dims.append(UNBOUNDED_DIM)
            ctype = ctype.get_array_element_type()
            break
        dims.append(ctype.get_array_size())
        ctype = ctype.get_array_element_type()
    return dims, ctype


def resolve_type(ctype: Type) -> ResolvedType:
    is_pointer = ctype.kind == TypeKind.POINTER
    if is_pointer:
        ctype = ctype.get_pointee()

    # An array element that is itself a pointer keeps its pointer spelling
    dims, ctype = flatten_array(ctype)

    return ResolvedType(
        name=type_name(ctype),
        size=ctype.get_size(),
        is_pointer=is_pointer,
        array_dims=dims,
        ctype=ctype,
    )
