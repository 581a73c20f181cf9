"""
Layout records produced from C declarations.

  • VariableRecord   — one global variable (extern or defined)
  • StructRecord     — one struct/union with its ordered fields
  • ScalarField      — a leaf field
  • AggregateField   — a field embedding an anonymous union/struct
  • LibraryRecord    — everything attributed to one header module
  • Outcome          — value-or-skip result of a single build step

``to_dict()`` renders the JSON document schema consumed by the
downstream decompilation tools (PascalCase keys).
"""

from typing import Dict, List, Optional, Union, Generic, TypeVar
from dataclasses import dataclass, field

NOT_A_BITFIELD = -1
UNBOUNDED_DIM = -1

T = TypeVar("T")


# ═══════════════════════════════════════════════════════════════════════
#  Build outcome
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class Outcome(Generic[T]):
    """Result of building one record: a value, or the reason it was skipped."""
    value: Optional[T] = None
    skip_reason: Optional[str] = None

    @classmethod
    def ok(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def skip(cls, reason: str) -> "Outcome[T]":
        return cls(skip_reason=reason)

    @property
    def skipped(self) -> bool:
        return self.skip_reason is not None


# ═══════════════════════════════════════════════════════════════════════
#  Records
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class VariableRecord:
    """A global variable."""
    name: str
    type: str
    size: int
    is_pointer: bool = False
    array_dims: List[int] = field(default_factory=list)
    offset: int = 0               # absolute address from the map file
    type_size: int = 0            # size of one element's resolved type

    def to_dict(self) -> Dict:
        return {
            "Name": self.name,
            "Type": self.type,
            "IsPointer": self.is_pointer,
            "ArrayDims": list(self.array_dims),
            "Offset": self.offset,
            "Size": self.size,
            "TypeSize": self.type_size,
        }


@dataclass
class ScalarField:
    """A struct member with leaf layout facts only."""
    name: str
    type: str
    size: int
    offset: int                   # bytes from the start of the outermost record
    bit_offset: int = 0           # raw engine offset, in bits
    bits: int = NOT_A_BITFIELD
    is_pointer: bool = False
    array_dims: List[int] = field(default_factory=list)
    type_size: int = 0
    kind: str = "scalar"

    def to_dict(self) -> Dict:
        return {
            "Name": self.name,
            "Type": self.type,
            "Offset": self.offset,
            "Size": self.size,
            "TypeSize": self.type_size,
            "FieldBits": self.bits,
            "IsPointer": self.is_pointer,
            "ArrayDims": list(self.array_dims),
        }


@dataclass
class AggregateField:
    """A struct member whose type is an anonymous union or struct.

    ``members`` holds the embedded fields, keyed by name, each with its
    offset already expressed relative to the outermost record.
    """
    name: str
    type: str
    size: int
    offset: int
    bit_offset: int = 0
    bits: int = NOT_A_BITFIELD
    is_pointer: bool = False
    array_dims: List[int] = field(default_factory=list)
    type_size: int = 0
    members: Dict[str, "FieldRecord"] = field(default_factory=dict)
    kind: str = "aggregate"

    def to_dict(self) -> Dict:
        return {
            "Name": self.name,
            "Type": self.type,
            "Offset": self.offset,
            "Size": self.size,
            "TypeSize": self.type_size,
            "FieldBits": self.bits,
            "IsPointer": self.is_pointer,
            "ArrayDims": list(self.array_dims),
            "Fields": {name: f.to_dict() for name, f in self.members.items()},
        }


FieldRecord = Union[ScalarField, AggregateField]


@dataclass
class StructRecord:
    """A struct or union type."""
    name: str
    size: int
    is_union: bool = False
    fields: Dict[str, FieldRecord] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            "Name": self.name,
            "Size": self.size,
            "IsUnion": self.is_union,
            "Fields": {name: f.to_dict() for name, f in self.fields.items()},
        }

    def __str__(self):
        prefix = "(Union) " if self.is_union else ""
        lines = [f"{prefix}{self.name}"]
        for f in self.fields.values():
            decl = f.name
            if f.array_dims:
                decl += "[" + "][".join(str(d) for d in f.array_dims) + "]"
            if f.bits != NOT_A_BITFIELD:
                decl += f":{f.bits}"
            lines.append(f"\t{f.type} {decl} ({f.offset})")
        return "\n".join(lines)


@dataclass
class LibraryRecord:
    """Structs and variables attributed to one header module."""
    name: str
    structs: Dict[str, StructRecord] = field(default_factory=dict)
    variables: Dict[str, VariableRecord] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.structs and not self.variables
