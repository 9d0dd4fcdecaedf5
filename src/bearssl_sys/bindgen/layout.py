"""Struct layout model.

Computes size, alignment and field offsets of C records for a target data
model. The generated module compares these numbers against the layouts
cffi gets from the real compiler, which catches disagreements between the
translated declarations and the compiled library.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from pycparser import c_ast

from .cexpr import eval_node
from .translator import Translation

log = logging.getLogger(__name__)

_64BIT_ARCHES = (
    "x86_64", "aarch64", "arm64", "powerpc64", "ppc64", "riscv64",
    "s390x", "mips64", "sparc64", "sparcv9", "loongarch64", "wasm64",
)
_I386_ARCHES = ("i386", "i486", "i586", "i686", "x86")


class LayoutUnavailable(Exception):
    """Raised when a type's layout cannot be computed."""
    pass


@dataclass(frozen=True)
class DataModel:
    """Sizes of the C scalar types on a target."""

    name: str
    pointer: int
    long: int
    # Alignment of 8-byte scalars inside records
    align64: int = 8
    wchar: int = 4

    @classmethod
    def for_target(cls, target: str) -> "DataModel":
        """Data model of a target triple."""
        arch = target.split("-")[0]
        windows = "windows" in target
        if arch.startswith(_64BIT_ARCHES):
            if windows:
                return cls("LLP64", pointer=8, long=4, wchar=2)
            return cls("LP64", pointer=8, long=8)
        if arch in _I386_ARCHES and not windows:
            return cls("ILP32", pointer=4, long=4, align64=4)
        return cls("ILP32", pointer=4, long=4, wchar=2 if windows else 4)

    def scalar(self, size: int) -> Tuple[int, int]:
        return size, (self.align64 if size == 8 else size)

    def named_type(self, name: str) -> Optional[Tuple[int, int]]:
        """Layout of standard typedef names such as uint32_t or size_t."""
        if name in ("size_t", "ptrdiff_t", "intptr_t", "uintptr_t", "ssize_t"):
            return self.scalar(self.pointer)
        if name in ("intmax_t", "uintmax_t"):
            return self.scalar(8)
        if name == "wchar_t":
            return self.scalar(self.wchar)
        for bits in (8, 16, 32, 64):
            if name in (f"int{bits}_t", f"uint{bits}_t"):
                return self.scalar(bits // 8)
        return None

    def primitive(self, names: List[str]) -> Tuple[int, int]:
        """Layout of a builtin type spelled by its specifier list."""
        words = [n for n in names if n not in ("signed", "unsigned")]
        longs = words.count("long")
        rest = [w for w in words if w not in ("long", "int")]

        if rest == ["char"]:
            return 1, 1
        if rest == ["short"]:
            return 2, 2
        if rest == ["_Bool"]:
            return 1, 1
        if rest == ["float"]:
            return 4, 4
        if rest == ["double"] and longs == 0:
            return self.scalar(8)
        if rest == ["void"]:
            raise LayoutUnavailable("void has no layout")
        if rest:
            raise LayoutUnavailable(f"unsupported type {' '.join(names)}")
        if longs == 0:
            return 4, 4
        if longs == 1:
            return self.scalar(self.long)
        return self.scalar(8)


@dataclass
class RecordLayout:
    """Size, alignment and field offsets of one record."""

    size: int
    align: int
    fields: Dict[str, int] = field(default_factory=dict)


def _align_up(offset: int, align: int) -> int:
    return (offset + align - 1) // align * align


class LayoutCalculator:
    """Computes record layouts for the types of a Translation."""

    def __init__(self, translation: Translation, model: DataModel):
        self.translation = translation
        self.model = model

    def compute(self) -> Dict[str, RecordLayout]:
        """Layouts of every allowlisted record that can be computed.

        Returns:
            Mapping of ffi type name to RecordLayout
        """
        layouts = {}
        for name, node in self.translation.record_types:
            try:
                layouts[name] = self.record(node)
            except LayoutUnavailable as e:
                log.info("no layout test for %s: %s", name, e)
        return layouts

    def record(self, node) -> RecordLayout:
        """Layout of a Struct or Union node."""
        if node.decls is None:
            kind = "struct" if isinstance(node, c_ast.Struct) else "union"
            definition = self.translation.records.get(f"{kind} {node.name}")
            if definition is None:
                raise LayoutUnavailable(f"{kind} {node.name} is incomplete")
            node = definition

        is_union = isinstance(node, c_ast.Union)
        offset = 0
        size = 0
        align = 1
        fields: Dict[str, int] = {}

        for member in node.decls:
            if member.bitsize is not None:
                raise LayoutUnavailable(f"bitfield {member.name}")
            member_size, member_align = self.type_layout(member.type)
            align = max(align, member_align)

            member_offset = 0 if is_union else _align_up(offset, member_align)
            if member.name is not None:
                fields[member.name] = member_offset
            elif isinstance(member.type, (c_ast.Struct, c_ast.Union)):
                # Anonymous member: its fields belong to the enclosing record
                inner = self.record(member.type)
                for inner_name, inner_offset in inner.fields.items():
                    fields[inner_name] = member_offset + inner_offset

            if is_union:
                size = max(size, member_size)
            else:
                offset = member_offset + member_size
                size = offset

        return RecordLayout(_align_up(size, align), align, fields)

    def type_layout(self, node) -> Tuple[int, int]:
        """(size, alignment) of a type node."""
        if isinstance(node, c_ast.PtrDecl):
            return self.model.scalar(self.model.pointer)

        if isinstance(node, c_ast.ArrayDecl):
            elem_size, elem_align = self.type_layout(node.type)
            if node.dim is None:
                raise LayoutUnavailable("flexible array member")
            count = eval_node(node.dim, self.translation.enumerators, self.sizeof)
            if count is None:
                raise LayoutUnavailable("array dimension is not constant")
            return elem_size * count, elem_align

        if isinstance(node, (c_ast.TypeDecl, c_ast.Typename)):
            return self.type_layout(node.type)

        if isinstance(node, (c_ast.Struct, c_ast.Union)):
            layout = self.record(node)
            return layout.size, layout.align

        if isinstance(node, c_ast.Enum):
            return 4, 4

        if isinstance(node, c_ast.IdentifierType):
            if len(node.names) == 1:
                name = node.names[0]
                known = self.model.named_type(name)
                if known is not None:
                    return known
                typedef = self.translation.typedefs.get(name)
                if typedef is not None:
                    return self.type_layout(typedef.type)
            return self.model.primitive(node.names)

        if isinstance(node, c_ast.FuncDecl):
            raise LayoutUnavailable("function type has no layout")

        raise LayoutUnavailable(f"unsupported node {type(node).__name__}")

    def sizeof(self, node) -> Optional[int]:
        try:
            return self.type_layout(node)[0]
        except LayoutUnavailable:
            return None
