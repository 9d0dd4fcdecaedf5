"""Header translation with pycparser.

Parses preprocessed BearSSL headers, keeps the allowlisted top-level
declarations and collects what the emitter and the layout model need:
enumerations, array parameters, and every record and typedef of the
translation unit.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from pycparser import CParser, c_ast
from pycparser.c_generator import CGenerator
from pycparser.c_parser import ParseError

from .cexpr import eval_node
from .options import BindgenOptions
from .preprocessor import TranslationError

log = logging.getLogger(__name__)


@dataclass
class EnumInfo:
    """One enumeration and its enumerators, in declaration order."""

    name: str
    members: List[Tuple[str, int]]


@dataclass
class Translation:
    """Allowlisted declarations of a header set."""

    declarations: List[c_ast.Node] = field(default_factory=list)
    functions: List[str] = field(default_factory=list)
    types: List[str] = field(default_factory=list)
    variables: List[str] = field(default_factory=list)
    enums: List[EnumInfo] = field(default_factory=list)
    array_params: Dict[str, Dict[str, int]] = field(default_factory=dict)
    # Whole translation unit, for layout computation
    typedefs: Dict[str, c_ast.Typedef] = field(default_factory=dict)
    records: Dict[str, c_ast.Node] = field(default_factory=dict)
    enumerators: Dict[str, int] = field(default_factory=dict)
    # (ffi type name, type node) of allowlisted records
    record_types: List[Tuple[str, c_ast.Node]] = field(default_factory=list)

    def symbols(self) -> List[str]:
        """Every bound name: functions, types and variables."""
        return self.functions + self.types + self.variables

    def cdef(self) -> str:
        """Render the declarations as cffi cdef source."""
        generator = CGenerator()
        return "\n\n".join(generator.visit(node) + ";" for node in self.declarations)


class _RecordCollector(c_ast.NodeVisitor):
    """Collects struct/union definitions and enumerator values."""

    def __init__(self, translation: Translation):
        self.translation = translation

    def _record(self, node):
        if node.decls is not None and node.name:
            kind = "struct" if isinstance(node, c_ast.Struct) else "union"
            self.translation.records.setdefault(f"{kind} {node.name}", node)
        self.generic_visit(node)

    visit_Struct = _record
    visit_Union = _record

    def visit_Enum(self, node):
        if node.values is None:
            return
        next_value = 0
        for item in node.values.enumerators:
            if item.value is not None:
                value = eval_node(item.value, self.translation.enumerators)
                if value is None:
                    log.debug("enumerator %s is not constant", item.name)
                    continue
                next_value = value
            self.translation.enumerators[item.name] = next_value
            next_value += 1


class Translator:
    """Turns preprocessed C into an allowlisted Translation."""

    def __init__(self, options: BindgenOptions):
        self.options = options

    def parse(self, text: str, filename: str = "<bearssl>") -> c_ast.FileAST:
        """Parse preprocessed C source.

        Raises:
            TranslationError: If pycparser rejects the source
        """
        try:
            return CParser().parse(text, filename)
        except ParseError as e:
            raise TranslationError(f"Failed to parse headers: {e}") from e

    def translate(self, text: str, filename: str = "<bearssl>") -> Translation:
        """Parse and filter preprocessed header text.

        Args:
            text: Output of the C preprocessor
            filename: Name used in parse error messages

        Returns:
            Translation of the allowlisted declarations
        """
        ast = self.parse(text, filename)
        translation = Translation()
        _RecordCollector(translation).visit(ast)

        merged: "OrderedDict[Tuple[str, str], c_ast.Node]" = OrderedDict()
        for node in ast.ext:
            entry = self._classify(node, translation)
            if entry is None:
                continue
            key = entry
            if key in merged:
                if self._is_forward(merged[key]) and not self._is_forward(node):
                    merged[key] = node
                elif not self.options.merge_extern_blocks:
                    raise TranslationError(f"Duplicate declaration of {key[1]}")
                continue
            merged[key] = node

        for (kind, name), node in merged.items():
            translation.declarations.append(node)
            if kind == "function":
                translation.functions.append(name)
                self._collect_array_params(name, node, translation)
            elif kind == "variable":
                translation.variables.append(name)
            else:
                if name not in translation.types:
                    translation.types.append(name)
            self._collect_enum(node, translation)
            self._collect_record_type(kind, name, node, translation)

        return translation

    def _classify(self, node, translation: Translation) -> Optional[Tuple[str, str]]:
        if isinstance(node, c_ast.FuncDef):
            # static inline helpers have no symbol to bind
            return None

        if isinstance(node, c_ast.Typedef):
            translation.typedefs[node.name] = node
            if self.options.allows_type(node.name):
                return ("typedef", node.name)
            return None

        if not isinstance(node, c_ast.Decl):
            return None
        if "static" in node.storage:
            return None

        if isinstance(node.type, c_ast.FuncDecl):
            if self.options.allows_function(node.name):
                node.storage = []
                return ("function", node.name)
            return None

        if node.name is None and isinstance(node.type, (c_ast.Struct, c_ast.Union, c_ast.Enum)):
            tag = node.type.name
            if tag and self.options.allows_type(tag):
                kind = type(node.type).__name__.lower()
                return (kind, tag)
            return None

        if node.name is not None and self.options.allows_var(node.name):
            node.storage = []
            return ("variable", node.name)
        return None

    @staticmethod
    def _is_forward(node) -> bool:
        target = node.type
        if isinstance(node, c_ast.Typedef):
            target = node.type.type if isinstance(node.type, c_ast.TypeDecl) else None
        if isinstance(target, (c_ast.Struct, c_ast.Union)):
            return target.decls is None
        if isinstance(target, c_ast.Enum):
            return target.values is None
        return False

    def _collect_array_params(self, name: str, node: c_ast.Decl, translation: Translation) -> None:
        func = node.type
        if func.args is None:
            return
        arrays = {}
        for index, param in enumerate(func.args.params):
            if not isinstance(param.type, c_ast.ArrayDecl):
                continue
            array = param.type
            if self.options.array_pointers_in_arguments:
                size = None
                if array.dim is not None:
                    size = eval_node(array.dim, translation.enumerators)
                if size is not None:
                    arrays[param.name or f"arg{index}"] = size
            else:
                param.type = c_ast.PtrDecl(
                    quals=list(array.dim_quals or []), type=array.type
                )
        if arrays:
            translation.array_params[name] = arrays

    def _collect_enum(self, node, translation: Translation) -> None:
        enum = None
        name = None
        if isinstance(node, c_ast.Typedef) and isinstance(node.type, c_ast.TypeDecl):
            if isinstance(node.type.type, c_ast.Enum):
                enum = node.type.type
                name = enum.name or node.name
        elif isinstance(node, c_ast.Decl) and isinstance(node.type, c_ast.Enum):
            enum = node.type
            name = enum.name
        if enum is None or enum.values is None or name is None:
            return
        if any(info.name == name for info in translation.enums):
            return

        members = []
        for item in enum.values.enumerators:
            if item.name not in translation.enumerators:
                continue
            member = f"{name}_{item.name}" if self.options.prepend_enum_name else item.name
            members.append((member, translation.enumerators[item.name]))
        translation.enums.append(EnumInfo(name, members))

    @staticmethod
    def _collect_record_type(kind: str, name: str, node, translation: Translation) -> None:
        if kind in ("struct", "union"):
            if node.type.decls is not None:
                translation.record_types.append((f"{kind} {name}", node.type))
            return
        if kind != "typedef" or not isinstance(node.type, c_ast.TypeDecl):
            return
        inner = node.type.type
        if isinstance(inner, (c_ast.Struct, c_ast.Union)):
            translation.record_types.append((name, inner))
