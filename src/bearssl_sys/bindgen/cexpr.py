"""Integer constant expression evaluation.

Two entry points: eval_node() for pycparser expression nodes (array
dimensions, enumerator values) and eval_text() for raw macro bodies.
Both return None for anything that is not an integer constant expression.
"""

import re
from typing import Callable, Iterable, Iterator, Mapping, Optional

from pycparser import CParser, c_ast
from pycparser.c_parser import ParseError

_INT_SUFFIX = re.compile(r"[uUlL]+$")
_IDENTIFIER = re.compile(r"\b[A-Za-z_][A-Za-z0-9_]*\b")
_VALUE_NAME = "__bearssl_macro_value"

# Typedef names of the standard headers BearSSL includes
STANDARD_TYPEDEFS = frozenset((
    "size_t", "ptrdiff_t", "wchar_t", "intptr_t", "uintptr_t",
    "intmax_t", "uintmax_t",
    "int8_t", "uint8_t", "int16_t", "uint16_t",
    "int32_t", "uint32_t", "int64_t", "uint64_t",
))

# (bits, signed) of cast targets whose width does not depend on the target
_FIXED_WIDTH = {
    "int8_t": (8, True), "uint8_t": (8, False),
    "int16_t": (16, True), "uint16_t": (16, False),
    "int32_t": (32, True), "uint32_t": (32, False),
    "int64_t": (64, True), "uint64_t": (64, False),
    "signed char": (8, True), "unsigned char": (8, False),
    "short": (16, True), "signed short": (16, True), "unsigned short": (16, False),
    "int": (32, True), "signed": (32, True), "unsigned": (32, False),
    "unsigned int": (32, False),
    "long long": (64, True), "signed long long": (64, True),
    "unsigned long long": (64, False),
}


def parse_int_literal(text: str) -> Optional[int]:
    """Parse a C integer or character literal ('0x20U', '010', "'a'")."""
    text = text.strip()
    if len(text) >= 3 and text[0] == "'" and text[-1] == "'":
        body = text[1:-1]
        if len(body) == 1:
            return ord(body)
        return None

    text = _INT_SUFFIX.sub("", text)
    try:
        if text.lower().startswith("0x"):
            return int(text, 16)
        if len(text) > 1 and text.startswith("0"):
            return int(text, 8)
        return int(text, 10)
    except ValueError:
        return None


def _c_div(left: int, right: int) -> int:
    quotient = abs(left) // abs(right)
    return quotient if (left >= 0) == (right >= 0) else -quotient


def _c_mod(left: int, right: int) -> int:
    return left - _c_div(left, right) * right


_BINARY = {
    "+": lambda a, b: a + b,
    "-": lambda a, b: a - b,
    "*": lambda a, b: a * b,
    "/": _c_div,
    "%": _c_mod,
    "<<": lambda a, b: a << b,
    ">>": lambda a, b: a >> b,
    "&": lambda a, b: a & b,
    "|": lambda a, b: a | b,
    "^": lambda a, b: a ^ b,
}


def eval_node(
    node: c_ast.Node,
    names: Optional[Mapping[str, int]] = None,
    sizeof: Optional[Callable[[c_ast.Node], Optional[int]]] = None,
) -> Optional[int]:
    """Evaluate a pycparser expression node.

    Args:
        node: Expression node
        names: Values of identifiers (enumerators) that may appear
        sizeof: Callback computing sizeof(type) for a Typename node

    Returns:
        Integer value, or None if the expression is not constant
    """
    names = names if names is not None else {}
    try:
        return _eval_node(node, names, sizeof)
    except (ZeroDivisionError, ValueError):
        return None


def _eval_node(node, names, sizeof) -> Optional[int]:
    if isinstance(node, c_ast.Constant):
        if node.type in ("int", "char", "unsigned int", "long int",
                         "unsigned long int", "long long int",
                         "unsigned long long int"):
            return parse_int_literal(node.value)
        return None

    if isinstance(node, c_ast.ID):
        return names.get(node.name)

    if isinstance(node, c_ast.Cast):
        value = _eval_node(node.expr, names, sizeof)
        return None if value is None else _truncate(value, node.to_type)

    if isinstance(node, c_ast.UnaryOp):
        if node.op == "sizeof":
            if sizeof is None or not isinstance(node.expr, c_ast.Typename):
                return None
            return sizeof(node.expr.type)
        value = _eval_node(node.expr, names, sizeof)
        if value is None:
            return None
        if node.op == "-":
            return -value
        if node.op == "+":
            return value
        if node.op == "~":
            return ~value
        if node.op == "!":
            return int(not value)
        return None

    if isinstance(node, c_ast.BinaryOp):
        left = _eval_node(node.left, names, sizeof)
        right = _eval_node(node.right, names, sizeof)
        if left is None or right is None:
            return None
        op = _BINARY.get(node.op)
        if op is None:
            return None
        return op(left, right)

    if isinstance(node, c_ast.TernaryOp):
        cond = _eval_node(node.cond, names, sizeof)
        if cond is None:
            return None
        branch = node.iftrue if cond else node.iffalse
        return _eval_node(branch, names, sizeof)

    return None


def eval_text(
    expr: str,
    resolve: Optional[Callable[[str], Optional[int]]] = None,
    typedefs: Iterable[str] = STANDARD_TYPEDEFS,
) -> Optional[int]:
    """Evaluate a macro body as an integer constant expression.

    The body is parsed as the initializer of a declaration, so casts such
    as `((uint32_t)1 << 28)` are accepted when the cast type is a builtin
    or one of the typedef names given.

    Args:
        expr: Macro replacement text
        resolve: Callback returning the value of another macro, or None
        typedefs: Type names that may appear in casts

    Returns:
        Integer value, or None if the body is not an integer expression
    """
    compact = " ".join(expr.split())
    if not compact:
        return None

    identifiers = set(_IDENTIFIER.findall(compact))
    lines = [f"typedef int {name};" for name in sorted(identifiers.intersection(typedefs))]
    lines.append(f"int {_VALUE_NAME} = ({compact});")

    try:
        tree = _parser().parse("\n".join(lines), "<macro>")
    except ParseError:
        return None

    decl = tree.ext[-1] if tree.ext else None
    if not isinstance(decl, c_ast.Decl) or decl.name != _VALUE_NAME or decl.init is None:
        return None
    return eval_node(decl.init, _Resolver(resolve))


class _Resolver(Mapping):
    """Read-only mapping view over a macro lookup callback."""

    def __init__(self, resolve: Optional[Callable[[str], Optional[int]]]):
        self.resolve = resolve

    def __getitem__(self, name: str) -> int:
        value = self.resolve(name) if self.resolve is not None else None
        if value is None:
            raise KeyError(name)
        return value

    def __iter__(self) -> Iterator[str]:
        return iter(())

    def __len__(self) -> int:
        return 0


_PARSER: Optional[CParser] = None


def _parser() -> CParser:
    global _PARSER
    if _PARSER is None:
        _PARSER = CParser()
    return _PARSER


def _truncate(value: int, to_type: c_ast.Node) -> int:
    """Apply an integer cast whose width is the same on every target."""
    type_decl = getattr(to_type, "type", None)
    if not isinstance(type_decl, c_ast.TypeDecl) or not isinstance(type_decl.type, c_ast.IdentifierType):
        return value
    words = type_decl.type.names
    width = _FIXED_WIDTH.get(" ".join(words))
    if width is None:
        width = _FIXED_WIDTH.get(" ".join(w for w in words if w != "int"))
    if width is None:
        return value
    bits, signed = width
    value &= (1 << bits) - 1
    if signed and value >= 1 << (bits - 1):
        value -= 1 << bits
    return value
