"""Resolve declared type expressions into schema nodes.

Expressions are Python annotation source (``list[User]``,
``Optional[int]``, ``datetime.datetime``) or the short annotation
vocabulary (``integer``, ``string[]``). Anything that cannot be resolved
becomes an empty schema instead of an error.
"""

import ast
from collections.abc import Mapping

from bangdoc.openapi.document import Schema

PRIMITIVE_TYPES: dict[str, tuple[str, str | None]] = {
    "str": ("string", None),
    "string": ("string", None),
    "int": ("integer", "int64"),
    "int64": ("integer", "int64"),
    "uint64": ("integer", "int64"),
    "integer": ("integer", "int32"),
    "int8": ("integer", "int32"),
    "int16": ("integer", "int32"),
    "int32": ("integer", "int32"),
    "uint": ("integer", "int32"),
    "uint8": ("integer", "int32"),
    "uint16": ("integer", "int32"),
    "uint32": ("integer", "int32"),
    "float": ("number", "double"),
    "float64": ("number", "double"),
    "double": ("number", "double"),
    "number": ("number", "double"),
    "float32": ("number", "float"),
    "bool": ("boolean", None),
    "boolean": ("boolean", None),
    "bytes": ("string", "byte"),
    "byte": ("string", "byte"),
    "Any": ("object", None),
    "any": ("object", None),
    "object": ("object", None),
    "dict": ("object", None),
    "list": ("array", None),
    "array": ("array", None),
}

DOTTED_TYPES: dict[str, tuple[str, str]] = {
    "datetime.datetime": ("string", "date-time"),
    "datetime.date": ("string", "date"),
    "uuid.UUID": ("string", "uuid"),
}

_SEQUENCE_TYPES = {
    "list", "List", "Sequence", "MutableSequence", "Iterable", "Collection",
    "set", "Set", "frozenset", "FrozenSet", "AbstractSet", "tuple", "Tuple",
}
_MAPPING_TYPES = {"dict", "Dict", "Mapping", "MutableMapping", "OrderedDict", "DefaultDict", "defaultdict"}
_GENERIC_MODULES = ("typing.", "typing_extensions.", "collections.abc.", "collections.")


def resolve_type(expression: str, aliases: Mapping[str, str] | None = None) -> Schema:
    """Resolve a type expression; ``aliases`` maps local names to import paths."""
    expression = expression.strip()
    if not expression:
        return Schema()

    # Annotation shorthand for arrays: ``string[]`` / ``[]User``.
    if expression.endswith("[]"):
        return _array(resolve_type(expression[:-2], aliases))
    if expression.startswith("[]"):
        return _array(resolve_type(expression[2:], aliases))

    try:
        node = ast.parse(expression, mode="eval").body
    except SyntaxError:
        return Schema()
    return _TypeResolver(aliases or {}).resolve(node)


def resolve_schema_ref(token: str, aliases: Mapping[str, str] | None = None) -> Schema:
    """Resolve a body/response schema token.

    ``[]Name`` and ``Name[]`` always mean an array of the named schema, even
    when the name collides with a primitive. Any other token the type
    resolver cannot place (``User-Response``, ``api.CreateRequest``) is taken
    as a schema name.
    """
    token = token.strip()
    if token.startswith("[]") and len(token) > 2:
        return Schema.array_of(Schema.ref_to(token[2:]))
    if token.endswith("[]") and len(token) > 2:
        return Schema.array_of(Schema.ref_to(token[:-2]))
    schema = resolve_type(token, aliases)
    if schema.is_empty and token:
        return Schema.ref_to(token)
    return schema


def _array(items: Schema) -> Schema:
    return Schema.array_of(None if items.is_empty else items)


def _nullable(schema: Schema) -> Schema:
    # Reference nodes only ever carry $ref (and a description override).
    if schema.is_ref or schema.is_empty:
        return schema
    schema.nullable = True
    return schema


class _TypeResolver:
    def __init__(self, aliases: Mapping[str, str]):
        self.aliases = aliases

    def resolve(self, node: ast.expr) -> Schema:
        if isinstance(node, ast.Constant):
            if isinstance(node.value, str):
                return resolve_type(node.value, self.aliases)
            return Schema()
        if isinstance(node, ast.Name):
            return self._resolve_name(node.id)
        if isinstance(node, ast.Attribute):
            return self._resolve_dotted(node)
        if isinstance(node, ast.Subscript):
            return self._resolve_generic(node)
        if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
            return self._resolve_union(_flatten_union(node))
        return Schema()

    def _qualify(self, dotted: str) -> str:
        root, _, rest = dotted.partition(".")
        qualified = self.aliases.get(root, root)
        return f"{qualified}.{rest}" if rest else qualified

    def _resolve_name(self, name: str) -> Schema:
        qualified = self._qualify(name)
        dotted = DOTTED_TYPES.get(qualified)
        if dotted:
            return Schema(type=dotted[0], format=dotted[1])
        primitive = PRIMITIVE_TYPES.get(name)
        if primitive:
            return Schema(type=primitive[0], format=primitive[1])
        # ``from models import User as U`` still refers to the User schema.
        return Schema.ref_to(qualified.rsplit(".", 1)[-1])

    def _resolve_dotted(self, node: ast.Attribute) -> Schema:
        dotted = _dotted_name(node)
        if dotted is None:
            return Schema()
        qualified = self._qualify(dotted)
        known = DOTTED_TYPES.get(qualified)
        if known:
            return Schema(type=known[0], format=known[1])
        bare = _strip_generic_module(qualified)
        if bare != qualified and "." not in bare:
            return self._resolve_name(bare)
        return Schema()

    def _generic_name(self, node: ast.expr) -> str | None:
        if isinstance(node, ast.Name):
            return _strip_generic_module(self._qualify(node.id))
        if isinstance(node, ast.Attribute):
            dotted = _dotted_name(node)
            return _strip_generic_module(self._qualify(dotted)) if dotted else None
        return None

    def _resolve_generic(self, node: ast.Subscript) -> Schema:
        name = self._generic_name(node.value)
        args = list(node.slice.elts) if isinstance(node.slice, ast.Tuple) else [node.slice]
        if not args:
            return Schema()

        if name == "Optional":
            return _nullable(self.resolve(args[0]))
        if name == "Union":
            return self._resolve_union(args)
        if name == "Annotated":
            return self.resolve(args[0])
        if name == "Literal":
            return _literal(args)
        if name in _SEQUENCE_TYPES:
            if name in ("tuple", "Tuple") and not _is_homogeneous_tuple(args):
                return Schema.array_of(None)
            return _array(self.resolve(args[0]))
        if name in _MAPPING_TYPES:
            schema = Schema(type="object")
            if len(args) == 2:
                value = self.resolve(args[1])
                schema.additional_properties = None if value.is_empty else value
            return schema
        return Schema()

    def _resolve_union(self, members: list[ast.expr]) -> Schema:
        non_null = [m for m in members if not _is_none(m)]
        if len(non_null) != 1:
            return Schema()
        schema = self.resolve(non_null[0])
        return _nullable(schema) if len(non_null) < len(members) else schema


def _dotted_name(node: ast.expr) -> str | None:
    parts = []
    while isinstance(node, ast.Attribute):
        parts.append(node.attr)
        node = node.value
    if not isinstance(node, ast.Name):
        return None
    parts.append(node.id)
    return ".".join(reversed(parts))


def _strip_generic_module(name: str) -> str:
    for prefix in _GENERIC_MODULES:
        if name.startswith(prefix):
            return name[len(prefix):]
    return name


def _flatten_union(node: ast.expr) -> list[ast.expr]:
    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        return _flatten_union(node.left) + _flatten_union(node.right)
    return [node]


def _is_none(node: ast.expr) -> bool:
    return (isinstance(node, ast.Constant) and node.value is None) or (
        isinstance(node, ast.Name) and node.id == "None"
    )


def _is_homogeneous_tuple(args: list[ast.expr]) -> bool:
    return len(args) == 2 and isinstance(args[1], ast.Constant) and args[1].value is Ellipsis


def _literal(args: list[ast.expr]) -> Schema:
    if not all(isinstance(a, ast.Constant) for a in args):
        return Schema()
    values = [a.value for a in args]
    schema = Schema(enum=values)
    if all(isinstance(v, bool) for v in values):
        schema.type = "boolean"
    elif all(isinstance(v, str) for v in values):
        schema.type = "string"
    elif all(isinstance(v, int) and not isinstance(v, bool) for v in values):
        schema.type = "integer"
    return schema
