"""Python source files as declaration lists.

``parse_source`` reads one module with ``ast`` and ``tokenize`` and
returns its documentation blocks, routines (functions and methods) and
record candidates (top-level classes and aliases), each with the comment
block written directly above it and its docstring.
"""

import ast
import io
import tokenize
from pathlib import Path
from typing import Literal

from pydantic import BaseModel

from bangdoc.errors import SourceParseError
from bangdoc.parser.tags import FieldTag, read_field_tag

BlockOwner = Literal["module", "comment", "routine", "record", "field"]

_ENUM_BASES = {"Enum", "IntEnum", "StrEnum", "Flag", "IntFlag"}


class DocBlock(BaseModel):
    """A docstring or a run of consecutive ``#`` comment lines."""

    text: str
    lineno: int
    owner: BlockOwner = "comment"


class FieldDecl(BaseModel):
    name: str
    annotation: str
    tag: FieldTag = FieldTag()
    doc: str | None = None
    comment: str | None = None
    lineno: int = 0


class RoutineDecl(BaseModel):
    name: str
    lineno: int
    doc: str | None = None


class RecordDecl(BaseModel):
    name: str
    lineno: int
    doc: str | None = None
    is_struct: bool = True
    fields: list[FieldDecl] = []


class SourceFile(BaseModel):
    path: str
    blocks: list[DocBlock] = []
    routines: list[RoutineDecl] = []
    records: list[RecordDecl] = []
    imports: dict[str, str] = {}


def read_source(path: Path) -> SourceFile:
    """Read and parse a Python file."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SourceParseError(path, str(e)) from e
    return parse_source(text, str(path))


def parse_source(text: str, path: str = "<string>") -> SourceFile:
    """Parse Python source text into a SourceFile."""
    try:
        module = ast.parse(text, filename=path)
        comments, inline = _scan_comments(text)
    except (SyntaxError, ValueError, tokenize.TokenError) as e:
        raise SourceParseError(path, str(e)) from e
    return _SourceBuilder(path, comments, inline).build(module)


def _scan_comments(text: str) -> tuple[list[DocBlock], dict[int, str]]:
    """Group full-line comments into blocks; collect trailing comments by line."""
    blocks: list[DocBlock] = []
    inline: dict[int, str] = {}
    current: list[str] = []
    start = last = 0

    for tok in tokenize.generate_tokens(io.StringIO(text).readline):
        if tok.type != tokenize.COMMENT:
            continue
        line, col = tok.start
        body = _strip_comment(tok.string)
        if tok.line[:col].strip():
            inline[line] = body
            continue
        if current and line == last + 1:
            current.append(body)
        else:
            if current:
                blocks.append(DocBlock(text="\n".join(current), lineno=start))
            current, start = [body], line
        last = line

    if current:
        blocks.append(DocBlock(text="\n".join(current), lineno=start))
    return blocks, inline


def _strip_comment(comment: str) -> str:
    body = comment[1:]
    return body[1:] if body.startswith(" ") else body


def _block_end(block: DocBlock) -> int:
    return block.lineno + block.text.count("\n")


def _first_line(node: ast.AST) -> int:
    decorators = getattr(node, "decorator_list", [])
    return min([d.lineno for d in decorators] + [node.lineno])


def _base_name(node: ast.expr) -> str:
    if isinstance(node, ast.Attribute):
        return node.attr
    if isinstance(node, ast.Name):
        return node.id
    return ""


class _SourceBuilder:
    def __init__(self, path: str, comments: list[DocBlock], inline: dict[int, str]):
        self.path = path
        self.comments = comments
        self.inline = inline
        self.by_end = {_block_end(b): b for b in comments}
        self.docstrings: list[DocBlock] = []
        self.routines: list[RoutineDecl] = []
        self.records: list[RecordDecl] = []
        self.imports: dict[str, str] = {}

    def build(self, module: ast.Module) -> SourceFile:
        docstring = ast.get_docstring(module)
        if docstring:
            self.docstrings.append(DocBlock(text=docstring, lineno=module.body[0].lineno, owner="module"))

        for node in module.body:
            if isinstance(node, (ast.Import, ast.ImportFrom)):
                self._record_import(node)
            elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                self._add_routine(node)
            elif isinstance(node, ast.ClassDef):
                self._add_record(node)
                self._walk_class_body(node)
            elif isinstance(node, (ast.Assign, ast.AnnAssign)) or _is_type_alias(node):
                self._add_alias(node)

        blocks = sorted(self.comments + self.docstrings, key=lambda b: b.lineno)
        return SourceFile(
            path=self.path,
            blocks=blocks,
            routines=sorted(self.routines, key=lambda r: r.lineno),
            records=sorted(self.records, key=lambda r: r.lineno),
            imports=self.imports,
        )

    def _record_import(self, node: ast.Import | ast.ImportFrom) -> None:
        if isinstance(node, ast.Import):
            for alias in node.names:
                local = alias.asname or alias.name.split(".")[0]
                self.imports[local] = alias.name if alias.asname else local
            return
        module = "." * node.level + (node.module or "")
        for alias in node.names:
            self.imports[alias.asname or alias.name] = f"{module}.{alias.name}" if module else alias.name

    def _leading_comment(self, node: ast.AST, owner: BlockOwner) -> str | None:
        block = self.by_end.get(_first_line(node) - 1)
        if block is None:
            return None
        block.owner = owner
        return block.text

    def _docstring(self, node: ast.AsyncFunctionDef | ast.FunctionDef | ast.ClassDef, owner: BlockOwner) -> str | None:
        docstring = ast.get_docstring(node)
        if docstring:
            self.docstrings.append(DocBlock(text=docstring, lineno=node.body[0].lineno, owner=owner))
        return docstring

    def _doc(self, node: ast.AsyncFunctionDef | ast.FunctionDef | ast.ClassDef, owner: BlockOwner) -> str | None:
        parts = [self._leading_comment(node, owner), self._docstring(node, owner)]
        joined = "\n".join(p for p in parts if p)
        return joined or None

    def _add_routine(self, node: ast.FunctionDef | ast.AsyncFunctionDef) -> None:
        self.routines.append(RoutineDecl(name=node.name, lineno=_first_line(node), doc=self._doc(node, "routine")))

    def _walk_class_body(self, node: ast.ClassDef) -> None:
        for child in node.body:
            if isinstance(child, (ast.FunctionDef, ast.AsyncFunctionDef)):
                self._add_routine(child)
            elif isinstance(child, ast.ClassDef):
                self._docstring(child, "record")
                self._walk_class_body(child)

    def _add_record(self, node: ast.ClassDef) -> None:
        is_enum = any(_base_name(b) in _ENUM_BASES for b in node.bases)
        self.records.append(
            RecordDecl(
                name=node.name,
                lineno=_first_line(node),
                doc=self._doc(node, "record"),
                is_struct=not is_enum,
                fields=[] if is_enum else self._fields(node),
            )
        )

    def _add_alias(self, node: ast.stmt) -> None:
        doc = self._leading_comment(node, "record")
        if doc is None:
            return
        target = getattr(node, "name", None)
        if target is None:
            targets = node.targets if isinstance(node, ast.Assign) else [node.target]
            target = targets[0] if len(targets) == 1 else None
        if isinstance(target, ast.Name):
            self.records.append(RecordDecl(name=target.id, lineno=node.lineno, doc=doc, is_struct=False))

    def _fields(self, node: ast.ClassDef) -> list[FieldDecl]:
        fields = []
        body = node.body
        for index, stmt in enumerate(body):
            if not isinstance(stmt, ast.AnnAssign) or not isinstance(stmt.target, ast.Name):
                continue
            if _base_name(_unsubscript(stmt.annotation)) == "ClassVar":
                continue
            name = stmt.target.id
            fields.append(
                FieldDecl(
                    name=name,
                    annotation=ast.unparse(stmt.annotation),
                    tag=read_field_tag(name, stmt.value),
                    doc=self._field_doc(stmt, body[index + 1] if index + 1 < len(body) else None, node),
                    comment=self.inline.get(stmt.end_lineno or stmt.lineno) or self.inline.get(stmt.lineno),
                    lineno=stmt.lineno,
                )
            )
        return fields

    def _field_doc(self, stmt: ast.AnnAssign, following: ast.stmt | None, owner: ast.ClassDef) -> str | None:
        parts = []
        block = self.by_end.get(stmt.lineno - 1)
        if block is not None and block.lineno > owner.lineno:
            block.owner = "field"
            parts.append(block.text)
        # Attribute docstring: a bare string right after the assignment.
        if (
            isinstance(following, ast.Expr)
            and isinstance(following.value, ast.Constant)
            and isinstance(following.value.value, str)
        ):
            parts.append(following.value.value.strip())
        return "\n".join(parts) or None


def _unsubscript(node: ast.expr) -> ast.expr:
    return node.value if isinstance(node, ast.Subscript) else node


def _is_type_alias(node: ast.stmt) -> bool:
    type_alias = getattr(ast, "TypeAlias", None)
    return type_alias is not None and isinstance(node, type_alias)
