"""Serialization hints for class attributes.

A model attribute's wire name and optionality come from its default
value: pydantic ``Field(...)``, dataclass ``field(...)`` and attrs
``field()``/``attr.ib()`` keywords, or a plain default.
"""

import ast

from pydantic import BaseModel

EXCLUDED = "-"

_FIELD_FACTORIES = {"Field", "field", "ib", "attrib"}
_ALIAS_KEYWORDS = ("serialization_alias", "alias")
_DEFAULT_KEYWORDS = {"default", "default_factory", "factory"}


class FieldTag(BaseModel):
    """Serialization name (``-`` when excluded) and omit-when-empty flag."""

    alias: str = ""
    omit_empty: bool = False

    @property
    def excluded(self) -> bool:
        return self.alias == EXCLUDED


def read_field_tag(name: str, value: ast.expr | None) -> FieldTag:
    if name.startswith("_"):
        return FieldTag(alias=EXCLUDED)
    if value is None:
        return FieldTag()
    if not _is_field_factory(value):
        return FieldTag(omit_empty=True)

    keywords = {kw.arg: kw.value for kw in value.keywords if kw.arg}
    if _is_true(keywords.get("exclude")):
        return FieldTag(alias=EXCLUDED)

    alias = ""
    for key in _ALIAS_KEYWORDS:
        node = keywords.get(key)
        if isinstance(node, ast.Constant) and isinstance(node.value, str):
            alias = node.value
            break

    has_default = any(not _is_ellipsis(keywords[key]) for key in _DEFAULT_KEYWORDS & keywords.keys())
    # pydantic takes the default positionally too; ``...`` in either place means required.
    if value.args and not _is_ellipsis(value.args[0]):
        has_default = True
    return FieldTag(alias=alias, omit_empty=has_default)


def _is_field_factory(node: ast.expr) -> bool:
    if not isinstance(node, ast.Call):
        return False
    func = node.func
    if isinstance(func, ast.Name):
        return func.id in _FIELD_FACTORIES
    if isinstance(func, ast.Attribute):
        return func.attr in _FIELD_FACTORIES
    return False


def _is_ellipsis(node: ast.expr) -> bool:
    return isinstance(node, ast.Constant) and node.value is Ellipsis


def _is_true(node: ast.expr | None) -> bool:
    return isinstance(node, ast.Constant) and node.value is True
