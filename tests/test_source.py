import ast
from pathlib import Path

import pytest

from bangdoc.errors import SourceParseError
from bangdoc.parser.source import parse_source, read_source
from bangdoc.parser.tags import EXCLUDED, read_field_tag

SOURCE = '''"""Module doc.

!api 3.1.0
"""
from datetime import datetime
import uuid as u

# free comment
# !server https://a.test


# leading comment for handler
@decorator
def handler():
    """Handler doc."""


class View:
    # method comment
    def get(self):
        pass


# !model "An item"
class Item:
    # !field id:integer "Identifier"
    id: int
    name: str = "x"  # inline note
    created: datetime
    """Creation time"""


# !model
Alias = dict[str, int]
'''


class TestParseSource:
    def test_blocks_in_line_order_with_owners(self):
        source = parse_source(SOURCE)
        owners = [(b.owner, b.text.splitlines()[0]) for b in source.blocks]
        assert owners == [
            ("module", "Module doc."),
            ("comment", "free comment"),
            ("routine", "leading comment for handler"),
            ("routine", "Handler doc."),
            ("routine", "method comment"),
            ("record", '!model "An item"'),
            ("field", '!field id:integer "Identifier"'),
            ("record", "!model"),
        ]

    def test_routines_include_methods(self):
        source = parse_source(SOURCE)
        assert [r.name for r in source.routines] == ["handler", "get"]
        assert source.routines[0].doc == "leading comment for handler\nHandler doc."
        assert source.routines[1].doc == "method comment"

    def test_records(self):
        source = parse_source(SOURCE)
        assert [(r.name, r.is_struct) for r in source.records] == [("View", True), ("Item", True), ("Alias", False)]

    def test_fields(self):
        item = parse_source(SOURCE).records[1]
        assert [f.name for f in item.fields] == ["id", "name", "created"]
        id_field, name_field, created = item.fields
        assert id_field.annotation == "int"
        assert id_field.doc == '!field id:integer "Identifier"'
        assert name_field.comment == "inline note"
        assert name_field.tag.omit_empty is True
        assert created.doc == "Creation time"
        assert created.tag.omit_empty is False

    def test_imports(self):
        imports = parse_source(SOURCE).imports
        assert imports["datetime"] == "datetime.datetime"
        assert imports["u"] == "uuid"

    def test_enum_is_not_a_struct(self):
        source = parse_source("from enum import Enum\n\nclass Color(Enum):\n    RED = 1\n")
        assert source.records[0].is_struct is False
        assert source.records[0].fields == []

    def test_syntax_error(self):
        with pytest.raises(SourceParseError) as exc:
            parse_source("def broken(:\n", "broken.py")
        assert exc.value.path == Path("broken.py")

    def test_null_byte(self):
        with pytest.raises(SourceParseError):
            parse_source("x = 1\0\n", "nul.py")

    def test_read_source_missing_file(self, tmp_path):
        with pytest.raises(SourceParseError):
            read_source(tmp_path / "missing.py")


def _tag(name: str, default: str | None):
    value = ast.parse(default, mode="eval").body if default else None
    return read_field_tag(name, value)


class TestFieldTags:
    def test_no_default_is_required(self):
        tag = _tag("id", None)
        assert (tag.alias, tag.omit_empty) == ("", False)

    def test_plain_default_can_be_omitted(self):
        assert _tag("name", "None").omit_empty is True

    def test_pydantic_alias(self):
        tag = _tag("owner_id", 'Field(..., alias="ownerId")')
        assert (tag.alias, tag.omit_empty) == ("ownerId", False)

    def test_ellipsis_default_is_required(self):
        assert _tag("x", "Field(default=...)").omit_empty is False
        assert _tag("x", "Field(default=..., alias=\"y\")").alias == "y"

    def test_serialization_alias_wins(self):
        tag = _tag("x", 'Field(alias="a", serialization_alias="b")')
        assert tag.alias == "b"

    def test_field_default(self):
        assert _tag("x", "Field(default=1)").omit_empty is True
        assert _tag("x", "Field(1)").omit_empty is True
        assert _tag("x", "dataclasses.field(default_factory=list)").omit_empty is True

    def test_excluded(self):
        assert _tag("x", "Field(exclude=True)").alias == EXCLUDED
        assert _tag("_private", None).excluded is True
