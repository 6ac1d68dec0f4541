"""Encode an assembled document as JSON or YAML."""

import json
from typing import Any, Literal

import yaml

from bangdoc.openapi.document import Document

OutputFormat = Literal["json", "yaml"]


def to_dict(doc: Document) -> dict[str, Any]:
    """Plain-data view of the document using OpenAPI field names."""
    return doc.model_dump(mode="json", by_alias=True, exclude_none=True)


def render(doc: Document, fmt: OutputFormat = "yaml", indent: int = 2) -> str:
    """Serialize the document."""
    data = to_dict(doc)
    if fmt == "json":
        return json.dumps(data, indent=indent or None, ensure_ascii=False) + "\n"
    if fmt == "yaml":
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True, indent=max(indent, 2))
    raise ValueError(f"unsupported output format: {fmt}")
