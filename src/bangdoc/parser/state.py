"""Run-scoped accumulator for everything the walker discovers.

One ``SpecState`` is created per run, mutated by every file visit and read
once by the assembler.
"""

from typing import Any

from pydantic import BaseModel

from bangdoc.openapi.document import (
    ExternalDocs,
    Info,
    Parameter,
    RequestBody,
    Response,
    Schema,
    SecurityScheme,
    Server,
    Tag,
)


class LinkData(BaseModel):
    label: str
    url: str


class OperationRecord(BaseModel):
    """One discovered route."""

    method: str = ""
    path: str = ""
    operation_id: str = ""
    summary: str = ""
    description: str = ""
    tags: list[str] = []
    deprecated: bool = False
    parameters: list[Parameter] = []
    request_body: RequestBody | None = None
    responses: dict[str, Response] = {}
    security: list[dict[str, list[str]]] = []

    @property
    def is_complete(self) -> bool:
        return bool(self.method and self.path)


class SchemaRecord(BaseModel):
    """A named data shape plus its example values."""

    name: str
    description: str = ""
    schema_: Schema
    examples: dict[str, Any] = {}


class SpecState(BaseModel):
    version: str = "3.0.3"
    info: Info = Info()
    servers: list[Server] = []
    tags: list[Tag] = []
    operations: list[OperationRecord] = []
    schemas: dict[str, SchemaRecord] = {}
    global_schemas: dict[str, SchemaRecord] = {}
    security_schemes: dict[str, SecurityScheme] = {}
    external_docs: ExternalDocs | None = None
    links: list[LinkData] = []
