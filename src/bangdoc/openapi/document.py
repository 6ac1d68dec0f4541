"""OpenAPI document models.

The assembler builds these; the output encoder dumps them with
``by_alias=True`` so field names match the OpenAPI wire format.
"""

from typing import Any

from pydantic import BaseModel, Field

SCHEMA_REF_PREFIX = "#/components/schemas/"


class Schema(BaseModel):
    """A (recursive) schema node attached to a field, parameter or body."""

    ref: str | None = Field(default=None, serialization_alias="$ref")
    type: str | None = None
    format: str | None = None
    description: str | None = None
    nullable: bool | None = None
    items: "Schema | None" = None
    additional_properties: "Schema | None" = Field(default=None, serialization_alias="additionalProperties")
    properties: "dict[str, Schema] | None" = None
    required: list[str] | None = None
    example: Any = None
    enum: list[Any] | None = None

    @classmethod
    def ref_to(cls, name: str) -> "Schema":
        return cls(ref=SCHEMA_REF_PREFIX + name)

    @classmethod
    def array_of(cls, items: "Schema | None") -> "Schema":
        return cls(type="array", items=items)

    @property
    def is_ref(self) -> bool:
        return self.ref is not None

    @property
    def is_empty(self) -> bool:
        return self.model_dump(exclude_none=True) == {}

    def add_required(self, name: str) -> None:
        if self.required is None:
            self.required = []
        if name not in self.required:
            self.required.append(name)


class Contact(BaseModel):
    name: str | None = None
    email: str | None = None
    url: str | None = None


class License(BaseModel):
    name: str
    url: str | None = None


class Info(BaseModel):
    title: str = ""
    version: str = ""
    description: str | None = None
    terms_of_service: str | None = Field(default=None, serialization_alias="termsOfService")
    contact: Contact | None = None
    license: License | None = None


class Server(BaseModel):
    url: str
    description: str | None = None


class Tag(BaseModel):
    name: str
    description: str | None = None


class ExternalDocs(BaseModel):
    url: str
    description: str | None = None


class OAuthFlow(BaseModel):
    authorization_url: str | None = Field(default=None, serialization_alias="authorizationUrl")
    token_url: str | None = Field(default=None, serialization_alias="tokenUrl")
    refresh_url: str | None = Field(default=None, serialization_alias="refreshUrl")
    scopes: dict[str, str]


class OAuthFlows(BaseModel):
    implicit: OAuthFlow | None = None
    password: OAuthFlow | None = None
    client_credentials: OAuthFlow | None = Field(default=None, serialization_alias="clientCredentials")
    authorization_code: OAuthFlow | None = Field(default=None, serialization_alias="authorizationCode")

    def present(self) -> list[OAuthFlow]:
        """Return the flows that are set, in declaration order."""
        flows = (self.implicit, self.password, self.client_credentials, self.authorization_code)
        return [f for f in flows if f is not None]


class SecurityScheme(BaseModel):
    type: str
    description: str | None = None
    name: str | None = None
    in_: str | None = Field(default=None, serialization_alias="in")
    scheme: str | None = None
    bearer_format: str | None = Field(default=None, serialization_alias="bearerFormat")
    flows: OAuthFlows | None = None
    open_id_connect_url: str | None = Field(default=None, serialization_alias="openIdConnectUrl")


class Parameter(BaseModel):
    name: str
    in_: str = Field(serialization_alias="in")
    description: str | None = None
    required: bool | None = None
    schema_: Schema | None = Field(default=None, serialization_alias="schema")
    example: Any = None


class MediaType(BaseModel):
    schema_: Schema | None = Field(default=None, serialization_alias="schema")


class RequestBody(BaseModel):
    description: str | None = None
    required: bool | None = None
    content: dict[str, MediaType]


class Response(BaseModel):
    description: str
    content: dict[str, MediaType] | None = None


class Operation(BaseModel):
    operation_id: str | None = Field(default=None, serialization_alias="operationId")
    summary: str | None = None
    description: str | None = None
    tags: list[str] | None = None
    deprecated: bool | None = None
    parameters: list[Parameter] | None = None
    request_body: RequestBody | None = Field(default=None, serialization_alias="requestBody")
    responses: dict[str, Response]
    security: list[dict[str, list[str]]] | None = None


class PathItem(BaseModel):
    get: Operation | None = None
    put: Operation | None = None
    post: Operation | None = None
    delete: Operation | None = None
    options: Operation | None = None
    head: Operation | None = None
    patch: Operation | None = None
    trace: Operation | None = None


HTTP_METHODS = ("GET", "PUT", "POST", "DELETE", "OPTIONS", "HEAD", "PATCH", "TRACE")


class Components(BaseModel):
    schemas: dict[str, Schema] | None = None
    security_schemes: dict[str, SecurityScheme] | None = Field(default=None, serialization_alias="securitySchemes")


class Document(BaseModel):
    """A complete OpenAPI document."""

    openapi: str
    info: Info
    servers: list[Server] | None = None
    tags: list[Tag] | None = None
    paths: dict[str, PathItem]
    components: Components | None = None
    external_docs: ExternalDocs | None = Field(default=None, serialization_alias="externalDocs")
