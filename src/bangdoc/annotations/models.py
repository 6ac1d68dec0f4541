"""Typed annotation records.

Each recognised ``!verb`` line becomes exactly one of these frozen models.
``kind`` is the discriminant; handlers dispatch on it.
"""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class AnnotationKind(str, Enum):
    API = "api"
    INFO = "info"
    CONTACT = "contact"
    LICENSE = "license"
    TOS = "tos"
    SERVER = "server"
    TAG = "tag"
    EXTERNAL_DOCS = "externaldocs"
    LINK = "link"
    SECURITY = "security"
    SCOPE = "scope"
    ROUTE = "route"
    QUERY = "query"
    PATH = "path"
    HEADER = "header"
    COOKIE = "cookie"
    BODY = "body"
    OK = "ok"
    ERROR = "error"
    SECURE = "secure"
    MODEL = "model"
    FIELD = "field"


class _Annotation(BaseModel):
    model_config = ConfigDict(frozen=True)


class ApiAnnotation(_Annotation):
    kind: Literal[AnnotationKind.API] = AnnotationKind.API
    version: str


class InfoAnnotation(_Annotation):
    kind: Literal[AnnotationKind.INFO] = AnnotationKind.INFO
    title: str
    version: str = ""
    description: str = ""


class ContactAnnotation(_Annotation):
    kind: Literal[AnnotationKind.CONTACT] = AnnotationKind.CONTACT
    name: str = ""
    email: str = ""
    url: str = ""


class LicenseAnnotation(_Annotation):
    kind: Literal[AnnotationKind.LICENSE] = AnnotationKind.LICENSE
    name: str
    url: str = ""


class TosAnnotation(_Annotation):
    kind: Literal[AnnotationKind.TOS] = AnnotationKind.TOS
    url: str


class ServerAnnotation(_Annotation):
    kind: Literal[AnnotationKind.SERVER] = AnnotationKind.SERVER
    url: str
    description: str = ""


class TagAnnotation(_Annotation):
    kind: Literal[AnnotationKind.TAG] = AnnotationKind.TAG
    name: str
    description: str = ""


class ExternalDocsAnnotation(_Annotation):
    kind: Literal[AnnotationKind.EXTERNAL_DOCS] = AnnotationKind.EXTERNAL_DOCS
    url: str
    description: str = ""


class LinkAnnotation(_Annotation):
    kind: Literal[AnnotationKind.LINK] = AnnotationKind.LINK
    label: str
    url: str


class SecurityAnnotation(_Annotation):
    """``!security <name> <type> [location] [url] ["description"]``.

    ``location`` is the apiKey location (header/query/cookie), the http
    scheme (bearer/basic) or the OAuth2 flow name. ``url`` is the OAuth2
    endpoint, the OpenID Connect discovery URL, or the apiKey parameter name.
    """

    kind: Literal[AnnotationKind.SECURITY] = AnnotationKind.SECURITY
    name: str
    type: Literal["apiKey", "oauth2", "http", "openIdConnect"]
    location: str = ""
    url: str = ""
    description: str = ""
    bearer_format: str = ""


class ScopeAnnotation(_Annotation):
    kind: Literal[AnnotationKind.SCOPE] = AnnotationKind.SCOPE
    security: str
    name: str
    description: str = ""


class RouteAnnotation(_Annotation):
    kind: Literal[AnnotationKind.ROUTE] = AnnotationKind.ROUTE
    method: str
    path: str
    operation_id: str = ""
    summary: str = ""
    tags: tuple[str, ...] = ()
    deprecated: bool = False


class ParamAnnotation(_Annotation):
    kind: Literal[AnnotationKind.QUERY, AnnotationKind.PATH, AnnotationKind.HEADER, AnnotationKind.COOKIE]
    name: str
    type: str = "string"
    description: str = ""
    required: bool = False
    default: str = ""

    @property
    def location(self) -> str:
        return self.kind.value


class BodyAnnotation(_Annotation):
    kind: Literal[AnnotationKind.BODY] = AnnotationKind.BODY
    schema_ref: str
    description: str = ""
    required: bool = False


class ResponseAnnotation(_Annotation):
    kind: Literal[AnnotationKind.OK, AnnotationKind.ERROR]
    status: str
    schema_ref: str = ""
    description: str = ""


class SecureAnnotation(_Annotation):
    kind: Literal[AnnotationKind.SECURE] = AnnotationKind.SECURE
    names: tuple[str, ...]


class ModelAnnotation(_Annotation):
    kind: Literal[AnnotationKind.MODEL] = AnnotationKind.MODEL
    name: str = ""
    description: str = ""


class FieldAnnotation(_Annotation):
    kind: Literal[AnnotationKind.FIELD] = AnnotationKind.FIELD
    name: str
    type: str = ""
    description: str = ""
    required: bool = False
    example: str = ""
    enum: tuple[str, ...] = ()


Annotation = Annotated[
    Union[
        ApiAnnotation,
        InfoAnnotation,
        ContactAnnotation,
        LicenseAnnotation,
        TosAnnotation,
        ServerAnnotation,
        TagAnnotation,
        ExternalDocsAnnotation,
        LinkAnnotation,
        SecurityAnnotation,
        ScopeAnnotation,
        RouteAnnotation,
        ParamAnnotation,
        BodyAnnotation,
        ResponseAnnotation,
        SecureAnnotation,
        ModelAnnotation,
        FieldAnnotation,
    ],
    Field(discriminator="kind"),
]
