"""Declaration walker.

Feeds each declaration of a ``SourceFile`` through the annotation parser
and the type resolver, folding the results into a shared ``SpecState``.
"""

import json
from collections.abc import Callable, Mapping
from http import HTTPStatus
from typing import Any

from bangdoc.annotations.models import (
    Annotation,
    AnnotationKind,
    BodyAnnotation,
    FieldAnnotation,
    ModelAnnotation,
    ParamAnnotation,
    ResponseAnnotation,
    SecurityAnnotation,
)
from bangdoc.annotations.parser import clean_description, parse_annotations
from bangdoc.logging import get_logger
from bangdoc.openapi.document import (
    Contact,
    ExternalDocs,
    License,
    MediaType,
    OAuthFlow,
    OAuthFlows,
    Parameter,
    RequestBody,
    Response,
    Schema,
    SecurityScheme,
    Server,
    Tag,
)
from bangdoc.parser.source import DocBlock, FieldDecl, RecordDecl, RoutineDecl, SourceFile
from bangdoc.parser.state import LinkData, OperationRecord, SchemaRecord, SpecState
from bangdoc.parser.types import resolve_schema_ref, resolve_type

logger = get_logger(__name__)

JSON_MEDIA_TYPE = "application/json"
NO_BODY_SCHEMAS = {"", "-", "nil", "none", "null"}
FREE_BLOCK_OWNERS = {"module", "comment"}


def parse_value(value: str) -> Any:
    """Interpret an example/default token as JSON, falling back to the raw string."""
    try:
        return json.loads(value)
    except ValueError:
        return value


class DeclarationWalker:
    """Walks source files, accumulating into one SpecState."""

    def __init__(self, state: SpecState):
        self.state = state
        self._api_handlers: dict[AnnotationKind, Callable[[Any], None]] = {
            AnnotationKind.API: self._handle_api,
            AnnotationKind.INFO: self._handle_info,
            AnnotationKind.CONTACT: self._handle_contact,
            AnnotationKind.LICENSE: self._handle_license,
            AnnotationKind.TOS: self._handle_tos,
            AnnotationKind.SERVER: self._handle_server,
            AnnotationKind.TAG: self._handle_tag,
            AnnotationKind.EXTERNAL_DOCS: self._handle_external_docs,
            AnnotationKind.LINK: self._handle_link,
            AnnotationKind.SECURITY: self._handle_security,
            AnnotationKind.SCOPE: self._handle_scope,
        }
        self._operation_handlers: dict[AnnotationKind, Callable[[OperationRecord, Any, Mapping[str, str]], None]] = {
            AnnotationKind.ROUTE: _apply_route,
            AnnotationKind.QUERY: _apply_param,
            AnnotationKind.PATH: _apply_param,
            AnnotationKind.HEADER: _apply_param,
            AnnotationKind.COOKIE: _apply_param,
            AnnotationKind.BODY: _apply_body,
            AnnotationKind.OK: _apply_response,
            AnnotationKind.ERROR: _apply_response,
            AnnotationKind.SECURE: _apply_secure,
        }

    def visit(self, source: SourceFile) -> None:
        """Visit doc blocks, then routines, then records, each in source order."""
        log = logger.bind(path=source.path)
        for block in source.blocks:
            self._visit_block(block, source.imports)
        for routine in source.routines:
            self._visit_routine(routine, source.imports, log)
        for record in source.records:
            self._visit_record(record, source.imports, log)

    # -- API-level blocks ---------------------------------------------------

    def _visit_block(self, block: DocBlock, aliases: Mapping[str, str]) -> None:
        explicit: SchemaRecord | None = None
        for annotation in parse_annotations(block.text):
            handler = self._api_handlers.get(annotation.kind)
            if handler is not None:
                handler(annotation)
            elif block.owner not in FREE_BLOCK_OWNERS:
                continue
            elif annotation.kind == AnnotationKind.MODEL:
                explicit = self._start_explicit_schema(annotation)
            elif annotation.kind == AnnotationKind.FIELD and explicit is not None:
                _add_explicit_field(explicit, annotation, aliases)

    def _handle_api(self, a) -> None:
        self.state.version = a.version

    def _handle_info(self, a) -> None:
        info = self.state.info
        info.title = a.title
        info.version = a.version
        info.description = a.description or None

    def _handle_contact(self, a) -> None:
        self.state.info.contact = Contact(name=a.name or None, email=a.email or None, url=a.url or None)

    def _handle_license(self, a) -> None:
        self.state.info.license = License(name=a.name, url=a.url or None)

    def _handle_tos(self, a) -> None:
        self.state.info.terms_of_service = a.url

    def _handle_server(self, a) -> None:
        self.state.servers.append(Server(url=a.url, description=a.description or None))

    def _handle_tag(self, a) -> None:
        self.state.tags.append(Tag(name=a.name, description=a.description or None))

    def _handle_external_docs(self, a) -> None:
        self.state.external_docs = ExternalDocs(url=a.url, description=a.description or None)

    def _handle_link(self, a) -> None:
        self.state.links.append(LinkData(label=a.label, url=a.url))

    def _handle_security(self, a: SecurityAnnotation) -> None:
        self.state.security_schemes[a.name] = _security_scheme(a)

    def _handle_scope(self, a) -> None:
        scheme = self.state.security_schemes.get(a.security)
        if scheme is None or scheme.flows is None:
            logger.debug("scope_dropped", scheme=a.security, scope=a.name)
            return
        for flow in scheme.flows.present():
            flow.scopes[a.name] = a.description

    def _start_explicit_schema(self, a: ModelAnnotation) -> SchemaRecord | None:
        if not a.name:
            return None
        if a.name in self.state.schemas:
            logger.debug("explicit_schema_exists", schema=a.name)
            return None
        record = SchemaRecord(
            name=a.name,
            description=a.description,
            schema_=Schema(type="object", properties={}, description=a.description or None),
        )
        self.state.schemas[a.name] = record
        return record

    # -- routines -----------------------------------------------------------

    def _visit_routine(self, routine: RoutineDecl, aliases: Mapping[str, str], log) -> None:
        if not routine.doc or "!" not in routine.doc:
            return
        annotations = parse_annotations(routine.doc)
        if not annotations:
            return

        op = OperationRecord(description=clean_description(routine.doc))
        for annotation in annotations:
            handler = self._operation_handlers.get(annotation.kind)
            if handler is not None:
                handler(op, annotation, aliases)

        if not op.is_complete:
            log.debug("operation_dropped", routine=routine.name)
            return
        self.state.operations.append(op)

    # -- records ------------------------------------------------------------

    def _visit_record(self, record: RecordDecl, aliases: Mapping[str, str], log) -> None:
        annotations = parse_annotations(record.doc or "")
        model = next((a for a in annotations if a.kind == AnnotationKind.MODEL), None)
        if model is None:
            return
        if not record.is_struct:
            log.debug("model_not_struct", record=record.name)
            return
        if record.name in self.state.global_schemas:
            log.debug("model_exists", record=record.name)
            return

        description = model.description or clean_description(record.doc)
        schema = _record_schema(record.fields, aliases)
        schema.description = description or None
        schema_record = SchemaRecord(name=record.name, description=description, schema_=schema)

        for annotation in annotations:
            if annotation.kind == AnnotationKind.FIELD:
                _apply_field_info(schema_record, annotation.name, annotation, aliases)
        for field in record.fields:
            name = field.tag.alias or field.name
            if field.tag.excluded or not field.doc:
                continue
            for annotation in parse_annotations(field.doc):
                if annotation.kind == AnnotationKind.FIELD:
                    _apply_field_info(schema_record, name, annotation, aliases)

        self.state.global_schemas[record.name] = schema_record


def _security_scheme(a: SecurityAnnotation) -> SecurityScheme:
    scheme = SecurityScheme(type=a.type, description=a.description or None)
    if a.type == "apiKey":
        scheme.in_ = a.location or None
        scheme.name = a.url or a.name
    elif a.type == "http":
        scheme.scheme = a.location or None
        scheme.bearer_format = a.bearer_format or None
    elif a.type == "openIdConnect":
        scheme.open_id_connect_url = a.url or None
    elif a.type == "oauth2":
        scheme.flows = _oauth_flows(a.location, a.url)
    return scheme


def _oauth_flows(flow: str, url: str) -> OAuthFlows:
    flows = OAuthFlows()
    if flow == "implicit":
        flows.implicit = OAuthFlow(authorization_url=url, scopes={})
    elif flow == "password":
        flows.password = OAuthFlow(token_url=url, scopes={})
    elif flow == "clientCredentials":
        flows.client_credentials = OAuthFlow(token_url=url, scopes={})
    elif flow == "authorizationCode":
        flows.authorization_code = OAuthFlow(authorization_url=url, token_url=url, scopes={})
    elif url:
        flows.implicit = OAuthFlow(authorization_url=url, scopes={})
    return flows


def _apply_route(op: OperationRecord, a, aliases: Mapping[str, str]) -> None:
    op.method = a.method
    op.path = a.path
    op.operation_id = a.operation_id
    op.summary = a.summary
    op.tags = list(a.tags)
    op.deprecated = a.deprecated


def _apply_param(op: OperationRecord, a: ParamAnnotation, aliases: Mapping[str, str]) -> None:
    required = a.required or a.location == "path"
    op.parameters.append(
        Parameter(
            name=a.name,
            in_=a.location,
            description=a.description or None,
            required=required or None,
            schema_=resolve_type(a.type, aliases),
            example=parse_value(a.default) if a.default else None,
        )
    )


def _apply_body(op: OperationRecord, a: BodyAnnotation, aliases: Mapping[str, str]) -> None:
    op.request_body = RequestBody(
        description=a.description or None,
        required=a.required or None,
        content={JSON_MEDIA_TYPE: MediaType(schema_=resolve_schema_ref(a.schema_ref, aliases))},
    )


def _apply_response(op: OperationRecord, a: ResponseAnnotation, aliases: Mapping[str, str]) -> None:
    response = Response(description=a.description or _reason_phrase(a.status))
    if a.schema_ref.lower() not in NO_BODY_SCHEMAS:
        response.content = {JSON_MEDIA_TYPE: MediaType(schema_=resolve_schema_ref(a.schema_ref, aliases))}
    op.responses[a.status] = response


def _apply_secure(op: OperationRecord, a, aliases: Mapping[str, str]) -> None:
    for name in a.names:
        op.security.append({name: []})


def _reason_phrase(status: str) -> str:
    try:
        return HTTPStatus(int(status)).phrase
    except ValueError:
        return ""


def _record_schema(fields: list[FieldDecl], aliases: Mapping[str, str]) -> Schema:
    schema = Schema(type="object", properties={})
    for field in fields:
        if field.tag.excluded:
            continue
        name = field.tag.alias or field.name
        prop = resolve_type(field.annotation, aliases)
        description = clean_description(field.doc) or clean_description(field.comment)
        if description and not prop.description:
            prop.description = description
        schema.properties[name] = prop
        if not field.tag.omit_empty:
            schema.add_required(name)
    return schema


def _add_explicit_field(record: SchemaRecord, a: FieldAnnotation, aliases: Mapping[str, str]) -> None:
    record.schema_.properties[a.name] = resolve_type(a.type, aliases) if a.type else Schema()
    _apply_field_info(record, a.name, a, aliases)


def _apply_field_info(record: SchemaRecord, name: str, a: FieldAnnotation, aliases: Mapping[str, str]) -> None:
    properties = record.schema_.properties or {}
    prop = properties.get(name)
    if prop is None:
        return
    if prop.is_empty and a.type:
        prop = properties[name] = resolve_type(a.type, aliases)
    # String properties keep example/enum tokens verbatim ("007" stays "007").
    convert = (lambda v: v) if prop.type == "string" else parse_value
    if a.description:
        prop.description = a.description
    if a.example and not prop.is_ref:
        prop.example = convert(a.example)
        record.examples[name] = prop.example
    if a.enum and not prop.is_ref:
        prop.enum = [convert(v) for v in a.enum]
    if a.required:
        record.schema_.add_required(name)
