"""Annotation parser.

Turns raw comment or docstring text into typed annotation records. Lines
that are not annotations, use an unknown verb, or are malformed produce
nothing; parsing carries on with the next line.
"""

import re
from collections.abc import Callable

from bangdoc.annotations.lexer import MARKER, Token, TokenKind, split_annotation, tokenize_line
from bangdoc.annotations.models import (
    Annotation,
    AnnotationKind,
    ApiAnnotation,
    BodyAnnotation,
    ContactAnnotation,
    ExternalDocsAnnotation,
    FieldAnnotation,
    InfoAnnotation,
    LicenseAnnotation,
    LinkAnnotation,
    ModelAnnotation,
    ParamAnnotation,
    ResponseAnnotation,
    RouteAnnotation,
    ScopeAnnotation,
    SecureAnnotation,
    SecurityAnnotation,
    ServerAnnotation,
    TagAnnotation,
    TosAnnotation,
)
from bangdoc.logging import get_logger
from bangdoc.openapi.document import HTTP_METHODS

logger = get_logger(__name__)

_STATUS_RE = re.compile(r"^([1-5]\d\d|[1-5]XX|default)$", re.IGNORECASE)
_VERSION_RE = re.compile(r"^[vV](\d.*)$")

SECURITY_TYPES = {
    "apikey": "apiKey",
    "oauth2": "oauth2",
    "http": "http",
    "openidconnect": "openIdConnect",
}


def parse_annotations(text: str) -> list[Annotation]:
    """Parse every annotation line in a comment block, in order."""
    annotations = []
    for line in text.splitlines():
        annotation = parse_annotation(line)
        if annotation is not None:
            annotations.append(annotation)
    return annotations


def parse_annotation(line: str) -> Annotation | None:
    """Parse one line; None for prose, unknown verbs and malformed lines."""
    split = split_annotation(line)
    if split is None:
        return None
    verb, rest = split

    if verb.upper() in HTTP_METHODS:
        builder = _route_builder(verb.upper())
    else:
        builder = _BUILDERS.get(verb.lower())
        if builder is None:
            return None

    tokens = tokenize_line(rest)
    if tokens is None:
        logger.debug("annotation_malformed", line=line.strip())
        return None

    annotation = builder(tokens)
    if annotation is None:
        logger.debug("annotation_incomplete", line=line.strip())
    return annotation


def clean_description(text: str | None) -> str:
    """Drop annotation lines from prose and trim surrounding whitespace."""
    if not text:
        return ""
    lines = [line for line in text.splitlines() if not line.strip().startswith(MARKER)]
    return "\n".join(lines).strip()


# -- token helpers ----------------------------------------------------------


def _positionals(tokens: list[Token]) -> list[str]:
    return [t.text for t in tokens if t.is_positional]


def _words(tokens: list[Token]) -> list[str]:
    return [t.text for t in tokens if t.kind in (TokenKind.WORD, TokenKind.PAIR)]


def _strings(tokens: list[Token]) -> list[str]:
    return [t.text for t in tokens if t.kind == TokenKind.STRING]


def _flags(tokens: list[Token]) -> dict[str, str]:
    return {t.key.lower(): t.value for t in tokens if t.kind == TokenKind.FLAG}


def _has_word(tokens: list[Token], word: str) -> bool:
    return any(t.kind == TokenKind.WORD and t.text.lower() == word for t in tokens)


def _at(items: list[str], index: int) -> str:
    return items[index] if index < len(items) else ""


def _name_and_type(token: Token) -> tuple[str, str]:
    if token.kind == TokenKind.PAIR:
        return token.key, token.value
    return token.text, ""


# -- builders ---------------------------------------------------------------


def _build_api(tokens: list[Token]) -> Annotation | None:
    version = _at(_positionals(tokens), 0)
    return ApiAnnotation(version=version) if version else None


def _build_info(tokens: list[Token]) -> Annotation | None:
    values = _positionals(tokens)
    title = _at(values, 0)
    if not title:
        return None
    version = _at(values, 1)
    match = _VERSION_RE.match(version)
    if match:
        version = match.group(1)
    return InfoAnnotation(title=title, version=version, description=_at(values, 2))


def _build_contact(tokens: list[Token]) -> Annotation | None:
    name = email = url = ""
    for token in tokens:
        is_word = token.kind == TokenKind.WORD
        if token.kind == TokenKind.ANGLE or (is_word and "@" in token.text):
            email = email or token.text
        elif token.kind == TokenKind.PAREN or (is_word and token.text.startswith(("http://", "https://"))):
            url = url or token.text
        elif token.kind in (TokenKind.STRING, TokenKind.WORD) and not name:
            name = token.text
    if not (name or email or url):
        return None
    return ContactAnnotation(name=name, email=email, url=url)


def _build_license(tokens: list[Token]) -> Annotation | None:
    values = _positionals(tokens)
    name = _at(values, 0)
    return LicenseAnnotation(name=name, url=_at(values, 1)) if name else None


def _build_tos(tokens: list[Token]) -> Annotation | None:
    url = _at(_positionals(tokens), 0)
    return TosAnnotation(url=url) if url else None


def _build_server(tokens: list[Token]) -> Annotation | None:
    values = _positionals(tokens)
    url = _at(values, 0)
    return ServerAnnotation(url=url, description=" ".join(values[1:])) if url else None


def _build_tag(tokens: list[Token]) -> Annotation | None:
    values = _positionals(tokens)
    name = _at(values, 0)
    return TagAnnotation(name=name, description=" ".join(values[1:])) if name else None


def _build_external_docs(tokens: list[Token]) -> Annotation | None:
    values = _positionals(tokens)
    url = _at(values, 0)
    return ExternalDocsAnnotation(url=url, description=" ".join(values[1:])) if url else None


def _build_link(tokens: list[Token]) -> Annotation | None:
    values = _positionals(tokens)
    label, url = _at(values, 0), _at(values, 1)
    if not (label and url):
        return None
    return LinkAnnotation(label=label, url=url)


def _build_security(tokens: list[Token]) -> Annotation | None:
    words = [t.text for t in tokens if t.kind in (TokenKind.WORD, TokenKind.PAIR, TokenKind.PAREN, TokenKind.ANGLE)]
    name = _at(words, 0)
    scheme_type = SECURITY_TYPES.get(_at(words, 1).lower())
    if not name or scheme_type is None:
        return None

    rest = words[2:]
    if scheme_type == "openIdConnect":
        location, url = "", _at(rest, 0)
    else:
        location, url = _at(rest, 0), _at(rest, 1)

    return SecurityAnnotation(
        name=name,
        type=scheme_type,
        location=location,
        url=url,
        description=" ".join(_strings(tokens)),
        bearer_format=_flags(tokens).get("format", ""),
    )


def _build_scope(tokens: list[Token]) -> Annotation | None:
    values = _positionals(tokens)
    security, name = _at(values, 0), _at(values, 1)
    if not (security and name):
        return None
    return ScopeAnnotation(security=security, name=name, description=" ".join(values[2:]))


def _route_builder(method: str) -> Callable[[list[Token]], Annotation | None]:
    def build(tokens: list[Token]) -> Annotation | None:
        path = ""
        operation_id = ""
        summary = ""
        after_arrow = False
        deprecated = False

        for token in tokens:
            if token.kind == TokenKind.ARROW:
                after_arrow = True
            elif token.kind == TokenKind.STRING and not summary:
                summary = token.text
            elif token.kind in (TokenKind.WORD, TokenKind.PAIR):
                if token.text.lower() == "deprecated":
                    deprecated = True
                elif not path and not after_arrow:
                    path = token.text
                elif after_arrow and not operation_id:
                    operation_id = token.text

        if not path.startswith("/"):
            return None
        return RouteAnnotation(
            method=method,
            path=path,
            operation_id=operation_id,
            summary=summary,
            tags=tuple(t.text for t in tokens if t.kind == TokenKind.TAG),
            deprecated=deprecated,
        )

    return build


def _param_builder(kind: AnnotationKind) -> Callable[[list[Token]], Annotation | None]:
    def build(tokens: list[Token]) -> Annotation | None:
        first = next((t for t in tokens if t.kind in (TokenKind.WORD, TokenKind.PAIR)), None)
        if first is None:
            return None
        name, type_name = _name_and_type(first)
        flags = _flags(tokens)
        return ParamAnnotation(
            kind=kind,
            name=name,
            type=type_name or "string",
            description=" ".join(_strings(tokens)),
            required=_has_word(tokens, "required"),
            default=flags.get("default", flags.get("example", "")),
        )

    return build


def _build_body(tokens: list[Token]) -> Annotation | None:
    schema_ref = next((w for w in _words(tokens) if w.lower() != "required"), "")
    if not schema_ref:
        return None
    return BodyAnnotation(
        schema_ref=schema_ref,
        description=" ".join(_strings(tokens)),
        required=_has_word(tokens, "required"),
    )


def _response_builder(kind: AnnotationKind) -> Callable[[list[Token]], Annotation | None]:
    def build(tokens: list[Token]) -> Annotation | None:
        words = _words(tokens)
        if words and _STATUS_RE.match(words[0]):
            status = words.pop(0)
            status = "default" if status.lower() == "default" else status.upper()
        elif kind == AnnotationKind.OK:
            status = "200"
        else:
            return None
        return ResponseAnnotation(
            kind=kind,
            status=status,
            schema_ref=_at(words, 0),
            description=" ".join(_strings(tokens)),
        )

    return build


def _build_secure(tokens: list[Token]) -> Annotation | None:
    names = [name for word in _words(tokens) for name in word.split(",") if name]
    return SecureAnnotation(names=tuple(names)) if names else None


def _build_model(tokens: list[Token]) -> Annotation | None:
    return ModelAnnotation(name=_at(_words(tokens), 0), description=" ".join(_strings(tokens)))


def _build_field(tokens: list[Token]) -> Annotation | None:
    first = next((t for t in tokens if t.kind in (TokenKind.WORD, TokenKind.PAIR)), None)
    if first is None:
        return None
    name, type_name = _name_and_type(first)
    flags = _flags(tokens)
    enum = tuple(v.strip() for v in flags.get("enum", "").split(",") if v.strip())
    return FieldAnnotation(
        name=name,
        type=type_name,
        description=" ".join(_strings(tokens)),
        required=_has_word(tokens, "required"),
        example=flags.get("example", ""),
        enum=enum,
    )


_BUILDERS: dict[str, Callable[[list[Token]], Annotation | None]] = {
    "api": _build_api,
    "info": _build_info,
    "contact": _build_contact,
    "license": _build_license,
    "tos": _build_tos,
    "server": _build_server,
    "tag": _build_tag,
    "externaldocs": _build_external_docs,
    "docs": _build_external_docs,
    "link": _build_link,
    "security": _build_security,
    "scope": _build_scope,
    "query": _param_builder(AnnotationKind.QUERY),
    "path": _param_builder(AnnotationKind.PATH),
    "header": _param_builder(AnnotationKind.HEADER),
    "cookie": _param_builder(AnnotationKind.COOKIE),
    "body": _build_body,
    "ok": _response_builder(AnnotationKind.OK),
    "error": _response_builder(AnnotationKind.ERROR),
    "secure": _build_secure,
    "model": _build_model,
    "field": _build_field,
}
