"""Assemble a SpecState into an OpenAPI document.

Assembly never mutates the state: every model placed in the document is
a deep copy, so assembling the same state twice gives equal documents.
"""

from bangdoc.openapi.document import Components, Document, Info, Operation, PathItem, Schema
from bangdoc.parser.state import OperationRecord, SpecState


def assemble(state: SpecState) -> Document:
    """Build the final document from a finished SpecState."""
    return Document(
        openapi=state.version,
        info=_build_info(state),
        servers=[s.model_copy(deep=True) for s in state.servers] or None,
        tags=[t.model_copy(deep=True) for t in state.tags] or None,
        paths=_build_paths(state.operations),
        components=_build_components(state),
        external_docs=state.external_docs.model_copy(deep=True) if state.external_docs else None,
    )


def merge_schemas(state: SpecState) -> dict[str, Schema]:
    """Explicit schemas first; global (class-inferred) ones only fill gaps."""
    schemas = {name: record.schema_.model_copy(deep=True) for name, record in state.schemas.items()}
    for name, record in state.global_schemas.items():
        if name not in schemas:
            schemas[name] = record.schema_.model_copy(deep=True)
    return schemas


def _build_info(state: SpecState) -> Info:
    info = state.info.model_copy(deep=True)
    if state.links:
        lines = "\n".join(f"- [{link.label}]({link.url})" for link in state.links)
        links = f"Some useful links:\n{lines}\n"
        info.description = f"{info.description}\n\n{links}" if info.description else links
    return info


def _build_paths(operations: list[OperationRecord]) -> dict[str, PathItem]:
    paths: dict[str, PathItem] = {}
    for op in operations:
        item = paths.setdefault(op.path, PathItem())
        # Same path and method: the later operation wins.
        setattr(item, op.method.lower(), _build_operation(op))
    return paths


def _build_operation(op: OperationRecord) -> Operation:
    copy = op.model_copy(deep=True)
    return Operation(
        operation_id=copy.operation_id or None,
        summary=copy.summary or None,
        description=copy.description or None,
        tags=copy.tags or None,
        deprecated=copy.deprecated or None,
        parameters=copy.parameters or None,
        request_body=copy.request_body,
        responses=copy.responses,
        security=copy.security or None,
    )


def _build_components(state: SpecState) -> Components | None:
    schemas = merge_schemas(state)
    if not schemas and not state.security_schemes:
        return None
    return Components(
        schemas=schemas or None,
        security_schemes={k: v.model_copy(deep=True) for k, v in state.security_schemes.items()} or None,
    )
