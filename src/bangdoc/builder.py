"""Run the whole pipeline: discover, walk, assemble."""

from pathlib import Path

from bangdoc.config import Settings, get_settings
from bangdoc.errors import SourceParseError
from bangdoc.generator.assembler import assemble
from bangdoc.logging import get_logger
from bangdoc.openapi.document import Document
from bangdoc.parser.discover import iter_source_files
from bangdoc.parser.source import read_source
from bangdoc.parser.state import SpecState
from bangdoc.parser.walker import DeclarationWalker

logger = get_logger(__name__)


def collect(source: Path, settings: Settings | None = None) -> SpecState:
    """Walk every source file under ``source`` into a fresh SpecState."""
    settings = settings or get_settings()
    state = SpecState(version=settings.openapi_version)
    walker = DeclarationWalker(state)

    for path in iter_source_files(source, settings.exclude_dirs):
        try:
            parsed = read_source(path)
        except SourceParseError as e:
            if not settings.skip_invalid_files:
                raise
            logger.warning("source_skipped", path=str(e.path), reason=e.reason)
            continue
        walker.visit(parsed)
        logger.debug("source_visited", path=str(path))

    logger.info(
        "collect_finished",
        operations=len(state.operations),
        schemas=len(state.schemas) + len(state.global_schemas),
    )
    return state


def build_document(source: Path, settings: Settings | None = None) -> Document:
    return assemble(collect(source, settings))
