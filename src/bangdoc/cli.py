"""CLI entry point for bangdoc."""

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

import click

from bangdoc.builder import collect
from bangdoc.config import get_settings
from bangdoc.errors import BangdocError
from bangdoc.generator.assembler import assemble
from bangdoc.generator.output import render
from bangdoc.logging import configure_logging


def _package_version() -> str:
    try:
        return version("bangdoc")
    except PackageNotFoundError:
        return "0.0.0"


@click.group()
@click.option("--log-level", default=None, type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False), help="Override the configured log level.")
def main(log_level: str | None):
    """bangdoc: build OpenAPI documents from !annotations in Python source."""
    configure_logging(log_level)


@main.command()
@click.argument("source", default=".", type=click.Path(exists=True, path_type=Path))
@click.option("-o", "--output", default=None, type=click.Path(path_type=Path), help="Output file path (stdout when omitted).")
@click.option("--format", "fmt", default=None, type=click.Choice(["json", "yaml"]), help="Output format.")
@click.option("--indent", default=None, type=int, help="Indentation width.")
def generate(source: Path, output: Path | None, fmt: str | None, indent: int | None):
    """Generate an OpenAPI document from annotated source code."""
    settings = get_settings()
    fmt = fmt or settings.output_format
    indent = settings.indent if indent is None else indent

    try:
        state = collect(source, settings)
    except BangdocError as e:
        raise click.ClickException(str(e)) from e

    if not state.info.title:
        raise click.UsageError(f"no !info annotation found in {source}")

    text = render(assemble(state), fmt, indent)
    if output is None:
        click.echo(text, nl=False)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    click.echo(f"Found {len(state.operations)} operations; OpenAPI document saved to {output}", err=True)


@main.command("version")
def show_version():
    """Show version information."""
    click.echo(f"bangdoc version {_package_version()}")
