from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer

from . import config
from .documents.templates import generate_template_pdf, list_templates, publish_template, save_template_draft
from .models import DocumentType, reset_engine
from .rendering.render_html import render_document_html
from .rendering.render_pdf import draw_document
from .rendering.render_preview import render_previews
from .rendering.schema import LayoutValidationError, load_layout
from .storage import artifact_path, slug_from_title

app = typer.Typer(help="Nursery document rendering")


def _read_json(path: Path) -> object:
    if not path.exists():
        raise typer.BadParameter(f"File not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def _use_out_dir(out: Optional[Path]) -> None:
    if out:
        config.set_out_dir(out)
        reset_engine()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)


@app.command()
def validate(layout: Path = typer.Argument(..., help="Layout JSON file")) -> None:
    try:
        components = load_layout(_read_json(layout))
    except LayoutValidationError as exc:
        for error in exc.errors:
            typer.echo(f"ERROR: {error}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"OK: {len(components)} components")


@app.command()
def render(
    layout: Path = typer.Argument(..., help="Layout JSON file"),
    data: Optional[Path] = typer.Option(None, "--data", help="Context JSON file"),
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
    title: str = typer.Option(config.DEFAULT_DOCUMENT_TITLE, "--title", help="Document label"),
    previews: int = typer.Option(0, "--previews", help="Number of PNG page previews"),
) -> None:
    _use_out_dir(out)
    try:
        components = load_layout(_read_json(layout))
    except LayoutValidationError as exc:
        for error in exc.errors:
            typer.echo(f"ERROR: {error}", err=True)
        raise typer.Exit(code=1)
    context = _read_json(data) if data else {}

    slug = slug_from_title(title)
    html_path = artifact_path(slug, "html")
    html_path.write_text(render_document_html(components, context, title=title), encoding="utf-8")
    result = draw_document(components, context, title=title)
    pdf_path = artifact_path(slug, "pdf")
    pdf_path.write_bytes(result.content)
    typer.echo(f"HTML: {html_path}")
    typer.echo(f"PDF: {pdf_path} ({result.page_count} pages)")
    if previews:
        for path in render_previews(pdf_path, pdf_path.parent, max_pages=previews):
            typer.echo(f"PREVIEW: {path}")


@app.command("save-template")
def save_template(
    name: str = typer.Option(..., "--name", help="Template name"),
    document_type: DocumentType = typer.Option(DocumentType.INVOICE, "--type", help="Document type"),
    layout: Optional[Path] = typer.Option(None, "--layout", help="Layout JSON file (preset when omitted)"),
    template_id: Optional[int] = typer.Option(None, "--id", help="Existing template id to version"),
    notes: Optional[str] = typer.Option(None, "--notes", help="Version notes"),
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
) -> None:
    _use_out_dir(out)
    raw_layout = _read_json(layout) if layout else None
    try:
        template = save_template_draft(name, document_type, raw_layout, template_id=template_id, notes=notes)
    except LayoutValidationError as exc:
        for error in exc.errors:
            typer.echo(f"ERROR: {error}", err=True)
        raise typer.Exit(code=1)
    except LookupError as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"SAVED: {template.id} (version id {template.current_version_id})")


@app.command()
def publish(
    template_id: int = typer.Argument(..., help="Template id"),
    version_id: Optional[int] = typer.Option(None, "--version", help="Version id (latest when omitted)"),
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
) -> None:
    _use_out_dir(out)
    try:
        template = publish_template(template_id, version_id)
    except LookupError as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"PUBLISHED: {template.id} (version id {template.current_version_id})")


@app.command("list-templates")
def list_templates_command(
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
) -> None:
    _use_out_dir(out)
    templates = list_templates()
    if not templates:
        typer.echo("No templates")
        return
    for template in templates:
        typer.echo(f"{template.id}\t{template.document_type.value}\t{template.status.value}\t{template.name}")


@app.command()
def generate(
    template_id: int = typer.Argument(..., help="Template id"),
    data: Optional[Path] = typer.Option(None, "--data", help="Payload JSON file (sample data when omitted)"),
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
) -> None:
    _use_out_dir(out)
    payload = _read_json(data) if data else None
    try:
        generated = generate_template_pdf(template_id=template_id, data_context=payload)
    except (LookupError, LayoutValidationError) as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=1)
    pdf_path = artifact_path(f"template-{template_id}", "pdf")
    pdf_path.write_bytes(generated.pdf.content)
    typer.echo(f"PDF: {pdf_path} ({generated.pdf.page_count} pages)")


if __name__ == "__main__":
    app()
