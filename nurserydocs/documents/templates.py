from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from sqlalchemy import func
from sqlmodel import select

from ..models import (
    DocumentTemplate,
    DocumentTemplateVersion,
    DocumentType,
    TemplateStatus,
    get_session,
    init_db,
    utcnow,
)
from ..rendering.render_html import render_document_html
from ..rendering.render_pdf import RenderedPdf, draw_document
from ..rendering.schema import Layout, dump_layout, load_layout
from .data import document_label, get_document_data
from .presets import default_layout_for


logger = logging.getLogger(__name__)


@dataclass
class Preview:
    html: str
    data_used: dict
    layout: Layout
    document_type: DocumentType


@dataclass
class GeneratedDocument:
    pdf: RenderedPdf
    data_used: dict
    document_type: DocumentType


def save_template_draft(
    name: str,
    document_type: DocumentType,
    layout: Any = None,
    *,
    template_id: Optional[int] = None,
    description: Optional[str] = None,
    variables: Optional[dict] = None,
    sample_data: Optional[dict] = None,
    notes: Optional[str] = None,
    status: TemplateStatus = TemplateStatus.DRAFT,
) -> DocumentTemplate:
    """
    Create a template with version 1, or append the next version to an
    existing one. The layout is validated before anything is written.
    """
    document_type = DocumentType(document_type)
    components = load_layout(layout) if layout is not None else default_layout_for(document_type)
    stored_layout = dump_layout(components)

    init_db()
    with get_session() as session:
        if template_id is None:
            template = DocumentTemplate(
                name=name,
                description=description,
                document_type=document_type,
                status=status,
            )
            session.add(template)
            session.commit()
            session.refresh(template)
            next_version = 1
        else:
            template = session.get(DocumentTemplate, template_id)
            if template is None:
                raise LookupError(f"Template not found: {template_id}")
            latest = session.exec(
                select(func.max(DocumentTemplateVersion.version_number)).where(
                    DocumentTemplateVersion.template_id == template_id
                )
            ).one()
            next_version = (latest or 0) + 1

        version = DocumentTemplateVersion(
            template_id=template.id,
            version_number=next_version,
            layout=stored_layout,
            variables=variables or {},
            sample_data=sample_data or {},
            notes=notes,
        )
        session.add(version)
        session.commit()
        session.refresh(version)

        template.name = name
        template.description = description
        template.document_type = document_type
        template.status = status
        template.current_version_id = version.id
        template.updated_at = utcnow()
        session.add(template)
        session.commit()
        session.refresh(template)
    logger.info("Saved template %s version %d", template.id, next_version)
    return template


def publish_template(template_id: int, version_id: Optional[int] = None) -> DocumentTemplate:
    init_db()
    with get_session() as session:
        template = session.get(DocumentTemplate, template_id)
        if template is None:
            raise LookupError(f"Template not found: {template_id}")
        if version_id is None:
            latest = session.exec(
                select(DocumentTemplateVersion)
                .where(DocumentTemplateVersion.template_id == template_id)
                .order_by(DocumentTemplateVersion.version_number.desc())
            ).first()
            version_id = latest.id if latest is not None else None
        else:
            version = session.get(DocumentTemplateVersion, version_id)
            if version is None or version.template_id != template_id:
                raise LookupError(f"Version {version_id} does not belong to template {template_id}")
        template.status = TemplateStatus.PUBLISHED
        template.published_at = utcnow()
        template.current_version_id = version_id
        template.updated_at = utcnow()
        session.add(template)
        session.commit()
        session.refresh(template)
    logger.info("Published template %s at version id %s", template_id, version_id)
    return template


def list_templates() -> List[DocumentTemplate]:
    init_db()
    with get_session() as session:
        statement = select(DocumentTemplate).order_by(DocumentTemplate.updated_at.desc())
        return list(session.exec(statement))


def get_template(template_id: int) -> Optional[DocumentTemplate]:
    init_db()
    with get_session() as session:
        return session.get(DocumentTemplate, template_id)


def get_version(version_id: int) -> Optional[DocumentTemplateVersion]:
    init_db()
    with get_session() as session:
        return session.get(DocumentTemplateVersion, version_id)


def list_versions(template_id: int) -> List[DocumentTemplateVersion]:
    init_db()
    with get_session() as session:
        statement = (
            select(DocumentTemplateVersion)
            .where(DocumentTemplateVersion.template_id == template_id)
            .order_by(DocumentTemplateVersion.version_number)
        )
        return list(session.exec(statement))


def delete_template(template_id: int) -> None:
    init_db()
    with get_session() as session:
        template = session.get(DocumentTemplate, template_id)
        if template is None:
            raise LookupError(f"Template not found: {template_id}")
        versions = list(
            session.exec(
                select(DocumentTemplateVersion).where(DocumentTemplateVersion.template_id == template_id)
            )
        )
        for version in versions:
            session.delete(version)
        session.delete(template)
        session.commit()
    logger.info("Deleted template %s", template_id)


def _resolve_inputs(
    template_id: Optional[int],
    layout_override: Any,
    document_type: Optional[DocumentType],
    data_context: Optional[dict],
) -> tuple[Layout, DocumentType, dict, str]:
    template = get_template(template_id) if template_id is not None else None
    if template_id is not None and template is None:
        raise LookupError(f"Template not found: {template_id}")
    version = (
        get_version(template.current_version_id)
        if template is not None and template.current_version_id is not None
        else None
    )
    doc_type = DocumentType(document_type or (template.document_type if template else DocumentType.INVOICE))

    if layout_override is not None:
        layout = load_layout(layout_override)
    elif version is not None:
        layout = load_layout(version.layout)
    else:
        layout = default_layout_for(doc_type)

    payload = data_context if data_context is not None else (version.sample_data if version else {})
    data = get_document_data(doc_type, payload)
    title = template.name if template is not None else document_label(doc_type)
    return layout, doc_type, data, title


def preview_template(
    template_id: Optional[int] = None,
    layout_override: Any = None,
    document_type: Optional[DocumentType] = None,
    data_context: Optional[dict] = None,
) -> Preview:
    layout, doc_type, data, title = _resolve_inputs(template_id, layout_override, document_type, data_context)
    html = render_document_html(layout, data, title=title)
    return Preview(html=html, data_used=data, layout=layout, document_type=doc_type)


def generate_template_pdf(
    template_id: Optional[int] = None,
    layout_override: Any = None,
    document_type: Optional[DocumentType] = None,
    data_context: Optional[dict] = None,
) -> GeneratedDocument:
    layout, doc_type, data, title = _resolve_inputs(template_id, layout_override, document_type, data_context)
    pdf = draw_document(layout, data, title=title)
    return GeneratedDocument(pdf=pdf, data_used=data, document_type=doc_type)
