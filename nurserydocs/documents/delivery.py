from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence

from ..rendering.render_html import render_document_html
from ..rendering.render_pdf import render_document_pdf
from ..rendering.schema import BaseComponent
from ..storage import slug_from_title


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentEmail:
    to: str
    subject: str
    body: str
    html: str
    attachment_name: str
    attachment: bytes


class EmailSender(Protocol):
    def send(self, message: DocumentEmail) -> bool:
        ...


@dataclass
class DispatchResult:
    sent: bool
    html: str
    pdf: bytes
    error: Optional[str] = None


def send_document_email(
    sender: EmailSender,
    to: str,
    subject: str,
    body: str,
    layout: Sequence[BaseComponent],
    context: Any,
    title: Optional[str] = None,
    attachment_name: Optional[str] = None,
) -> DispatchResult:
    """
    Render the HTML body and the PDF attachment, then hand both to ``sender``.
    Rendering happens first and is never affected by the delivery outcome.
    """
    html = render_document_html(layout, context, title=title)
    pdf = render_document_pdf(layout, context, title=title)
    filename = attachment_name or f"{slug_from_title(title or subject)}.pdf"
    message = DocumentEmail(
        to=to,
        subject=subject,
        body=body,
        html=html,
        attachment_name=filename,
        attachment=pdf,
    )
    try:
        sent = bool(sender.send(message))
    except Exception as exc:
        logger.exception("Email dispatch to %s failed", to)
        return DispatchResult(sent=False, html=html, pdf=pdf, error=str(exc))
    if not sent:
        logger.warning("Email dispatch to %s was not accepted", to)
    return DispatchResult(sent=sent, html=html, pdf=pdf, error=None if sent else "Sender did not accept message")
