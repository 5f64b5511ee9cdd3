"""
Starter layouts per document type.

Used when a template is saved without a layout and when a preview is requested
for a document type that has no stored template yet.
"""
from __future__ import annotations

from typing import Callable, Dict, List

from ..models import DocumentType
from ..rendering.schema import Layout, load_layout


def _classic_invoice(document_type: DocumentType) -> List[dict]:
    return [
        {"id": "header-title", "type": "heading", "text": "INVOICE", "level": 1,
         "style": {"fontSize": 28, "bold": True, "align": "right"}},
        {"id": "header-company", "type": "text", "text": "{{company.name}}",
         "style": {"align": "right", "color": "#475569"}},
        {"id": "header-divider", "type": "divider"},
        {
            "id": "customer-box",
            "type": "box",
            "children": [
                {"id": "cust-label", "type": "text", "text": "Bill To:",
                 "style": {"bold": True, "fontSize": 10, "color": "#64748b"}},
                {"id": "cust-name", "type": "text", "text": "{{customer.name}}", "style": {"bold": True}},
                {"id": "cust-addr", "type": "text", "text": "{{customer.address}}",
                 "visibleWhen": {"field": "customer.address"}},
                {"id": "cust-email", "type": "text", "text": "{{customer.email}}",
                 "visibleWhen": {"field": "customer.email"}},
            ],
        },
        {
            "id": "invoice-meta",
            "type": "list",
            "items": [
                {"label": "Invoice Number: {{invoice.number}}"},
                {"label": "Invoice Date: {{invoice.date}}"},
                {"label": "Due Date: {{invoice.dueDate}}"},
            ],
        },
        {"id": "spacer-1", "type": "spacer", "size": 10},
        {
            "id": "lines-table",
            "type": "table",
            "rowsBinding": "lines",
            "showHeader": True,
            "columns": [
                {"key": "desc", "label": "Description", "binding": "description", "width": 50},
                {"key": "qty", "label": "Qty", "binding": "quantity", "align": "right", "format": "number"},
                {"key": "unit", "label": "Unit Price", "binding": "unitPrice", "align": "right", "format": "currency"},
                {"key": "total", "label": "Amount", "binding": "total", "align": "right", "format": "currency"},
            ],
        },
        {"id": "spacer-2", "type": "spacer", "size": 10},
        {"id": "totals-subtotal", "type": "text", "text": "Subtotal: {{totals.subtotal}}", "style": {"align": "right"}},
        {"id": "totals-tax", "type": "text", "text": "VAT: {{totals.tax}}", "style": {"align": "right"}},
        {"id": "totals-grand", "type": "text", "text": "Total Due: {{totals.grandTotal}}",
         "style": {"align": "right", "bold": True, "fontSize": 14}},
        {"id": "footer-notes", "type": "text", "text": "{{notes}}", "visibleWhen": {"field": "notes"},
         "style": {"fontSize": 9, "color": "#64748b"}},
    ]


def _simple_docket(document_type: DocumentType) -> List[dict]:
    return [
        {"id": "header-title", "type": "heading", "text": "DELIVERY DOCKET", "level": 1,
         "style": {"fontSize": 24, "bold": True}},
        {"id": "header-number", "type": "text", "text": "#{{docket.number}}",
         "style": {"fontSize": 14, "color": "#64748b"}},
        {"id": "header-divider", "type": "divider"},
        {
            "id": "delivery-box",
            "type": "box",
            "children": [
                {"id": "del-label", "type": "text", "text": "Deliver To:",
                 "style": {"bold": True, "fontSize": 10, "color": "#64748b"}},
                {"id": "del-contact", "type": "text", "text": "{{delivery.contact}}", "style": {"bold": True}},
                {"id": "del-address", "type": "text", "text": "{{delivery.address}}"},
            ],
        },
        {
            "id": "docket-meta",
            "type": "list",
            "items": [
                {"label": "Delivery Date: {{docket.date}}"},
                {"label": "Order Reference: {{order.number}}"},
            ],
        },
        {"id": "spacer-1", "type": "spacer", "size": 10},
        {
            "id": "lines-table",
            "type": "table",
            "rowsBinding": "lines",
            "columns": [
                {"key": "desc", "label": "Description", "binding": "description"},
                {"key": "qty", "label": "Qty", "binding": "quantity", "align": "right", "format": "number"},
                {"key": "loc", "label": "Location", "binding": "location"},
            ],
        },
        {"id": "spacer-2", "type": "spacer", "size": 10},
        {"id": "notes", "type": "text", "text": "{{notes}}", "visibleWhen": {"field": "notes"}},
        {"id": "signature-line", "type": "text", "text": "Received by: ____________________  Date: __________",
         "style": {"marginBottom": 8}},
    ]


def _minimal(document_type: DocumentType) -> List[dict]:
    layout: List[dict] = [
        {"id": "heading", "type": "heading", "text": "{{title}}", "level": 1},
        {"id": "subtitle", "type": "text", "text": "{{subtitle}}", "visibleWhen": {"field": "subtitle"},
         "style": {"color": "#64748b"}},
        {"id": "divider", "type": "divider"},
    ]
    if document_type == DocumentType.ORDER_CONFIRMATION:
        layout += [
            {"id": "order-info", "type": "list", "items": [
                {"label": "Order: {{order.number}}"},
                {"label": "Requested delivery: {{order.requestedDate}}"},
            ]},
            {"id": "lines", "type": "table", "rowsBinding": "lines", "columns": [
                {"key": "desc", "label": "Description", "binding": "description"},
                {"key": "qty", "label": "Qty", "binding": "quantity", "align": "right", "format": "number"},
                {"key": "unit", "label": "Unit Price", "binding": "unitPrice", "align": "right", "format": "currency"},
            ]},
            {"id": "total", "type": "text", "text": "Total: {{totals.grandTotal}}", "style": {"align": "right", "bold": True}},
        ]
    elif document_type == DocumentType.AV_LIST:
        layout += [
            {"id": "items", "type": "table", "rowsBinding": "items", "columns": [
                {"key": "name", "label": "Variety"},
                {"key": "size", "label": "Size"},
                {"key": "grade", "label": "Grade"},
                {"key": "qty", "label": "Available", "align": "right", "format": "number"},
                {"key": "price", "label": "Price", "align": "right", "format": "currency"},
            ]},
        ]
    elif document_type == DocumentType.LOOKIN_GOOD:
        layout += [
            {"id": "items", "type": "table", "rowsBinding": "items", "columns": [
                {"key": "name", "label": "Plant"},
                {"key": "description", "label": "Notes"},
            ]},
        ]
    else:
        layout += [
            {"id": "lines", "type": "table", "rowsBinding": "lines", "columns": [
                {"key": "desc", "label": "Description", "binding": "description"},
                {"key": "qty", "label": "Qty", "binding": "quantity", "align": "right", "format": "number"},
            ]},
        ]
    return layout


PRESETS: Dict[str, Callable[[DocumentType], List[dict]]] = {
    "classic-invoice": _classic_invoice,
    "simple-docket": _simple_docket,
    "minimal": _minimal,
}

DEFAULT_PRESET_BY_TYPE: Dict[DocumentType, str] = {
    DocumentType.INVOICE: "classic-invoice",
    DocumentType.DELIVERY_DOCKET: "simple-docket",
}


def preset_layout(preset_id: str, document_type: DocumentType) -> Layout:
    if preset_id not in PRESETS:
        raise ValueError(f"Unknown preset: {preset_id}")
    return load_layout(PRESETS[preset_id](DocumentType(document_type)))


def default_layout_for(document_type: DocumentType) -> Layout:
    document_type = DocumentType(document_type)
    return preset_layout(DEFAULT_PRESET_BY_TYPE.get(document_type, "minimal"), document_type)
