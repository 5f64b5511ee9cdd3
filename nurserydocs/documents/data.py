"""
Data providers: build the context record a template binds against.

Providers are keyed by document type. The default provider overlays the raw
payload on a few base fields; registered providers can reshape it further.
"""
from __future__ import annotations

import copy
import logging
from datetime import date
from typing import Any, Callable, Dict, Optional

from ..models import DocumentType


logger = logging.getLogger(__name__)

DataProvider = Callable[[dict], dict]

DOCUMENT_LABELS: Dict[DocumentType, str] = {
    DocumentType.INVOICE: "Invoice",
    DocumentType.DELIVERY_DOCKET: "Delivery Docket",
    DocumentType.ORDER_CONFIRMATION: "Order Confirmation",
    DocumentType.AV_LIST: "Availability List",
    DocumentType.LOOKIN_GOOD: "Looking Good List",
}

_PROVIDERS: Dict[DocumentType, DataProvider] = {}


def register_provider(document_type: DocumentType) -> Callable[[DataProvider], DataProvider]:
    def decorator(func: DataProvider) -> DataProvider:
        _PROVIDERS[DocumentType(document_type)] = func
        return func

    return decorator


def document_label(document_type: DocumentType) -> str:
    return DOCUMENT_LABELS.get(DocumentType(document_type), "Document")


def base_fields(document_type: DocumentType) -> dict:
    return {
        "title": document_label(document_type),
        "generatedAt": date.today().isoformat(),
    }


def get_document_data(document_type: DocumentType, payload: Optional[dict] = None) -> dict:
    """Return a fresh context record for ``document_type`` built from ``payload``."""
    document_type = DocumentType(document_type)
    payload = copy.deepcopy(payload or {})
    provider = _PROVIDERS.get(document_type)
    if provider is not None:
        logger.debug("Using registered provider for %s", document_type.value)
        payload = provider(payload)
    return {**base_fields(document_type), **payload}


def sample_data_for(document_type: DocumentType) -> Dict[str, Any]:
    document_type = DocumentType(document_type)
    data: Dict[str, Any] = {
        "title": "Sample Document",
        "subtitle": "Preview Mode",
        "generatedAt": date.today().isoformat(),
        "company": {"name": "Greenfield Nurseries Ltd"},
    }
    if document_type == DocumentType.INVOICE:
        data.update(
            title="Invoice",
            subtitle="Tax Invoice",
            invoice={"number": "INV-2024-001", "date": "2024-02-04", "dueDate": "2024-03-04"},
            customer={
                "name": "Acme Garden Centre",
                "email": "orders@acmegarden.ie",
                "address": "123 Garden Lane, Dublin 4, Ireland",
            },
            lines=[
                {"description": "Lavender (9cm pot)", "quantity": 50, "unitPrice": 2.5, "total": 125},
                {"description": "Rosemary (9cm pot)", "quantity": 30, "unitPrice": 2.75, "total": 82.5},
                {"description": "Thyme (9cm pot)", "quantity": 40, "unitPrice": 2.25, "total": 90},
            ],
            totals={"subtotal": 297.5, "tax": 68.43, "grandTotal": 365.93},
            notes="Thank you for your business!",
        )
    elif document_type == DocumentType.DELIVERY_DOCKET:
        data.update(
            title="Delivery Docket",
            subtitle="Dispatch Note",
            docket={"number": "DD-2024-042", "date": "2024-02-04"},
            order={"number": "ORD-2024-089"},
            delivery={"address": "456 Nursery Road, Cork, Ireland", "contact": "John Murphy"},
            lines=[
                {"description": "Lavender (9cm pot)", "quantity": 50, "location": "Bay A3"},
                {"description": "Rosemary (9cm pot)", "quantity": 30, "location": "Bay B1"},
                {"description": "Thyme (9cm pot)", "quantity": 40, "location": "Bay C2"},
            ],
            notes="Please handle with care. Fragile plants.",
        )
    elif document_type == DocumentType.ORDER_CONFIRMATION:
        data.update(
            title="Order Confirmation",
            subtitle="Your order has been received",
            order={"number": "ORD-2024-089", "date": "2024-02-04", "requestedDate": "2024-02-11"},
            customer={"name": "Green Thumb Landscapes", "email": "info@greenthumb.ie"},
            lines=[
                {"description": "Hebe 'Autumn Glory'", "quantity": 25, "unitPrice": 4.5},
                {"description": "Euonymus 'Emerald Gold'", "quantity": 15, "unitPrice": 5.25},
                {"description": "Photinia 'Red Robin'", "quantity": 10, "unitPrice": 8.0},
            ],
            totals={"grandTotal": 271.25},
        )
    elif document_type == DocumentType.AV_LIST:
        data.update(
            title="Availability List",
            subtitle="Current Stock",
            items=[
                {"name": "Lavender 'Hidcote'", "size": "9cm", "grade": "A", "qty": 500, "price": 2.5},
                {"name": "Rosemary 'Miss Jessopp'", "size": "9cm", "grade": "A", "qty": 350, "price": 2.75},
                {"name": "Salvia 'Hot Lips'", "size": "1L", "grade": "A", "qty": 200, "price": 4.0},
                {"name": "Hebe 'Autumn Glory'", "size": "2L", "grade": "A+", "qty": 150, "price": 5.5},
            ],
        )
    elif document_type == DocumentType.LOOKIN_GOOD:
        data.update(
            title="Looking Good List",
            subtitle="Featured Plants This Week",
            items=[
                {"name": "Camellia japonica", "description": "Beautiful pink blooms, perfect for spring"},
                {"name": "Magnolia stellata", "description": "Star magnolia, early spring flowering"},
                {"name": "Prunus 'Kanzan'", "description": "Japanese cherry, stunning pink blossom"},
            ],
        )
    return data
