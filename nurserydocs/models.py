from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel, create_engine, Session

from . import config


class DocumentType(str, Enum):
    INVOICE = "invoice"
    DELIVERY_DOCKET = "delivery_docket"
    ORDER_CONFIRMATION = "order_confirmation"
    AV_LIST = "av_list"
    LOOKIN_GOOD = "lookin_good"


class TemplateStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DocumentTemplate(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: Optional[str] = None
    document_type: DocumentType = Field(index=True)
    status: TemplateStatus = Field(default=TemplateStatus.DRAFT)
    current_version_id: Optional[int] = None
    published_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class DocumentTemplateVersion(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    template_id: int = Field(foreign_key="documenttemplate.id", index=True)
    version_number: int
    layout: list = Field(default_factory=list, sa_column=Column(JSON))
    variables: dict = Field(default_factory=dict, sa_column=Column(JSON))
    sample_data: dict = Field(default_factory=dict, sa_column=Column(JSON))
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


engine = create_engine(f"sqlite:///{config.DB_PATH}")


def reset_engine() -> None:
    global engine
    engine = create_engine(f"sqlite:///{config.DB_PATH}")


def init_db() -> None:
    config.OUT_DIR.mkdir(parents=True, exist_ok=True)
    SQLModel.metadata.create_all(engine)


def get_session() -> Session:
    return Session(engine, expire_on_commit=False)
