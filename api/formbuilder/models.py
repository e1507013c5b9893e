"""
Database Models for Form Builder
Forms and responses are stored as JSON documents; the scalar columns
next to them exist for lookup, search and ordering.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlmodel import JSON, Column, Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FormRecord(SQLModel, table=True):
    __tablename__ = "forms"

    id: str = Field(primary_key=True, max_length=24)
    title: str = Field(index=True)
    description: Optional[str] = None
    created_by: str = Field(default="anonymous", index=True)
    is_active: bool = Field(default=True, index=True)

    document: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)


class ResponseRecord(SQLModel, table=True):
    __tablename__ = "form_responses"

    id: str = Field(primary_key=True, max_length=24)
    form_id: str = Field(foreign_key="forms.id", index=True)
    submitted_by: str = Field(default="anonymous", index=True)
    score: int = 0
    max_score: int = 1
    time_spent: int = 0

    document: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))

    submitted_at: datetime = Field(default_factory=utcnow, index=True)
    created_at: datetime = Field(default_factory=utcnow, index=True)
