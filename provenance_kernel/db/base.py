"""
Module: provenance_kernel.db.base
Responsibility: Declarative base for the ORM models behind the SQL ledger.
Architecture position: Kernel > DB.  Imported by models/ only; imports
    nothing from the rest of the kernel.

Conventions:
    - Surrogate uuid4 primary key on every model (SQLAlchemy ``Uuid``:
      native UUID on PostgreSQL, CHAR(32) elsewhere).
    - ``datetime`` annotations map to timezone-aware columns.
"""

from datetime import datetime
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
        UUID: Uuid(),
    }

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
