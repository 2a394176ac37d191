"""
Module: approval_kernel.db.base
Responsibility: Declarative base for the SQLAlchemy ORM models of the
    reference document backend.  Provides the type annotation map for
    consistent column types.
Architecture position: Kernel > DB.  Lowest-level import target within the
    kernel.  MUST NOT import from models/, services/, selectors/, domain/.

Invariants enforced:
    - Integer primary keys per table: every document type keeps its own
      id space, which is why queue items are keyed by (type, id).
    - Decimal precision: Python Decimal maps to Numeric(38, 9).  NEVER use
      float for monetary amounts.
    - datetime maps to DateTime(timezone=True).
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import DateTime, Integer, Numeric
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """
    Declarative base for all document models.

    Guarantees:
        - id is an autoincrement integer, unique only within its table.
        - Decimal maps to Numeric(38, 9).
        - datetime maps to DateTime(timezone=True).
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
    }

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
