"""
Module: approval_kernel.models.documents
Responsibility: ORM persistence for the back-office documents that surface
    in the approval queue, one table per request type.

Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ value objects.

Invariants enforced:
    - Each table owns its id space.  Document ids repeat across tables,
      so consumers must key by (request type, id).
    - Document numbers are unique within their table.
    - A decision writes decided_at/decided_by once; rejections also store
      the rejection reason.

Audit relevance:
    decided_at, decided_by and rejection_reason record who closed a
    document and why.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from approval_kernel.db.base import Base
from approval_kernel.domain.approval_item import ApprovalItem, RequestType


class PendingDocumentMixin:
    """Columns shared by every approvable document table."""

    request_type: ClassVar[RequestType]

    number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, index=True)
    created_by: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    decided_at: Mapped[datetime | None] = mapped_column(nullable=True)
    decided_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_item(self) -> ApprovalItem:
        """Normalize this row into a queue item."""
        return ApprovalItem(
            type=self.request_type,
            id=self.id,
            number=self.number,
            title=self.title,
            description=self.description or "",
            amount=self.amount,
            status=self.status,
            created_at=self.created_at,
            created_by=self.created_by,
            entity_name=self.entity_name,
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.number} status={self.status}>"


class PurchaseRequisition(PendingDocumentMixin, Base):
    """PRF raised by a department; entity_name is the requesting department."""

    __tablename__ = "purchase_requisitions"
    request_type = RequestType.PURCHASE_REQUISITION


class PurchaseOrder(PendingDocumentMixin, Base):
    """PRO sent to a supplier; entity_name is the supplier."""

    __tablename__ = "purchase_orders"
    request_type = RequestType.PURCHASE_ORDER


class StoreStockTransfer(PendingDocumentMixin, Base):
    """Stock movement between a warehouse and a substore."""

    __tablename__ = "store_stock_transfers"
    request_type = RequestType.STORE_STOCK_TRANSFER


class LocationStockTransfer(PendingDocumentMixin, Base):
    """Transfer note between two operating locations."""

    __tablename__ = "location_stock_transfers"
    request_type = RequestType.LOCATION_STOCK_TRANSFER


class StockTransfer(PendingDocumentMixin, Base):
    """Stock-transfer slip."""

    __tablename__ = "stock_transfers"
    request_type = RequestType.STOCK_TRANSFER


class Expense(PendingDocumentMixin, Base):
    """Channel or department expense claim."""

    __tablename__ = "expenses"
    request_type = RequestType.EXPENSE


class CashLodgement(PendingDocumentMixin, Base):
    """Lodgement slip for cash banked by a channel."""

    __tablename__ = "cash_lodgements"
    request_type = RequestType.CASH_LODGEMENT


DOCUMENT_MODELS: dict[RequestType, type[PendingDocumentMixin]] = {
    model.request_type: model
    for model in (
        PurchaseRequisition,
        PurchaseOrder,
        StoreStockTransfer,
        LocationStockTransfer,
        StockTransfer,
        Expense,
        CashLodgement,
    )
}
