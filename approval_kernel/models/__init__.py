"""ORM models for the reference document backend."""

from approval_kernel.models.documents import (
    DOCUMENT_MODELS,
    CashLodgement,
    Expense,
    LocationStockTransfer,
    PendingDocumentMixin,
    PurchaseOrder,
    PurchaseRequisition,
    StockTransfer,
    StoreStockTransfer,
)

__all__ = [
    "DOCUMENT_MODELS",
    "CashLodgement",
    "Expense",
    "LocationStockTransfer",
    "PendingDocumentMixin",
    "PurchaseOrder",
    "PurchaseRequisition",
    "StockTransfer",
    "StoreStockTransfer",
]
