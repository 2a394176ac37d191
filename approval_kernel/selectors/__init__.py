"""Selectors for the approval kernel (read side)."""

from approval_kernel.selectors.pending_selector import PendingDocumentSelector

__all__ = ["PendingDocumentSelector"]
