"""
Approval Kernel

Core of the unified approval queue for the back office:
- Normalized pending items keyed by (type, id)
- Page-scoped selection for bulk actions
- Local rejection-reason validation
- Typed errors and structured logging
- SQLAlchemy persistence for the reference document backend
"""

__version__ = "0.1.0"
