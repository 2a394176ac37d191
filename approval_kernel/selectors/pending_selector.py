"""
Module: approval_kernel.selectors.pending_selector
Responsibility: Read-only queries over the document tables: the pending
    documents of one request type, search-filtered, most recent first,
    plus their total count.
Architecture position: Kernel > Selectors.  May import from db/ and models/.
    Selectors NEVER create, modify, or delete data.

Invariants enforced:
    - Read-only access: no add/delete/flush/commit on the caller's session.
    - Source order is created_at descending, id ascending, so the merged
      queue can be built from each source's prefix.
    - Search is a case-insensitive substring match over number, title and
      description with LIKE wildcards escaped.
"""

from __future__ import annotations

from collections.abc import Collection

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from approval_kernel.domain.approval_item import RequestType
from approval_kernel.domain.query import SourcePage
from approval_kernel.models.documents import DOCUMENT_MODELS


class PendingDocumentSelector:
    """Queries pending documents for the approval queue."""

    def __init__(self, session: Session):
        self.session = session

    def list_pending(
        self,
        request_type: RequestType,
        statuses: Collection[str],
        *,
        search: str = "",
        limit: int | None = None,
    ) -> SourcePage:
        """Return the first ``limit`` pending documents and the full count.

        ``limit=0`` returns counts only; ``limit=None`` returns everything.
        """
        model = DOCUMENT_MODELS[request_type]
        conditions = [model.status.in_(list(statuses))]
        needle = search.strip()
        if needle:
            conditions.append(
                or_(
                    model.number.icontains(needle, autoescape=True),
                    model.title.icontains(needle, autoescape=True),
                    model.description.icontains(needle, autoescape=True),
                )
            )

        total = self.session.execute(
            select(func.count()).select_from(model).where(*conditions)
        ).scalar_one()

        if limit == 0:
            return SourcePage(items=(), total=total)

        stmt = (
            select(model)
            .where(*conditions)
            .order_by(model.created_at.desc(), model.id.asc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)

        rows = self.session.execute(stmt).scalars().all()
        return SourcePage(items=tuple(row.to_item() for row in rows), total=total)
