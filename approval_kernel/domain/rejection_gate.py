"""Local validation that runs before any approve/reject leaves the process."""

from __future__ import annotations

from approval_kernel.domain.approval_item import ApprovalAction
from approval_kernel.exceptions import InvalidReasonError


def require_reason(action: ApprovalAction, reason: str | None) -> str | None:
    """Return the reason to dispatch with, or raise ``InvalidReasonError``.

    Rejections need a non-empty, non-whitespace reason.  The reason is
    returned verbatim so every item of a bulk rejection receives the same
    string.  Approvals carry no reason.
    """
    if action is ApprovalAction.APPROVE:
        return None
    if not isinstance(reason, str) or not reason.strip():
        raise InvalidReasonError(reason)
    return reason
