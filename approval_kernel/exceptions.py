"""
Typed Exception Hierarchy for the Approval Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

The approval queue talks to many independent back-office sources.  Callers
must tell a dead source apart from a rejected action, and a rejected action
apart from a programming defect in the dispatch table, without parsing
message strings.

Every error:
  1. Has a TYPED exception class (catch by type, not message)
  2. Has a CODE attribute (machine-readable, API-safe)
  3. Carries structured DATA (not just a message string)

Example:
    try:
        await workbench.run_single_action(key, ApprovalAction.REJECT, reason)
    except InvalidReasonError:
        prompt_for_reason()              # local, nothing was sent
    except ActionRejectedError as e:
        show_error(e.item_id, e.cause)   # this one item failed

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    ApprovalKernelError (base)
    |
    +-- QueryError
    |   +-- InvalidQueryError
    |   +-- SourceUnavailableError
    |
    +-- ActionError
    |   +-- ActionRejectedError
    |   +-- InvalidReasonError
    |   +-- BulkOperationInProgressError
    |
    +-- DispatchError
    |   +-- UnknownRequestTypeError
    |   +-- MissingHandlerError
    |
    +-- SelectionError
    |
    +-- DocumentError
    |   +-- DocumentNotFoundError
    |   +-- DocumentNotPendingError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Query           | INVALID_QUERY               | page < 1, page_size <= 0, bad type filter
                | SOURCE_UNAVAILABLE          | One source failed or timed out
----------------|-----------------------------|-----------------------------------------
Action          | ACTION_REJECTED             | A single approve/reject call failed
                | INVALID_REASON              | Empty/whitespace rejection reason
                | BULK_OPERATION_IN_PROGRESS  | Second bulk run while one is running
----------------|-----------------------------|-----------------------------------------
Dispatch        | UNKNOWN_REQUEST_TYPE        | No handler for the item's type
                | MISSING_HANDLER             | Registry built without every type
----------------|-----------------------------|-----------------------------------------
Selection       | SELECTION_ERROR             | Key not on the loaded page, empty bulk
----------------|-----------------------------|-----------------------------------------
Document        | DOCUMENT_NOT_FOUND          | Backing row does not exist
                | DOCUMENT_NOT_PENDING        | Row already decided (conflict)
----------------|-----------------------------|-----------------------------------------
Configuration   | INVALID_CONFIGURATION       | YAML missing keys or invalid values

===============================================================================
HANDLING PATTERNS
===============================================================================

1. SourceUnavailableError is never propagated out of the aggregator.  It is
   recorded as a SourceWarning on the page and the type's count degrades
   to zero.

2. ActionRejectedError propagates for single actions and is COLLECTED (not
   raised) inside bulk runs.

3. DispatchError subclasses indicate a registry gap.  They are fatal and are
   never collected or swallowed.
"""

from __future__ import annotations

from typing import Any


class ApprovalKernelError(Exception):
    """
    Base exception for all approval kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "APPROVAL_KERNEL_ERROR"


# Query-side exceptions


class QueryError(ApprovalKernelError):
    """Base exception for queue query errors."""

    code: str = "QUERY_ERROR"


class InvalidQueryError(QueryError):
    """The filter handed to the aggregator is malformed."""

    code: str = "INVALID_QUERY"

    def __init__(self, field: str, value: Any, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid query {field}={value!r}: {reason}")


class SourceUnavailableError(QueryError):
    """A backing collection failed to answer during aggregation."""

    code: str = "SOURCE_UNAVAILABLE"

    def __init__(self, request_type: str, reason: str):
        self.request_type = request_type
        self.reason = reason
        super().__init__(f"Source for {request_type} unavailable: {reason}")


# Action-side exceptions


class ActionError(ApprovalKernelError):
    """Base exception for approve/reject actions."""

    code: str = "ACTION_ERROR"


class ActionRejectedError(ActionError):
    """A single approve/reject call failed at its backend."""

    code: str = "ACTION_REJECTED"

    def __init__(self, request_type: str, item_id: int, action: str, cause: str):
        self.request_type = request_type
        self.item_id = item_id
        self.action = action
        self.cause = cause
        super().__init__(
            f"{action} of {request_type}#{item_id} rejected: {cause}"
        )


class InvalidReasonError(ActionError):
    """Rejection attempted without a usable reason."""

    code: str = "INVALID_REASON"

    def __init__(self, reason: str | None):
        self.reason = reason
        super().__init__("A non-empty reason is required to reject")


class BulkOperationInProgressError(ActionError):
    """A bulk run was requested while another is still running."""

    code: str = "BULK_OPERATION_IN_PROGRESS"

    def __init__(self, running_bulk_id: str | None):
        self.running_bulk_id = running_bulk_id
        super().__init__(
            f"Bulk operation {running_bulk_id} is still running"
        )


# Dispatch exceptions


class DispatchError(ApprovalKernelError):
    """Base exception for dispatch-table defects."""

    code: str = "DISPATCH_ERROR"


class UnknownRequestTypeError(DispatchError):
    """No handler is registered for a request type."""

    code: str = "UNKNOWN_REQUEST_TYPE"

    def __init__(self, request_type: Any):
        self.request_type = str(request_type)
        super().__init__(f"No approval handler for request type: {request_type!r}")


class MissingHandlerError(DispatchError):
    """A dispatch table was built without covering every request type."""

    code: str = "MISSING_HANDLER"

    def __init__(self, component: str, missing: list[str]):
        self.component = component
        self.missing = missing
        super().__init__(
            f"{component} is missing entries for: {', '.join(missing)}"
        )


# Selection exceptions


class SelectionError(ApprovalKernelError):
    """Selection operation is not valid for the loaded page."""

    code: str = "SELECTION_ERROR"

    def __init__(self, message: str, key: Any = None):
        self.key = key
        super().__init__(message)


# Backing document exceptions


class DocumentError(ApprovalKernelError):
    """Base exception for backing document errors."""

    code: str = "DOCUMENT_ERROR"


class DocumentNotFoundError(DocumentError):
    """The backing document row does not exist."""

    code: str = "DOCUMENT_NOT_FOUND"

    def __init__(self, request_type: str, document_id: int):
        self.request_type = request_type
        self.document_id = document_id
        super().__init__(f"{request_type}#{document_id} not found")


class DocumentNotPendingError(DocumentError):
    """The backing document has already left the pending state."""

    code: str = "DOCUMENT_NOT_PENDING"

    def __init__(self, request_type: str, document_id: int, status: str):
        self.request_type = request_type
        self.document_id = document_id
        self.status = status
        super().__init__(
            f"{request_type}#{document_id} is not pending (status={status})"
        )


# Configuration exceptions


class ConfigurationError(ApprovalKernelError):
    """Engine configuration could not be parsed or validated."""

    code: str = "INVALID_CONFIGURATION"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid configuration in {source}: {reason}")
