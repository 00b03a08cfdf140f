# Overview: Domain error taxonomy for assignment workflows.

from __future__ import annotations


class AssignmentError(Exception):
    """
    Base for every recoverable workflow failure.

    Services raise these; the engine boundary turns them into failed
    ServiceResults. Anything that is NOT an AssignmentError (storage down,
    driver errors) is an infrastructure failure and propagates.
    """
    error_code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AssignmentError):
    """400-level input problem (a rule pipeline failure)."""
    error_code = "validation"


class PermissionDeniedError(AssignmentError):
    """403-level: caller scope does not cover the target, or self-approval."""
    error_code = "permission"


class ConflictError(AssignmentError):
    """409-level: overlap, duplicate open record, or stale store on completion."""
    error_code = "conflict"


class NotFoundError(AssignmentError):
    """404-level: employee, store, profile or record id does not resolve."""
    error_code = "not_found"


class TransactionError(AssignmentError):
    """Atomic completion failed partway and was rolled back."""
    error_code = "transaction"


ERRORS_BY_CODE = {
    cls.error_code: cls
    for cls in (ValidationError, PermissionDeniedError, ConflictError, NotFoundError, TransactionError)
}
