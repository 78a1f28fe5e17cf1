"""Shared domain error messages and error types."""

from typing import Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations or a busy resource."""


class InvalidTransition(ConflictError):
    """A statement line cannot move from its current status to the requested one."""

    def __init__(self, line_id: int, current: str, target: str):
        self.line_id = line_id
        self.current = current
        self.target = target
        super().__init__(
            f"Line {line_id} cannot go from '{current}' to '{target}'"
        )


class MissingAccountMapping(DomainError):
    """The tenant's chart lacks an account required to write an event."""

    def __init__(self, role: str, detail: Optional[str] = None):
        self.role = role
        message = f"No account mapped for '{role}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class UnknownReferenceOnReversal(NotFoundError):
    """A reversal was requested for a reference with nothing left to reverse."""

    def __init__(self, reference_id: str):
        self.reference_id = reference_id
        super().__init__(f"No unreversed entries for reference '{reference_id}'")


class InvalidStatementLine(ValidationError):
    """A bank statement line failed validation at import time."""

    def __init__(self, line_number: Optional[int], reason: str):
        self.line_number = line_number
        self.reason = reason
        label = f"Line {line_number}" if line_number is not None else "Line"
        super().__init__(f"{label}: {reason}")


class LedgerInvariantError(RuntimeError):
    """Internal ledger invariant violated.

    Not a DomainError: callers that render domain errors to users must not
    catch these.
    """


class ImbalancedWriteAttempt(LedgerInvariantError):
    """A set of journal legs did not satisfy the double-entry invariant."""


def account_not_found(code: str) -> str:
    """Return message for missing ledger account."""
    return f"Account '{code}' not found"


def invoice_not_found(invoice_id: int | str) -> str:
    """Return message for missing invoice."""
    return f"Invoice {invoice_id} not found"


def statement_not_found(statement_id: int) -> str:
    """Return message for missing bank statement."""
    return f"Bank statement {statement_id} not found"


def line_not_found(line_id: int) -> str:
    """Return message for missing bank statement line."""
    return f"Statement line {line_id} not found"
