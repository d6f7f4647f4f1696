"""
Typed exception hierarchy for the HOA ledger.

Every failure a caller can act on has its own class, a machine-readable
``code`` class attribute, and structured attributes.  Callers catch by type
and read fields; they never parse messages.

    try:
        ledger.post_entry(entry_id)
    except InvalidStateError as e:
        respond(code=e.code, status=e.current_status)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    HoaLedgerError (base)
    |
    +-- ValidationError
    |   +-- TooFewLinesError
    |   +-- UnbalancedEntryError
    |   +-- InvalidLineError
    |   +-- InvalidSourceTypeError
    |   +-- InvalidAccountError
    |
    +-- NotFoundError
    |   +-- EntryNotFoundError
    |   +-- AccountNotFoundError
    |
    +-- InvalidStateError
    |
    +-- ImmutabilityViolationError
    |
    +-- AccountError
    |   +-- DuplicateAccountCodeError
    |   +-- AccountHasChildrenError
    |   +-- AccountReferencedError
    |
    +-- PersistenceError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                    | When Raised
-------------|-------------------------|------------------------------------------
Validation   | TOO_FEW_LINES           | Fewer than the minimum number of lines
             | UNBALANCED_ENTRY        | Debits != credits beyond tolerance
             | INVALID_LINE            | Both sides, neither side, or negative
             | INVALID_SOURCE_TYPE     | Unknown source type
             | INVALID_ACCOUNT         | Inactive or foreign-association account
-------------|-------------------------|------------------------------------------
Not found    | ENTRY_NOT_FOUND         | Journal entry id does not exist
             | ACCOUNT_NOT_FOUND       | GL account id does not exist
-------------|-------------------------|------------------------------------------
State        | INVALID_STATE           | Operation not allowed in current status
             | IMMUTABILITY_VIOLATION  | Write to a posted/reversed record
-------------|-------------------------|------------------------------------------
Account      | DUPLICATE_ACCOUNT_CODE  | Code already used in the association
             | ACCOUNT_HAS_CHILDREN    | Deactivating a parent account
             | ACCOUNT_REFERENCED      | Deactivating an account with lines
-------------|-------------------------|------------------------------------------
Storage      | PERSISTENCE_ERROR       | Database failure; transaction rolled back

Validation errors are raised before any write.  PersistenceError always
chains the underlying driver exception as ``__cause__``.
"""

from decimal import Decimal


class HoaLedgerError(Exception):
    """
    Base exception for all HOA ledger errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    identification.
    """

    code: str = "HOA_LEDGER_ERROR"


# Validation exceptions


class ValidationError(HoaLedgerError):
    """Base exception for input that fails double-entry validation."""

    code: str = "VALIDATION_ERROR"


class TooFewLinesError(ValidationError):
    """Journal entry has fewer lines than the configured minimum."""

    code: str = "TOO_FEW_LINES"

    def __init__(self, line_count: int, minimum: int = 2):
        self.line_count = line_count
        self.minimum = minimum
        super().__init__(
            f"Journal entry must have at least {minimum} lines (got {line_count})"
        )


class UnbalancedEntryError(ValidationError):
    """Journal entry debits do not equal credits."""

    code: str = "UNBALANCED_ENTRY"

    def __init__(self, debits: Decimal, credits: Decimal, tolerance: Decimal):
        self.debits = debits
        self.credits = credits
        self.tolerance = tolerance
        self.difference = abs(debits - credits)
        super().__init__(f"Debits ({debits}) must equal credits ({credits})")


class InvalidLineError(ValidationError):
    """A single line violates the one-side-only rule or carries a negative amount."""

    code: str = "INVALID_LINE"

    BOTH_SIDES = "Each line can have either debit or credit, not both"
    NO_SIDE = "Each line must have either debit or credit amount"
    NEGATIVE = "Line amounts must not be negative"

    def __init__(self, line_number: int, reason: str):
        self.line_number = line_number
        self.reason = reason
        super().__init__(f"Line {line_number}: {reason}")


class InvalidSourceTypeError(ValidationError):
    """Source type is not one of the recognised values."""

    code: str = "INVALID_SOURCE_TYPE"

    def __init__(self, source_type: str):
        self.source_type = source_type
        super().__init__(f"Invalid source type: '{source_type}'")


class InvalidAccountError(ValidationError):
    """GL account cannot receive lines for this entry."""

    code: str = "INVALID_ACCOUNT"

    def __init__(self, account_id: str, reason: str):
        self.account_id = account_id
        self.reason = reason
        super().__init__(f"Invalid account {account_id}: {reason}")


# Lookup exceptions


class NotFoundError(HoaLedgerError):
    """Base exception for missing records."""

    code: str = "NOT_FOUND"


class EntryNotFoundError(NotFoundError):
    """Journal entry does not exist."""

    code: str = "ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Journal entry not found: {entry_id}")


class AccountNotFoundError(NotFoundError):
    """GL account does not exist."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"GL account not found: {account_id}")


# State exceptions


class InvalidStateError(HoaLedgerError):
    """
    Operation is not allowed in the entity's current status.

    Raised for posting a non-draft entry, reversing a non-posted entry,
    deleting a non-draft entry, and when a guarded status transition finds
    that another transaction changed the status first.
    """

    code: str = "INVALID_STATE"

    def __init__(
        self,
        entity_id: str,
        current_status: str,
        required_status: str,
        operation: str,
    ):
        self.entity_id = entity_id
        self.current_status = current_status
        self.required_status = required_status
        self.operation = operation
        super().__init__(
            f"Cannot {operation} journal entry {entity_id}: status is "
            f"'{current_status}', expected '{required_status}'"
        )


class ImmutabilityViolationError(HoaLedgerError):
    """
    Attempted to modify or delete an immutable record.

    Posted and reversed journal entries, and their lines, are immutable.
    GL account structural fields are immutable once referenced by posted lines.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Account exceptions


class AccountError(HoaLedgerError):
    """Base exception for chart-of-accounts maintenance errors."""

    code: str = "ACCOUNT_ERROR"


class DuplicateAccountCodeError(AccountError):
    """Account code already exists in the association."""

    code: str = "DUPLICATE_ACCOUNT_CODE"

    def __init__(self, association_id: str, account_code: str):
        self.association_id = association_id
        self.account_code = account_code
        super().__init__(
            f"Account code {account_code} already exists for association {association_id}"
        )


class AccountHasChildrenError(AccountError):
    """Account cannot be deactivated while it has child accounts."""

    code: str = "ACCOUNT_HAS_CHILDREN"

    def __init__(self, account_id: str, child_count: int):
        self.account_id = account_id
        self.child_count = child_count
        super().__init__(
            f"Cannot delete account {account_id} with {child_count} child account(s)"
        )


class AccountReferencedError(AccountError):
    """Account cannot be deactivated while journal lines reference it."""

    code: str = "ACCOUNT_REFERENCED"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(
            f"Cannot delete account {account_id} with existing transactions"
        )


# Storage exceptions


class PersistenceError(HoaLedgerError):
    """
    The storage layer failed and the transaction was rolled back.

    The driver exception is chained as ``__cause__``.
    """

    code: str = "PERSISTENCE_ERROR"

    def __init__(self, operation: str, cause: str):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Persistence failure during {operation}: {cause}")
