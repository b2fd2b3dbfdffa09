"""Typed failures raised by library operations.

Every failure belongs to one of five kinds:
- ValidationError: bad or missing dates, amounts, lengths
- PreconditionError: entity is in the wrong state for the operation
- ConflictError: proposed dates collide with the item's schedule
- ConsistencyError: the operation would leave the ledger or item state broken
- NotFoundError: a referenced entity does not exist

Callers catch LibraryError (or one of the kinds) and decide how to present it.
"""

from typing import Optional


class LibraryError(Exception):
    """Base class for all library failures."""

    message = "Library operation failed"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)


class ValidationError(LibraryError):
    message = "Given values failed to validate"


class PreconditionError(LibraryError):
    message = "Operation not allowed in the current state"


class ConflictError(LibraryError):
    message = "Operation conflicts with the item's schedule"


class ConsistencyError(LibraryError):
    message = "Operation would leave the library in an inconsistent state"


class NotFoundError(LibraryError):
    message = "Library object not found"


# -----------------------------------------------------------------------------
# Validation
# -----------------------------------------------------------------------------


class DateInFuture(ValidationError):
    message = "Given date is in the future"


class InvalidLoanDates(ValidationError):
    message = "Given dates result in an impossible loan"


class InvalidLoanLength(ValidationError):
    message = "Given loan length is not a positive number of days"


class InvalidRenewalDate(ValidationError):
    message = "Renewal date must be after the loan's current due date"


class MissingDueDate(ValidationError):
    message = "Loan is missing its due date"


class InvalidPaymentAmount(ValidationError):
    message = "Fine payment amount is invalid"


# -----------------------------------------------------------------------------
# Precondition
# -----------------------------------------------------------------------------


class MemberArchived(PreconditionError):
    message = "Member has been archived and cannot be loaned items"


class ItemUnavailable(PreconditionError):
    message = "Item is already on loan or not allowed to be loaned"


class NotOnLoan(PreconditionError):
    message = "Loan is not currently on loan"


class NotScheduled(PreconditionError):
    message = "Loan must be scheduled to give the item"


class UnresolvedFine(PreconditionError):
    message = "Item would be returned late; charge or waive a fine first"


class RenewalLimitReached(PreconditionError):
    message = "Loan has been renewed the maximum number of times allowed"


class NotLate(PreconditionError):
    message = "Item is not late on the given date"


class AlreadyFined(PreconditionError):
    message = "A fine has already been charged for this loan"


class AlreadyCancelled(PreconditionError):
    message = "Fine has already been cancelled"


class NothingOwed(PreconditionError):
    message = "Member does not owe the library money"


class ItemOnLoan(PreconditionError):
    message = "Deletion cannot be completed while an item is on loan"


class ActiveFineExists(PreconditionError):
    message = "Deletion cannot be completed while a fine is active"


class HasDependents(PreconditionError):
    message = "Object has dependent library objects"

    def __init__(self, dependents: list, message: Optional[str] = None):
        self.dependents = dependents
        super().__init__(message or f"{self.message} ({len(dependents)} found)")


class InsufficientPermissions(PreconditionError):
    message = "Insufficient permissions"


# -----------------------------------------------------------------------------
# Conflict
# -----------------------------------------------------------------------------


class ScheduleConflict(ItemUnavailable, ConflictError):
    message = "Item is already scheduled to be on loan during the given dates"


class RenewalConflict(ConflictError):
    message = "Cannot renew loan as it would clash with scheduled loan(s)"


# -----------------------------------------------------------------------------
# Consistency
# -----------------------------------------------------------------------------


class NegativeBalance(ConsistencyError):
    message = "Cancelling the fine would leave the member owing less than nothing"


class PaymentExceedsDebt(ConsistencyError):
    message = "Payment is greater than the amount owed by the member"


class GiveAfterScheduleFailed(ConsistencyError):
    message = (
        "Loan was scheduled but giving the item to the member failed; "
        "the loan was not created"
    )


# -----------------------------------------------------------------------------
# Not found
# -----------------------------------------------------------------------------


class ItemNotFound(NotFoundError):
    message = "No item found with that ID"


class MemberNotFound(NotFoundError):
    message = "No member found with that ID"


class LoanNotFound(NotFoundError):
    message = "No loan found"


class FineNotFound(NotFoundError):
    message = "No fine found with that ID"


class ObjectNotFound(NotFoundError):
    message = "Given ID does not belong to a valid library object"


class UnknownOption(NotFoundError):
    message = "Option does not exist"
