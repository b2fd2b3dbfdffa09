"""Due date arithmetic for loans."""

from datetime import datetime

from ..clock import as_utc
from ..errors import MissingDueDate

SECONDS_PER_DAY = 86400


def days_until_due(loan, reference: datetime) -> int:
    """Whole days between a reference moment and a loan's due date.

    Counts complete elapsed days, so anything under 24 hours either side
    of the due moment is 0 (due today).

    Args:
        loan: Loan with an ``end`` due date
        reference: Moment to measure from

    Returns:
        Positive if due in the future, 0 if due today, negative if late

    Raises:
        MissingDueDate: If the loan has no due date
    """
    due = loan.end
    if due is None:
        raise MissingDueDate()

    delta = as_utc(due) - as_utc(reference)
    days = int(abs(delta.total_seconds()) // SECONDS_PER_DAY)
    return days if delta.total_seconds() >= 0 else -days


def is_late(loan, reference: datetime) -> bool:
    """Check if a loan is overdue at the reference moment."""
    return days_until_due(loan, reference) < 0


def describe_due(days: int) -> str:
    """Human readable form of a days_until_due value.

    Examples:
        >>> describe_due(0)
        'Due today'
        >>> describe_due(1)
        'Due in 1 day'
        >>> describe_due(-3)
        '3 days late'
    """
    if days == 0:
        return "Due today"
    count = abs(days)
    unit = "day" if count == 1 else "days"
    if days > 0:
        return f"Due in {count} {unit}"
    return f"{count} {unit} late"
