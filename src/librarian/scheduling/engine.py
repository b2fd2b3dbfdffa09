"""Interval scheduling for item loans.

An item's loans form its loan index: every loan (past, open, scheduled)
as an interval, ordered by start. A proposed loan can be scheduled only if
it fits strictly inside a gap of that index. Touching boundaries count as
a clash, so an item cannot be handed over on the day it comes back.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoanInterval:
    """The dates a loan occupies an item."""

    start: datetime
    end: datetime
    loan_id: Optional[str] = None

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


def can_schedule(
    proposed_start: datetime,
    proposed_end: datetime,
    loans: Sequence[LoanInterval],
) -> bool:
    """Check whether a proposed interval fits the loan index without overlap.

    Gaps are checked in chronological order: before the first loan, between
    each neighbouring pair, then after the last loan. The first gap that fits
    wins. All comparisons are strict.

    Args:
        proposed_start: Start of the proposed loan
        proposed_end: End of the proposed loan (not before proposed_start)
        loans: Existing intervals, sorted by start

    Returns:
        True if no existing interval is touched
    """
    if not loans:
        return True

    for position, current in enumerate(loans):
        if position == 0:
            fits = proposed_end < current.start
        else:
            previous = loans[position - 1]
            fits = proposed_start > previous.end and proposed_end < current.start

        if fits:
            logger.debug("Proposed loan fits before index position %d", position)
            return True

    return proposed_start > loans[-1].end


def build_loan_index(loans: Iterable, exclude_loan_id: Optional[str] = None) -> list[LoanInterval]:
    """Build a sorted loan index from loan records.

    Each loan occupies its effective interval: actual loaned/returned dates
    where recorded, scheduled dates otherwise. Loans starting at the same
    moment are ordered by creation time, then ID.

    Args:
        loans: Loan records for a single item
        exclude_loan_id: Loan to leave out, e.g. the loan being renewed

    Returns:
        Intervals sorted by start
    """
    keyed = []
    for loan in loans:
        if exclude_loan_id is not None and loan.id == exclude_loan_id:
            continue
        start = loan.effective_start
        end = loan.effective_end or start
        keyed.append(((start, loan.created_at or "", loan.id), LoanInterval(start, end, loan.id)))

    keyed.sort(key=lambda pair: pair[0])
    return [interval for _, interval in keyed]


def find_interval_at(loans: Sequence[LoanInterval], moment: datetime) -> Optional[LoanInterval]:
    """Find the interval in a loan index covering a moment, if any."""
    for interval in loans:
        if interval.contains(moment):
            return interval
    return None
