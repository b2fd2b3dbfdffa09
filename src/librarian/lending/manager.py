"""Lending manager for loan operations.

Loans move through SCHEDULED -> ON_LOAN -> one of the returned states.
Every operation that reads an item's loan index and then writes a loan runs
under that item's lock and inside a single session, so two requests cannot
both claim the same dates.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..catalog.models import Item, Member
from ..clock import Clock, SystemClock, as_utc, format_timestamp
from ..config import Config, get_config
from ..db.sqlite import Database, get_db
from ..errors import (
    DateInFuture,
    GiveAfterScheduleFailed,
    InvalidLoanDates,
    InvalidLoanLength,
    InvalidRenewalDate,
    ItemUnavailable,
    LibraryError,
    LoanNotFound,
    MemberArchived,
    MissingDueDate,
    NotOnLoan,
    NotScheduled,
    RenewalConflict,
    RenewalLimitReached,
    ScheduleConflict,
    UnresolvedFine,
)
from ..lookups import detach, load_item, load_loan, load_member, loans_for_item
from ..notify import NotificationSink, NullNotifier, Severity, report_errors
from ..permissions import ActorContext, require_librarian
from ..scheduling import (
    LoanInterval,
    build_loan_index,
    can_schedule,
    days_until_due,
    find_interval_at,
    is_late,
)
from .models import Loan, LoanRenewal
from .schemas import LoanStatus, LoanSummary, OverdueReport

logger = logging.getLogger(__name__)


class LendingManager:
    """Manages scheduling, giving, returning and renewing loans."""

    def __init__(
        self,
        db: Optional[Database] = None,
        config: Optional[Config] = None,
        clock: Optional[Clock] = None,
        notifier: Optional[NotificationSink] = None,
        actor: Optional[ActorContext] = None,
    ):
        """Initialize lending manager.

        Args:
            db: Database instance
            config: Library options (loan length, renewal limit)
            clock: Source of the current time
            notifier: Where user-visible outcomes are sent
            actor: User performing operations, None for system callers
        """
        self.db = db or get_db()
        self.config = config or get_config()
        self.clock = clock or SystemClock()
        self.notifier = notifier or NullNotifier()
        self.actor = actor

    # -------------------------------------------------------------------------
    # Availability
    # -------------------------------------------------------------------------

    def loan_allowed(self, item_id: str) -> bool:
        """Check if the item may be loaned at all."""
        with self.db.get_session() as session:
            return bool(load_item(session, item_id).loanable)

    def on_loan(
        self,
        item_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> bool:
        """Check if an item is on loan.

        Given no dates, checks whether a member currently holds the item.
        Given dates, checks whether the range clashes with the item's loans.
        """
        with self.db.get_session() as session:
            item = load_item(session, item_id)
            if start is None and end is None:
                return item.on_loan

            start = as_utc(start or end)
            end = as_utc(end or start)
            index = build_loan_index(loans_for_item(session, item.id))
            return not can_schedule(start, end, index)

    def loanable(
        self,
        item_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> bool:
        """Check if the item may be loaned and is free over the given dates."""
        return self.loan_allowed(item_id) and not self.on_loan(item_id, start, end)

    def get_loan_index(self, item_id: str, exclude_loan_id: Optional[str] = None) -> list[LoanInterval]:
        """Get the item's loans as intervals sorted by start."""
        with self.db.get_session() as session:
            load_item(session, item_id)
            return build_loan_index(loans_for_item(session, item_id), exclude_loan_id)

    def fetch_loan_id(self, item_id: str, date: Optional[datetime] = None) -> str:
        """Find the ID of an item's loan.

        Args:
            item_id: Item ID
            date: Moment the loan must cover. If None, the current loan.

        Returns:
            Loan ID

        Raises:
            NotOnLoan: No date given and the item is not on loan
            LoanNotFound: No loan covers the date
        """
        with report_errors(self.notifier):
            with self.db.get_session() as session:
                item = load_item(session, item_id)
                if date is None:
                    return self.current_loan(session, item).id

                moment = as_utc(date)
                index = build_loan_index(loans_for_item(session, item.id))
                if not index or index[-1].end <= moment:
                    raise LoanNotFound("No loans found for that item on the given date")

                interval = find_interval_at(index, moment)
                if interval is None:
                    raise LoanNotFound("No loans found for that item on the given date")
                return interval.loan_id

    # -------------------------------------------------------------------------
    # Scheduling and giving
    # -------------------------------------------------------------------------

    def schedule_loan(
        self,
        item_id: str,
        member_id: str,
        start: datetime,
        end: datetime,
    ) -> Loan:
        """Schedule a loan without handing the item over.

        Args:
            item_id: Item to lend
            member_id: Member borrowing the item
            start: Scheduled start
            end: Due date

        Returns:
            The new loan, in SCHEDULED state

        Raises:
            InvalidLoanDates: end is before start
            MemberArchived: Member cannot borrow
            ItemUnavailable: Item is not loanable or the dates clash
        """
        with report_errors(self.notifier):
            require_librarian(self.actor)
            with self.db.item_lock(item_id):
                with self.db.get_session() as session:
                    loan = self._schedule(session, item_id, member_id, as_utc(start), as_utc(end))
                    detach(session, loan)

        logger.info("Scheduled loan %s of item %s to member %s", loan.id, item_id, member_id)
        self.notifier.notify("Loan scheduled", Severity.SUCCESS)
        return loan

    def give_item(self, loan_id: str, date: Optional[datetime] = None) -> Loan:
        """Hand a scheduled loan's item to its member.

        Args:
            loan_id: Loan ID
            date: When the item was handed over (default: now)

        Returns:
            The loan, now ON_LOAN

        Raises:
            NotScheduled: Loan is not scheduled
            ItemUnavailable: Item is already with a member
        """
        with report_errors(self.notifier):
            require_librarian(self.actor)
            when = as_utc(date) if date else self.clock.now()

            with self.db.get_session() as session:
                item_id = load_loan(session, loan_id).item_id

            with self.db.item_lock(item_id):
                with self.db.get_session() as session:
                    loan = load_loan(session, loan_id)
                    self._give(session, loan, when)
                    detach(session, loan)

        logger.info("Gave item %s to member %s on loan %s", item_id, loan.member_id, loan.id)
        self.notifier.notify("Item given to member", Severity.SUCCESS)
        return loan

    def loan_item(
        self,
        item_id: str,
        member_id: str,
        length_days: Optional[int] = None,
    ) -> Loan:
        """Lend an item starting now.

        Schedules and gives in one transaction. If giving fails the schedule
        is rolled back too and GiveAfterScheduleFailed is raised.

        Args:
            item_id: Item to lend
            member_id: Member borrowing the item
            length_days: Loan length (default: configured loan length)

        Returns:
            The new loan, ON_LOAN
        """
        with report_errors(self.notifier):
            require_librarian(self.actor)

            if length_days is None:
                length_days = self.config.default_loan_length_days
            if isinstance(length_days, bool) or not isinstance(length_days, int) or length_days < 1:
                raise InvalidLoanLength(f"Given loan length is invalid: {length_days!r}")

            start = self.clock.now()
            end = start + timedelta(days=length_days)

            with self.db.item_lock(item_id):
                with self.db.get_session() as session:
                    loan = self._schedule(session, item_id, member_id, start, end)
                    try:
                        self._give(session, loan, start)
                    except LibraryError as e:
                        logger.error("Loan %s scheduled but could not be given: %s", loan.id, e)
                        raise GiveAfterScheduleFailed() from e
                    detach(session, loan)

        logger.info("Loaned item %s to member %s until %s", item_id, member_id, loan.end_date)
        self.notifier.notify(f"Item loaned for {length_days} days", Severity.SUCCESS)
        return loan

    # -------------------------------------------------------------------------
    # Returning and renewing
    # -------------------------------------------------------------------------

    def return_item(
        self,
        item_id: str,
        date: Optional[datetime] = None,
        waive_fine: bool = False,
        session: Optional[Session] = None,
    ) -> Loan:
        """Return an item to the library.

        Args:
            item_id: Item ID
            date: When the item came back (default: now)
            waive_fine: Allow a late return without a fine
            session: Run inside the caller's transaction; the caller then
                     holds the item lock and handles errors

        Returns:
            The closed loan

        Raises:
            DateInFuture: date is after now
            NotOnLoan: Item's loan is not on loan
            UnresolvedFine: Item is late and no fine was charged or waived
        """
        if session is not None:
            when = as_utc(date) if date else self.clock.now()
            return self._return(session, item_id, when, waive_fine)

        with report_errors(self.notifier):
            require_librarian(self.actor)
            when = as_utc(date) if date else self.clock.now()
            with self.db.item_lock(item_id):
                with self.db.get_session() as s:
                    loan = self._return(s, item_id, when, waive_fine)
                    detach(s, loan)

        self.notifier.notify(f"Item returned ({LoanStatus(loan.status).label})", Severity.SUCCESS)
        return loan

    def renew_item(
        self,
        loan_id: str,
        new_end: datetime,
        date: Optional[datetime] = None,
    ) -> Loan:
        """Extend an open loan's due date.

        Args:
            loan_id: Loan ID
            new_end: New due date
            date: When the renewal happened (default: now)

        Returns:
            The renewed loan

        Raises:
            NotOnLoan: Loan is not on loan
            RenewalLimitReached: Loan was renewed the configured maximum times
            InvalidRenewalDate: new_end is not after the current due date
            RenewalConflict: Extended loan would clash with another loan
        """
        with report_errors(self.notifier):
            require_librarian(self.actor)
            when = as_utc(date) if date else self.clock.now()
            new_end = as_utc(new_end)

            with self.db.get_session() as session:
                item_id = load_loan(session, loan_id).item_id

            with self.db.item_lock(item_id):
                with self.db.get_session() as session:
                    load_item(session, item_id, for_update=True)
                    loan = load_loan(session, loan_id)
                    self._renew(session, loan, new_end, when)
                    detach(session, loan)

        logger.info("Renewed loan %s until %s", loan.id, loan.end_date)
        self.notifier.notify("Loan renewed", Severity.SUCCESS)
        return loan

    def clean_item(self, item_id: str) -> Item:
        """Clear an item's holder and loan pointers.

        Only for repairing items whose loan has gone missing; this is not a
        way to return an item.
        """
        with report_errors(self.notifier):
            require_librarian(self.actor)
            with self.db.item_lock(item_id):
                with self.db.get_session() as session:
                    item = load_item(session, item_id, for_update=True)
                    self._clean(session, item)
                    detach(session, item)
        return item

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_loan(self, loan_id: str) -> Optional[Loan]:
        """Get a loan by ID.

        Args:
            loan_id: Loan ID

        Returns:
            Loan or None
        """
        with self.db.get_session() as session:
            loan = session.get(Loan, loan_id)
            if loan:
                session.expunge(loan)
            return loan

    def list_loans(
        self,
        item_id: Optional[str] = None,
        member_id: Optional[str] = None,
        status: Optional[LoanStatus] = None,
    ) -> list[Loan]:
        """List loans with optional filters, newest start first."""
        with self.db.get_session() as session:
            stmt = select(Loan)

            if item_id:
                stmt = stmt.where(Loan.item_id == item_id)
            if member_id:
                stmt = stmt.where(Loan.member_id == member_id)
            if status:
                stmt = stmt.where(Loan.status == status.value)

            stmt = stmt.order_by(Loan.start_date.desc())

            loans = session.execute(stmt).scalars().all()
            for loan in loans:
                session.expunge(loan)
            return list(loans)

    def get_overdue_loans(self, date: Optional[datetime] = None) -> OverdueReport:
        """Get report of open loans past their due date.

        Args:
            date: Moment to check against (default: now)

        Returns:
            OverdueReport, most overdue first
        """
        moment = as_utc(date) if date else self.clock.now()
        summaries = []

        with self.db.get_session() as session:
            stmt = select(Loan, Item.title, Member.name).join(
                Item, Item.id == Loan.item_id
            ).join(
                Member, Member.id == Loan.member_id
            ).where(
                Loan.status == LoanStatus.ON_LOAN.value,
                Loan.end_date.isnot(None),
            )

            for loan, title, name in session.execute(stmt).all():
                due_in = days_until_due(loan, moment)
                if due_in >= 0:
                    continue
                summaries.append(
                    LoanSummary(
                        id=loan.id,
                        item_title=title,
                        member_name=name,
                        status=LoanStatus(loan.status),
                        end=loan.end,
                        days_until_due=due_in,
                    )
                )

        summaries.sort(key=lambda s: s.days_until_due)
        return OverdueReport(
            loans=summaries,
            total_overdue=len(summaries),
            oldest_overdue_days=-summaries[0].days_until_due if summaries else 0,
        )

    # -------------------------------------------------------------------------
    # Session-level steps
    # -------------------------------------------------------------------------

    def _schedule(
        self,
        session: Session,
        item_id: str,
        member_id: str,
        start: datetime,
        end: datetime,
    ) -> Loan:
        if end < start:
            raise InvalidLoanDates()

        item = load_item(session, item_id, for_update=True)
        member = load_member(session, member_id)

        if member.archived:
            raise MemberArchived()
        if not item.loanable:
            raise ItemUnavailable("Item is not allowed to be loaned")

        index = build_loan_index(loans_for_item(session, item.id))
        if not can_schedule(start, end, index):
            raise ScheduleConflict()

        loan = Loan(
            item_id=item.id,
            member_id=member.id,
            status=LoanStatus.SCHEDULED.value,
            start_date=format_timestamp(start),
            end_date=format_timestamp(end),
            renewals=[],
        )
        session.add(loan)
        session.flush()
        return loan

    def _give(self, session: Session, loan: Loan, when: datetime) -> None:
        if loan.status != LoanStatus.SCHEDULED.value:
            raise NotScheduled("Loan is not scheduled")

        item = load_item(session, loan.item_id, for_update=True)
        if item.current_loan_id is not None:
            raise ItemUnavailable("Item is already on loan")

        # Leaving earlier or later than scheduled must still fit the schedule
        index = build_loan_index(loans_for_item(session, item.id), exclude_loan_id=loan.id)
        if not can_schedule(when, loan.end or when, index):
            raise ScheduleConflict()

        loan.status = LoanStatus.ON_LOAN.value
        loan.loaned_date = format_timestamp(when)
        item.current_member_id = loan.member_id
        item.current_loan_id = loan.id
        session.flush()

    def _return(self, session: Session, item_id: str, when: datetime, waive_fine: bool) -> Loan:
        if when > self.clock.now():
            raise DateInFuture()

        item = load_item(session, item_id, for_update=True)
        loan = self.current_loan(session, item)

        if not loan.is_open:
            raise NotOnLoan("Loan status reports item is not currently on loan")
        if loan.loaned_at and when < loan.loaned_at:
            raise InvalidLoanDates("Return date is before the item was loaned")

        late = is_late(loan, when)
        fined = loan.fine_id is not None
        if late and not fined and not waive_fine:
            raise UnresolvedFine()

        if fined:
            status = LoanStatus.RETURNED_LATE_WITH_FINE
        elif late:
            status = LoanStatus.RETURNED_LATE
        else:
            status = LoanStatus.RETURNED

        item.current_member_id = None
        item.current_loan_id = None
        loan.status = status.value
        loan.returned_date = format_timestamp(when)
        session.flush()

        logger.info("Returned item %s on loan %s as %s", item.id, loan.id, status.value)
        return loan

    def _renew(self, session: Session, loan: Loan, new_end: datetime, when: datetime) -> None:
        if not loan.is_open:
            raise NotOnLoan("A loan cannot be renewed unless it is on loan")

        limit = self.config.renewal_limit
        if limit > 0 and loan.renewal_count >= limit:
            raise RenewalLimitReached()

        current_end = loan.end
        if current_end is None:
            raise MissingDueDate()
        if new_end <= current_end:
            raise InvalidRenewalDate()

        index = build_loan_index(loans_for_item(session, loan.item_id), exclude_loan_id=loan.id)
        if not can_schedule(loan.start, new_end, index):
            raise RenewalConflict()

        loan.renewals.append(
            LoanRenewal(renewed_at=format_timestamp(when), previous_end=loan.end_date)
        )
        loan.end_date = format_timestamp(new_end)
        session.flush()

    def current_loan(self, session: Session, item: Item) -> Loan:
        """Resolve an item's open loan inside the caller's session.

        A pointer to a missing loan is cleared and committed before
        LoanNotFound is raised.
        """
        if item.current_loan_id is None:
            raise NotOnLoan("Item is not on loan")

        loan = session.get(Loan, item.current_loan_id)
        if loan is None:
            self._clean(session, item)
            # Keep the repair even though the operation fails
            session.commit()
            raise LoanNotFound(
                "Loan referenced by item not found; the item has been cleaned of loan details"
            )
        return loan

    def _clean(self, session: Session, item: Item) -> None:
        if item.current_member_id:
            self.notifier.notify(
                f"Member {item.current_member_id} has been removed from item", Severity.WARNING
            )
        if item.current_loan_id:
            self.notifier.notify(
                f"Loan {item.current_loan_id} has been removed from item", Severity.WARNING
            )
        logger.warning(
            "Cleaning item %s (member=%s, loan=%s)",
            item.id,
            item.current_member_id,
            item.current_loan_id,
        )
        item.current_member_id = None
        item.current_loan_id = None
        session.flush()
