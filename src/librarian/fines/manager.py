"""Fine manager for charging, cancelling and paying fines.

A member's owed total moves only through this manager and never drops
below zero.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from sqlalchemy import func, select

from ..clock import Clock, SystemClock, as_utc
from ..config import Config, get_config
from ..db.sqlite import Database, get_db
from ..errors import (
    AlreadyCancelled,
    AlreadyFined,
    InvalidPaymentAmount,
    NegativeBalance,
    NotLate,
    NothingOwed,
    PaymentExceedsDebt,
)
from ..lending.manager import LendingManager
from ..lending.models import Loan
from ..lookups import detach, load_fine, load_item, load_member
from ..notify import NotificationSink, NullNotifier, Severity, report_errors
from ..permissions import ActorContext, require_librarian
from ..scheduling import days_until_due
from .models import Fine
from .schemas import FineStatus, MemberBalance

logger = logging.getLogger(__name__)


class FineManager:
    """Manages the fines ledger."""

    def __init__(
        self,
        db: Optional[Database] = None,
        config: Optional[Config] = None,
        clock: Optional[Clock] = None,
        notifier: Optional[NotificationSink] = None,
        actor: Optional[ActorContext] = None,
        lending: Optional[LendingManager] = None,
    ):
        """Initialize fine manager.

        Args:
            db: Database instance
            config: Library options (daily fine rate)
            clock: Source of the current time
            notifier: Where user-visible outcomes are sent
            actor: User performing operations, None for system callers
            lending: Lending manager used to return fined items
        """
        self.db = db or get_db()
        self.config = config or get_config()
        self.clock = clock or SystemClock()
        self.notifier = notifier or NullNotifier()
        self.actor = actor
        self.lending = lending or LendingManager(
            self.db, self.config, self.clock, self.notifier, actor
        )

    def create_fine(
        self,
        item_id: str,
        date: Optional[datetime] = None,
        auto_return: bool = True,
    ) -> Union[Fine, Loan]:
        """Fine the member holding a late item.

        The fine is days late times the configured daily rate.

        Args:
            item_id: Item on loan
            date: Moment lateness is measured at (default: now)
            auto_return: Also return the item on that date

        Returns:
            The closed loan if auto_return, otherwise the new fine

        Raises:
            NotOnLoan: Item is not on loan
            AlreadyFined: The current loan was fined before
            NotLate: Item is not late on the given date
        """
        with report_errors(self.notifier):
            require_librarian(self.actor)
            when = as_utc(date) if date else self.clock.now()

            with self.db.item_lock(item_id):
                with self.db.get_session() as session:
                    item = load_item(session, item_id, for_update=True)
                    loan = self.lending.current_loan(session, item)
                    if loan.fine_id is not None:
                        raise AlreadyFined()

                    due_in = days_until_due(loan, when)
                    if due_in >= 0:
                        raise NotLate()

                    days_late = -due_in
                    amount = Decimal(days_late) * self.config.daily_fine_rate
                    member = load_member(session, loan.member_id)

                    fine = Fine(
                        item_id=item.id,
                        loan_id=loan.id,
                        member_id=member.id,
                        amount=amount,
                        status=FineStatus.ACTIVE.value,
                    )
                    session.add(fine)
                    session.flush()

                    loan.fine_id = fine.id
                    member.owed = (member.owed or Decimal("0")) + amount
                    session.flush()

                    logger.info(
                        "Fined member %s %s for item %s (%d days late)",
                        member.id,
                        amount,
                        item.id,
                        days_late,
                    )

                    if auto_return:
                        loan = self.lending.return_item(
                            item.id, when, waive_fine=True, session=session
                        )
                        detach(session, fine, loan)
                    else:
                        detach(session, fine)

        self.notifier.notify(f"Member fined {amount} for {days_late} days late", Severity.SUCCESS)
        return loan if auto_return else fine

    def cancel_fine(self, fine_id: str) -> Fine:
        """Cancel a fine so it no longer needs to be paid.

        Raises:
            AlreadyCancelled: Fine was cancelled before
            NegativeBalance: Member would owe less than nothing
        """
        with report_errors(self.notifier):
            require_librarian(self.actor)
            with self.db.get_session() as session:
                fine = load_fine(session, fine_id)
                if not fine.is_active:
                    raise AlreadyCancelled()

                member = load_member(session, fine.member_id)
                owed = member.owed or Decimal("0")
                if owed - fine.amount < 0:
                    raise NegativeBalance()

                member.owed = owed - fine.amount
                fine.status = FineStatus.CANCELLED.value
                detach(session, fine)

        logger.info("Cancelled fine %s of %s", fine.id, fine.amount)
        self.notifier.notify("Fine cancelled", Severity.SUCCESS)
        return fine

    def pay_fines(self, member_id: str, amount: Union[Decimal, int, str]) -> Decimal:
        """Record a payment towards a member's fines.

        Args:
            member_id: Member ID
            amount: Amount paid

        Returns:
            Amount still owed

        Raises:
            InvalidPaymentAmount: amount is not a positive number
            NothingOwed: Member owes nothing
            PaymentExceedsDebt: amount is more than the member owes
        """
        with report_errors(self.notifier):
            require_librarian(self.actor)
            try:
                payment = Decimal(str(amount))
            except ArithmeticError:
                raise InvalidPaymentAmount()
            if not payment.is_finite() or payment <= 0:
                raise InvalidPaymentAmount()

            with self.db.get_session() as session:
                member = load_member(session, member_id)
                owed = member.owed or Decimal("0")
                if owed <= 0:
                    raise NothingOwed()
                if payment > owed:
                    raise PaymentExceedsDebt()

                member.owed = owed - payment
                remaining = member.owed

        logger.info("Member %s paid %s, %s remaining", member_id, payment, remaining)
        self.notifier.notify(f"Payment of {payment} recorded", Severity.SUCCESS)
        return remaining

    def get_fine(self, fine_id: str) -> Optional[Fine]:
        """Get a fine by ID.

        Args:
            fine_id: Fine ID

        Returns:
            Fine or None
        """
        with self.db.get_session() as session:
            fine = session.get(Fine, fine_id)
            if fine:
                session.expunge(fine)
            return fine

    def list_fines(
        self,
        member_id: Optional[str] = None,
        item_id: Optional[str] = None,
        status: Optional[FineStatus] = None,
    ) -> list[Fine]:
        """List fines with optional filters, newest first."""
        with self.db.get_session() as session:
            stmt = select(Fine)

            if member_id:
                stmt = stmt.where(Fine.member_id == member_id)
            if item_id:
                stmt = stmt.where(Fine.item_id == item_id)
            if status:
                stmt = stmt.where(Fine.status == status.value)

            stmt = stmt.order_by(Fine.created_at.desc())

            fines = session.execute(stmt).scalars().all()
            for fine in fines:
                session.expunge(fine)
            return list(fines)

    def get_balance(self, member_id: str) -> MemberBalance:
        """Get a member's owed total and fine counts."""
        with self.db.get_session() as session:
            member = load_member(session, member_id)
            counts = dict(
                session.execute(
                    select(Fine.status, func.count())
                    .where(Fine.member_id == member.id)
                    .group_by(Fine.status)
                ).all()
            )
            return MemberBalance(
                member_id=member.id,
                owed=member.owed or Decimal("0"),
                active_fines=counts.get(FineStatus.ACTIVE.value, 0),
                cancelled_fines=counts.get(FineStatus.CANCELLED.value, 0),
            )
