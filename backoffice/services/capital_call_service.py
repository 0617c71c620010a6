"""
Capital call service — the accounting engine.

Owns the two multi-row writes of the system:

1. **Issue a call**: the :class:`CapitalCall` and one
   :class:`CapitalCallResponse` per LP currently in the fund are written in a
   single commit.  LPs admitted later get no row for that call.
2. **Record a payment**: the call row is locked, the LP's response is
   flushed, the call total is re-summed from the database and the derived
   call status is committed together with the payment.

Every derived value comes from :mod:`backoffice.services.accounting`.  Reads
report the call status as of today without writing it; the explicit
:meth:`CapitalCallService.refresh_call_statuses` sweep persists it.
"""

import logging
from datetime import date
from typing import Callable, List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from backoffice.core import permissions
from backoffice.core.exceptions import (
    BusinessRuleViolation,
    InvalidDateError,
    NotFoundException,
    ResponseNotFoundError,
)
from backoffice.models.capital_call import CapitalCall, CapitalCallResponse, CapitalCallStatus
from backoffice.models.user import User
from backoffice.repositories.capital_call_repo import CapitalCallRepository
from backoffice.repositories.fund_repo import FundRepository
from backoffice.repositories.lp_repo import LimitedPartnerRepository
from backoffice.schemas.capital_call import (
    CallResponseDetail,
    CapitalCallCreate,
    CapitalCallDetail,
    PaymentCreate,
    StatusRefreshResult,
)
from backoffice.schemas.limited_partner import LPStatementResponse, StatementLineResponse
from backoffice.services import accounting
from backoffice.services.fund_service import get_mutable_fund, get_visible_fund

logger = logging.getLogger(__name__)


class CapitalCallService:
    """
    Issues capital calls, records LP payments and keeps call status in step.

    ``clock`` returns "today"; tests pass a fixed date to exercise OVERDUE.
    """

    def __init__(
        self,
        call_repo: CapitalCallRepository,
        fund_repo: FundRepository,
        lp_repo: LimitedPartnerRepository,
        clock: Callable[[], date] = date.today,
    ):
        self._call_repo = call_repo
        self._fund_repo = fund_repo
        self._lp_repo = lp_repo
        self._clock = clock

    # ── Queries ──

    async def list_capital_calls(
        self,
        user: User,
        fund_id: Optional[UUID] = None,
        status: Optional[CapitalCallStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[CapitalCallDetail]:
        """
        Calls newest first.  ``status`` filters on the status derived as of
        today, so a call that has just gone overdue is listed as OVERDUE.
        """
        if fund_id is not None:
            await get_visible_fund(self._fund_repo, user, fund_id)
        else:
            permissions.require(
                permissions.visible_owner_filter(user) is None, "list capital calls across funds"
            )
        details = [self._to_detail(call) for call in await self._call_repo.list_calls(fund_id)]
        if status is not None:
            details = [d for d in details if d.status == status]
        return details[skip : skip + limit]

    async def get_capital_call(self, user: User, call_id: UUID) -> CapitalCallDetail:
        call = await self._load_call(call_id)
        await get_visible_fund(self._fund_repo, user, call.fund_id)
        return self._to_detail(call)

    # ── Commands ──

    async def create_capital_call(
        self, user: User, fund_id: UUID, call_in: CapitalCallCreate
    ) -> CapitalCallDetail:
        """
        Issue a capital call against every LP currently in the fund.

        Validation sequence:
        1. The fund must exist and the caller must be allowed to modify it.
        2. Without ``percentage``, it is derived from total commitments; a
           fund with no commitments cannot be called (:class:`NoCommitmentsError`).
        3. With ``percentage``, it must reproduce ``amount`` within a cent
           (:class:`ArithmeticAmbiguityError`).
        4. ``due_date`` must not precede ``call_date``.
        """
        fund = await get_mutable_fund(self._fund_repo, user, fund_id, "issue capital calls")

        lps = await self._lp_repo.get_by_fund(fund.id)
        total_commitments = accounting.sum_decimal(lp.commitment for lp in lps)
        amount = accounting.quantize_money(call_in.amount)

        if call_in.percentage is None:
            percentage = accounting.derive_call_percentage(amount, total_commitments, fund.id)
        else:
            percentage = accounting.quantize_percentage(call_in.percentage)
            accounting.check_call_consistency(amount, percentage, total_commitments)

        call_date = call_in.call_date or self._clock()
        if call_in.due_date < call_date:
            raise InvalidDateError(
                "due_date", call_in.due_date, constraint="must not be before call_date"
            )

        call = CapitalCall(
            fund_id=fund.id,
            call_date=call_date,
            due_date=call_in.due_date,
            amount=amount,
            percentage=percentage,
            description=call_in.description,
            status=CapitalCallStatus.PENDING,
        )
        shares = accounting.allocate_call_amount(amount, [lp.commitment for lp in lps])
        responses = [
            CapitalCallResponse(capital_call_id=call.id, lp_id=lp.id, expected_amount=share)
            for lp, share in zip(lps, shares)
        ]

        try:
            await self._call_repo.create_many([call, *responses])
        except IntegrityError as exc:
            await self._call_repo.rollback()
            logger.warning("IntegrityError creating capital call for fund %s: %s", fund.id, exc)
            raise BusinessRuleViolation(
                "Capital call could not be created; an LP or the fund may have been "
                "removed, or a database constraint was violated."
            )

        logger.info(
            "Issued capital call %s on fund %s: %s (%s%%) across %d LPs, due %s",
            call.id,
            fund.id,
            amount,
            percentage,
            len(responses),
            call.due_date,
            extra={"fund_id": str(fund.id), "capital_call_id": str(call.id)},
        )
        return self._to_detail(await self._load_call(call.id))

    async def record_payment(
        self, user: User, call_id: UUID, payment: PaymentCreate
    ) -> CapitalCallDetail:
        """
        Set an LP's paid amount for a call and re-derive both statuses.

        ``amount_paid`` replaces the stored value, so re-sending the same
        payment leaves the call unchanged.
        """
        call = await self._load_call(call_id, for_update=True)
        await get_mutable_fund(self._fund_repo, user, call.fund_id, "record payments")

        response = next((r for r in call.responses if r.lp_id == payment.lp_id), None)
        if response is None:
            raise ResponseNotFoundError(call.id, payment.lp_id)

        expected = response.expected_amount
        response.amount_paid = accounting.quantize_money(payment.amount_paid)
        response.date_paid = payment.date_paid
        if payment.notes is not None:
            response.notes = payment.notes
        response.status = accounting.derive_response_status(response.amount_paid, expected)

        try:
            await self._call_repo.stage(response)
            total_paid = await self._call_repo.sum_paid(call.id)
            call.status = accounting.derive_call_status(
                total_paid, call.amount, call.due_date, self._clock()
            )
            await self._call_repo.update(call)
        except IntegrityError as exc:
            await self._call_repo.rollback()
            logger.warning("IntegrityError recording payment on call %s: %s", call.id, exc)
            raise BusinessRuleViolation(
                "Payment could not be recorded; a database constraint was violated."
            )

        logger.info(
            "Recorded payment of %s from LP %s on call %s (expected %s): response %s, call %s",
            response.amount_paid,
            payment.lp_id,
            call.id,
            expected,
            response.status.value,
            call.status.value,
            extra={
                "fund_id": str(call.fund_id),
                "capital_call_id": str(call.id),
                "lp_id": str(payment.lp_id),
            },
        )
        return self._to_detail(await self._load_call(call.id))

    async def recompute_call_status(self, user: User, call_id: UUID) -> CapitalCallDetail:
        """Re-derive and store one call's status from its stored responses."""
        call = await self._load_call(call_id)
        await get_mutable_fund(self._fund_repo, user, call.fund_id, "recompute capital calls")
        await self._recompute(call.id)
        return self._to_detail(await self._load_call(call.id))

    async def refresh_call_statuses(
        self, user: User, fund_id: Optional[UUID] = None
    ) -> StatusRefreshResult:
        """
        Re-derive every call that is not FULLY_PAID, for one fund or (for a
        SUPER_ADMIN) all funds.  Each call commits on its own.
        """
        if fund_id is not None:
            await get_mutable_fund(self._fund_repo, user, fund_id, "refresh capital calls")
        else:
            permissions.require(
                permissions.can_administer(user), "refresh capital calls across funds"
            )

        call_ids = await self._call_repo.list_unsettled_ids(fund_id)
        changed = 0
        for call_id in call_ids:
            if await self._recompute(call_id):
                changed += 1
        logger.info(
            "Refreshed %d capital call statuses (%d changed)%s",
            len(call_ids),
            changed,
            f" for fund {fund_id}" if fund_id else "",
        )
        return StatusRefreshResult(checked=len(call_ids), changed=changed)

    # ── Statements ──

    async def generate_lp_statement(
        self, user: User, lp_id: UUID, fund_id: UUID
    ) -> LPStatementResponse:
        """Capital-account statement for one LP in one fund (read-only)."""
        fund = await get_visible_fund(self._fund_repo, user, fund_id)
        lp = await self._lp_repo.get_with_responses(lp_id)
        if not lp or lp.fund_id != fund.id:
            raise NotFoundException("LimitedPartner", lp_id)

        today = self._clock()
        lines = []
        for response in lp.responses:
            call = response.capital_call
            lines.append(
                accounting.StatementLine(
                    capital_call_id=call.id,
                    call_date=call.call_date,
                    due_date=call.due_date,
                    call_amount=call.amount,
                    percentage=call.percentage,
                    call_status=_effective_status(call, today),
                    expected_amount=response.expected_amount,
                    amount_paid=response.amount_paid,
                    date_paid=response.date_paid,
                    payment_status=response.status,
                )
            )
        summary = accounting.summarise_lp_account(lp.commitment, lines)

        return LPStatementResponse(
            lp_id=lp.id,
            lp_name=lp.name,
            fund_id=fund.id,
            fund_name=fund.name,
            currency=fund.currency,
            commitment=summary.commitment,
            total_called=summary.total_called,
            total_paid=summary.total_paid,
            outstanding_balance=summary.outstanding_balance,
            remaining_commitment=summary.remaining_commitment,
            call_history=[
                StatementLineResponse.model_validate(line) for line in summary.lines
            ],
        )

    async def generate_lp_statement_by_name(
        self, user: User, lp_name: str, fund_name: str
    ) -> LPStatementResponse:
        """Look the LP up by name within the named fund, then build its statement."""
        fund = await self._fund_repo.get_by_name(fund_name)
        if not fund:
            raise NotFoundException("Fund", fund_name)
        lp = await self._lp_repo.get_by_name(fund.id, lp_name)
        if not lp:
            raise NotFoundException("LimitedPartner", lp_name)
        return await self.generate_lp_statement(user, lp.id, fund.id)

    # ── Internals ──

    async def _load_call(self, call_id: UUID, for_update: bool = False) -> CapitalCall:
        call = await self._call_repo.get_with_responses(call_id, for_update=for_update)
        if not call:
            raise NotFoundException("CapitalCall", call_id)
        return call

    async def _recompute(self, call_id: UUID) -> bool:
        """Lock, re-sum and store one call's status.  Returns whether it changed."""
        call = await self._load_call(call_id, for_update=True)
        total_paid = await self._call_repo.sum_paid(call.id)
        status = accounting.derive_call_status(
            total_paid, call.amount, call.due_date, self._clock()
        )
        if status == call.status:
            await self._call_repo.rollback()
            return False
        previous = call.status
        call.status = status
        await self._call_repo.update(call)
        logger.info(
            "Capital call %s status %s -> %s",
            call.id,
            previous.value,
            status.value,
            extra={"capital_call_id": str(call.id)},
        )
        return True

    def _to_detail(self, call: CapitalCall) -> CapitalCallDetail:
        today = self._clock()
        responses = sorted(
            call.responses,
            key=lambda r: r.limited_partner.name if r.limited_partner else str(r.lp_id),
        )
        return CapitalCallDetail(
            id=call.id,
            fund_id=call.fund_id,
            call_date=call.call_date,
            due_date=call.due_date,
            amount=call.amount,
            percentage=call.percentage,
            description=call.description,
            status=_effective_status(call, today),
            total_paid=accounting.sum_decimal(r.amount_paid for r in call.responses),
            created_at=call.created_at,
            responses=[
                CallResponseDetail(
                    id=r.id,
                    lp_id=r.lp_id,
                    lp_name=r.limited_partner.name if r.limited_partner else None,
                    expected_amount=r.expected_amount,
                    amount_paid=r.amount_paid,
                    date_paid=r.date_paid,
                    status=r.status,
                    notes=r.notes,
                )
                for r in responses
            ],
        )


def _effective_status(call: CapitalCall, today: date) -> CapitalCallStatus:
    """Stored status, except that an unpaid call past its due date reads OVERDUE."""
    if call.status == CapitalCallStatus.PENDING and today > call.due_date:
        return CapitalCallStatus.OVERDUE
    return call.status
