"""
Capital-call accounting rules.

Pure functions only: no sessions, no clock, no logging.  The services feed
them values read from the database and persist what they return, so every
derived column (call percentage, response status, call status, statement
totals) has exactly one definition.

All money is ``Decimal``.  Amounts are quantised to cents and percentages to
six decimal places, matching the NUMERIC columns they are stored in.
"""

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, List, Optional, Sequence

from backoffice.core.exceptions import (
    ArithmeticAmbiguityError,
    NoCommitmentsError,
    ValidationException,
)
from backoffice.models.capital_call import CapitalCallStatus, ResponseStatus

CENT = Decimal("0.01")
PERCENT_QUANTUM = Decimal("0.000001")
HUNDRED = Decimal("100")
ZERO = Decimal("0")


def to_decimal(value: Any, field: str = "amount") -> Decimal:
    """Coerce ints, strings and Decimals to ``Decimal``; floats go through ``str``."""
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError):
            raise ValidationException(field, "must be a number", value)
    if not result.is_finite():
        raise ValidationException(field, "must be a finite number", value)
    return result


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def quantize_percentage(value: Decimal) -> Decimal:
    return value.quantize(PERCENT_QUANTUM, rounding=ROUND_HALF_UP)


def sum_decimal(values: Iterable[Any]) -> Decimal:
    """Exact sum; an empty iterable sums to ``Decimal("0")``."""
    total = ZERO
    for value in values:
        total += to_decimal(value)
    return total


# ────────────────────────────────────────────────────────────────────────────
# Capital calls
# ────────────────────────────────────────────────────────────────────────────


def derive_call_percentage(
    amount: Decimal, total_commitments: Decimal, fund_id: Any = None
) -> Decimal:
    """``amount / total_commitments × 100``; needs a positive commitment base."""
    if total_commitments <= ZERO:
        raise NoCommitmentsError(fund_id)
    return quantize_percentage(amount / total_commitments * HUNDRED)


def implied_call_amount(percentage: Decimal, total_commitments: Decimal) -> Decimal:
    return quantize_money(total_commitments * percentage / HUNDRED)


def check_call_consistency(
    amount: Decimal, percentage: Decimal, total_commitments: Decimal
) -> None:
    """
    Reject an explicit ``percentage`` that does not reproduce ``amount``.

    The allowed gap is one cent or the rounding of a six-decimal percentage,
    whichever is larger.  A fund without commitments has nothing to check.
    """
    if total_commitments <= ZERO:
        return
    implied = implied_call_amount(percentage, total_commitments)
    tolerance = max(CENT, total_commitments * PERCENT_QUANTUM / HUNDRED)
    if abs(implied - amount) > tolerance:
        raise ArithmeticAmbiguityError(
            f"Call amount {amount} does not match {percentage}% of total commitments "
            f"{total_commitments} (= {implied}); supply only one of amount or "
            f"percentage, or make them agree",
            details={
                "amount": str(amount),
                "percentage": str(percentage),
                "total_commitments": str(total_commitments),
                "implied_amount": str(implied),
            },
        )


def allocate_call_amount(amount: Decimal, commitments: Sequence[Decimal]) -> List[Decimal]:
    """
    Split a call amount across LPs pro rata to their commitments.

    Each share is ``amount × commitment / total`` rounded to the cent.  The
    rounding remainder goes to the LP with the largest commitment (the first
    one on ties), so the shares always sum to ``amount`` exactly and an LP
    paying its share in full is what settles the call.

    Shares come from the commitments rather than from the six-place stored
    percentage, which cannot reproduce every amount.
    """
    total = sum_decimal(commitments)
    if total <= ZERO:
        return [ZERO for _ in commitments]

    shares = [quantize_money(amount * commitment / total) for commitment in commitments]
    remainder = quantize_money(amount) - sum_decimal(shares)
    if remainder:
        largest = max(range(len(commitments)), key=lambda i: commitments[i])
        shares[largest] += remainder
    return shares


def derive_response_status(amount_paid: Decimal, expected: Decimal) -> ResponseStatus:
    """
    PAID once the LP has covered its share, PARTIALLY_PAID for any positive
    amount below it, PENDING otherwise.  LATE is never derived.
    """
    if amount_paid >= expected:
        return ResponseStatus.PAID
    if amount_paid > ZERO:
        return ResponseStatus.PARTIALLY_PAID
    return ResponseStatus.PENDING


def derive_call_status(
    total_paid: Decimal, call_amount: Decimal, due_date: date, today: date
) -> CapitalCallStatus:
    """
    Aggregate status of a call.  Precedence: FULLY_PAID, PARTIALLY_PAID,
    OVERDUE (nothing paid and past due), PENDING.
    """
    if total_paid >= call_amount:
        return CapitalCallStatus.FULLY_PAID
    if total_paid > ZERO:
        return CapitalCallStatus.PARTIALLY_PAID
    if today > due_date:
        return CapitalCallStatus.OVERDUE
    return CapitalCallStatus.PENDING


# ────────────────────────────────────────────────────────────────────────────
# Capital-account statements
# ────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class StatementLine:
    """One capital call as seen from a single LP's account."""

    capital_call_id: Any
    call_date: date
    due_date: date
    call_amount: Decimal
    percentage: Decimal
    call_status: CapitalCallStatus
    expected_amount: Decimal
    amount_paid: Decimal
    date_paid: Optional[date]
    payment_status: ResponseStatus


@dataclass(frozen=True)
class AccountSummary:
    commitment: Decimal
    total_called: Decimal
    total_paid: Decimal
    outstanding_balance: Decimal
    remaining_commitment: Decimal
    lines: List[StatementLine]


def summarise_lp_account(commitment: Decimal, lines: Sequence[StatementLine]) -> AccountSummary:
    """
    Totals for a capital-account statement.

    - ``total_called``: Σ of the LP's expected share of each call.
    - ``outstanding_balance``: ``total_called − total_paid``.
    - ``remaining_commitment``: ``commitment − total_called``.

    Lines are returned oldest call first.
    """
    ordered = sorted(lines, key=lambda line: (line.call_date, line.due_date))
    total_called = sum_decimal(line.expected_amount for line in ordered)
    total_paid = sum_decimal(line.amount_paid for line in ordered)
    return AccountSummary(
        commitment=commitment,
        total_called=total_called,
        total_paid=total_paid,
        outstanding_balance=total_called - total_paid,
        remaining_commitment=commitment - total_called,
        lines=list(ordered),
    )
