"""
Unit tests for the capital-call accounting rules.

Tests cover:
- Decimal coercion and quantisation
- Call percentage derivation and the amount / percentage consistency check
- Pro rata allocation of a call amount across LPs
- Response and call status derivation (including precedence)
- LP capital-account summaries
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from backoffice.core.exceptions import (
    ArithmeticAmbiguityError,
    NoCommitmentsError,
    ValidationException,
)
from backoffice.models.capital_call import CapitalCallStatus, ResponseStatus
from backoffice.services import accounting

# ────────────────────────────────────────────────────────────────────────────
# Coercion / quantisation
# ────────────────────────────────────────────────────────────────────────────


class TestToDecimal:
    def test_float_goes_through_str(self):
        assert accounting.to_decimal(0.1) == Decimal("0.1")

    def test_accepts_int_and_string(self):
        assert accounting.to_decimal(5) == Decimal("5")
        assert accounting.to_decimal("12.50") == Decimal("12.50")

    def test_rejects_garbage(self):
        with pytest.raises(ValidationException) as exc_info:
            accounting.to_decimal("ten", field="amount")
        assert exc_info.value.field == "amount"

    def test_rejects_non_finite(self):
        with pytest.raises(ValidationException):
            accounting.to_decimal(Decimal("NaN"))

    def test_sum_of_nothing_is_zero(self):
        assert accounting.sum_decimal([]) == Decimal("0")

    def test_sum_is_exact(self):
        assert accounting.sum_decimal(["0.10", "0.20"]) == Decimal("0.30")


class TestQuantize:
    def test_money_rounds_half_up(self):
        assert accounting.quantize_money(Decimal("1.005")) == Decimal("1.01")
        assert accounting.quantize_money(Decimal("1.004")) == Decimal("1.00")

    def test_percentage_has_six_places(self):
        assert accounting.quantize_percentage(Decimal("1") / Decimal("3") * 100) == Decimal(
            "33.333333"
        )


# ────────────────────────────────────────────────────────────────────────────
# Call percentage
# ────────────────────────────────────────────────────────────────────────────


class TestDeriveCallPercentage:
    def test_ten_percent_of_eleven_million(self):
        pct = accounting.derive_call_percentage(Decimal("1100000"), Decimal("11000000"))
        assert pct == Decimal("10.000000")

    def test_requires_commitments(self):
        fund_id = uuid4()
        with pytest.raises(NoCommitmentsError) as exc_info:
            accounting.derive_call_percentage(Decimal("100"), Decimal("0"), fund_id)
        assert exc_info.value.status_code == 422
        assert exc_info.value.details == {"fund_id": str(fund_id)}


class TestCheckCallConsistency:
    def test_matching_inputs_pass(self):
        accounting.check_call_consistency(
            Decimal("1100000.00"), Decimal("10"), Decimal("11000000.00")
        )

    def test_one_cent_gap_is_tolerated(self):
        accounting.check_call_consistency(
            Decimal("1100000.01"), Decimal("10"), Decimal("11000000.00")
        )

    def test_rounded_percentage_is_tolerated(self):
        # 1/3 of the commitments: the six-place percentage cannot be exact.
        accounting.check_call_consistency(
            Decimal("1000000.00"), Decimal("33.333333"), Decimal("3000000.00")
        )

    def test_disagreeing_inputs_raise(self):
        with pytest.raises(ArithmeticAmbiguityError) as exc_info:
            accounting.check_call_consistency(
                Decimal("500000.00"), Decimal("10"), Decimal("11000000.00")
            )
        assert exc_info.value.details["implied_amount"] == "1100000.00"

    def test_no_commitments_is_not_checked(self):
        accounting.check_call_consistency(Decimal("5"), Decimal("50"), Decimal("0"))


class TestAllocateCallAmount:
    def test_pro_rata_shares(self):
        shares = accounting.allocate_call_amount(
            Decimal("1100000.00"), [Decimal("10000000.00"), Decimal("1000000.00")]
        )
        assert shares == [Decimal("1000000.00"), Decimal("100000.00")]

    def test_single_lp_owes_the_whole_call(self):
        shares = accounting.allocate_call_amount(Decimal("1000000.00"), [Decimal("7000000.00")])
        assert shares == [Decimal("1000000.00")]

    def test_remainder_goes_to_largest_commitment(self):
        # 0.17 + 0.67 + 0.17 overshoots by a cent.
        shares = accounting.allocate_call_amount(
            Decimal("1.00"), [Decimal("1000.00"), Decimal("4000.00"), Decimal("1000.00")]
        )
        assert shares == [Decimal("0.17"), Decimal("0.66"), Decimal("0.17")]

    def test_tie_breaks_on_first_lp(self):
        shares = accounting.allocate_call_amount(
            Decimal("100.00"), [Decimal("1.00"), Decimal("1.00"), Decimal("1.00")]
        )
        assert shares == [Decimal("33.34"), Decimal("33.33"), Decimal("33.33")]

    def test_shares_rounded_up_give_back_the_excess(self):
        shares = accounting.allocate_call_amount(
            Decimal("0.02"), [Decimal("1.00"), Decimal("1.00"), Decimal("1.00")]
        )
        assert sum(shares) == Decimal("0.02")
        assert all(share >= 0 for share in shares)

    def test_no_lps(self):
        assert accounting.allocate_call_amount(Decimal("100.00"), []) == []


# ────────────────────────────────────────────────────────────────────────────
# Statuses
# ────────────────────────────────────────────────────────────────────────────


class TestDeriveResponseStatus:
    @pytest.mark.parametrize(
        "paid, expected, status",
        [
            ("0", "100", ResponseStatus.PENDING),
            ("1", "100", ResponseStatus.PARTIALLY_PAID),
            ("100", "100", ResponseStatus.PAID),
            ("150", "100", ResponseStatus.PAID),
        ],
    )
    def test_status(self, paid, expected, status):
        assert accounting.derive_response_status(Decimal(paid), Decimal(expected)) == status

    def test_late_is_never_derived(self):
        for paid in ("0", "50", "100"):
            assert (
                accounting.derive_response_status(Decimal(paid), Decimal("100"))
                != ResponseStatus.LATE
            )


class TestDeriveCallStatus:
    DUE = date(2024, 3, 31)

    def test_pending_before_due(self):
        status = accounting.derive_call_status(
            Decimal("0"), Decimal("100"), self.DUE, date(2024, 3, 15)
        )
        assert status == CapitalCallStatus.PENDING

    def test_due_date_itself_is_not_overdue(self):
        status = accounting.derive_call_status(Decimal("0"), Decimal("100"), self.DUE, self.DUE)
        assert status == CapitalCallStatus.PENDING

    def test_overdue_after_due_date(self):
        status = accounting.derive_call_status(
            Decimal("0"), Decimal("100"), self.DUE, date(2024, 4, 1)
        )
        assert status == CapitalCallStatus.OVERDUE

    def test_partial_payment_beats_overdue(self):
        status = accounting.derive_call_status(
            Decimal("1"), Decimal("100"), self.DUE, date(2024, 4, 1)
        )
        assert status == CapitalCallStatus.PARTIALLY_PAID

    def test_fully_paid_beats_everything(self):
        status = accounting.derive_call_status(
            Decimal("100"), Decimal("100"), self.DUE, date(2030, 1, 1)
        )
        assert status == CapitalCallStatus.FULLY_PAID


# ────────────────────────────────────────────────────────────────────────────
# Statements
# ────────────────────────────────────────────────────────────────────────────


def _line(call_date: date, expected: str, paid: str) -> accounting.StatementLine:
    return accounting.StatementLine(
        capital_call_id=uuid4(),
        call_date=call_date,
        due_date=call_date,
        call_amount=Decimal("1000"),
        percentage=Decimal("10"),
        call_status=CapitalCallStatus.PENDING,
        expected_amount=Decimal(expected),
        amount_paid=Decimal(paid),
        date_paid=None,
        payment_status=ResponseStatus.PENDING,
    )


class TestSummariseLpAccount:
    def test_totals(self):
        summary = accounting.summarise_lp_account(
            Decimal("10000000.00"),
            [
                _line(date(2024, 3, 1), "1000000.00", "500000.00"),
                _line(date(2024, 9, 1), "2000000.00", "2000000.00"),
            ],
        )
        assert summary.total_called == Decimal("3000000.00")
        assert summary.total_paid == Decimal("2500000.00")
        assert summary.outstanding_balance == Decimal("500000.00")
        assert summary.remaining_commitment == Decimal("7000000.00")

    def test_lines_oldest_first(self):
        later = _line(date(2024, 9, 1), "1", "0")
        earlier = _line(date(2024, 3, 1), "1", "0")
        summary = accounting.summarise_lp_account(Decimal("10"), [later, earlier])
        assert summary.lines == [earlier, later]

    def test_no_calls(self):
        summary = accounting.summarise_lp_account(Decimal("10"), [])
        assert summary.total_called == Decimal("0")
        assert summary.outstanding_balance == Decimal("0")
        assert summary.remaining_commitment == Decimal("10")
        assert summary.lines == []
