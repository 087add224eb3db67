"""
Tests for the pure domain layer: status rules, enums, request validation and
read-model invariants.  No database.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from approval_kernel.domain.application import (
    HISTORY_STATUSES,
    TERMINAL_STATUSES,
    AppType,
    ApplicationStatus,
    ApprovalAction,
    can_transition,
)
from approval_kernel.domain.clock import DeterministicClock
from approval_kernel.domain.dtos import (
    ApplicationDetail,
    ApplicationRecord,
    LeaveRequest,
    Page,
    PostRecord,
    ReimburseDetailView,
    ReimburseRequest,
)
from approval_kernel.exceptions import InvalidRequestError

START = datetime(2024, 3, 11, 9, 0, tzinfo=timezone.utc)
END = datetime(2024, 3, 12, 18, 0, tzinfo=timezone.utc)


class TestStatusRules:

    @pytest.mark.parametrize("target", [3, 4, 5])
    def test_pending_moves_to_any_terminal_status(self, target):
        assert can_transition(ApplicationStatus.PENDING, target)

    @pytest.mark.parametrize("source", sorted(TERMINAL_STATUSES))
    def test_terminal_statuses_are_final(self, source):
        for target in ApplicationStatus:
            assert not can_transition(source, target)

    def test_status_two_is_not_a_status(self):
        assert not can_transition(1, 2)
        assert not can_transition(2, 3)
        with pytest.raises(ValueError):
            ApplicationStatus(2)

    def test_history_statuses_exclude_pending(self):
        assert ApplicationStatus.PENDING not in HISTORY_STATUSES
        assert set(HISTORY_STATUSES) == set(TERMINAL_STATUSES)

    def test_action_resulting_status(self):
        assert ApprovalAction.APPROVE.resulting_status is ApplicationStatus.APPROVED
        assert ApprovalAction.REJECT.resulting_status is ApplicationStatus.REJECTED

    def test_app_type_labels(self):
        assert AppType.LEAVE.label == "Leave"
        assert AppType.REIMBURSE.label == "Reimbursement"


class TestLeaveRequest:

    def _make(self, **overrides):
        values = dict(
            leave_type=1, start_time=START, end_time=END,
            days=Decimal("2"), reason="Family trip", approver_id=uuid4(),
        )
        values.update(overrides)
        return LeaveRequest(**values)

    def test_valid_request(self):
        assert self._make().days == Decimal("2")

    @pytest.mark.parametrize("reason", ["", "   ", None])
    def test_reason_required(self, reason):
        with pytest.raises(InvalidRequestError) as exc_info:
            self._make(reason=reason)
        assert exc_info.value.field == "reason"

    @pytest.mark.parametrize("days", [Decimal("0"), Decimal("-1")])
    def test_days_must_be_positive(self, days):
        with pytest.raises(InvalidRequestError):
            self._make(days=days)

    @pytest.mark.parametrize("days", [Decimal("0.25"), Decimal("1.05"), Decimal("0.001")])
    def test_days_beyond_one_decimal_place_rejected(self, days):
        with pytest.raises(InvalidRequestError) as exc_info:
            self._make(days=days)
        assert exc_info.value.field == "days"
        assert "decimal place" in exc_info.value.reason

    @pytest.mark.parametrize("days", [Decimal("0.5"), Decimal("2.50"), Decimal("99999.9")])
    def test_days_that_fit_the_column_accepted(self, days):
        assert self._make(days=days).days == days

    @pytest.mark.parametrize("days", [Decimal("100000"), Decimal("1E+6")])
    def test_days_too_large_rejected(self, days):
        with pytest.raises(InvalidRequestError) as exc_info:
            self._make(days=days)
        assert exc_info.value.field == "days"
        assert "less than" in exc_info.value.reason

    @pytest.mark.parametrize("days", [Decimal("NaN"), Decimal("Infinity"), None])
    def test_days_not_a_finite_number_rejected(self, days):
        with pytest.raises(InvalidRequestError):
            self._make(days=days)

    def test_end_before_start_rejected(self):
        with pytest.raises(InvalidRequestError) as exc_info:
            self._make(start_time=END, end_time=START)
        assert exc_info.value.field == "end_time"

    def test_missing_approver_is_not_a_request_error(self):
        """Approver presence is an eligibility rule, checked by the validator."""
        assert self._make(approver_id=None).approver_id is None


class TestReimburseRequest:

    def _make(self, **overrides):
        values = dict(
            expense_type=1, amount=Decimal("12.50"), reason="Taxi",
            occur_date=date(2024, 3, 1), approver_id=uuid4(),
        )
        values.update(overrides)
        return ReimburseRequest(**values)

    def test_amount_must_be_positive(self):
        with pytest.raises(InvalidRequestError) as exc_info:
            ReimburseRequest(
                expense_type=1, amount=Decimal("0.00"), reason="Taxi",
                occur_date=date(2024, 3, 1), approver_id=uuid4(),
            )
        assert exc_info.value.code == "INVALID_REQUEST"
        assert exc_info.value.status == 400

    @pytest.mark.parametrize("amount", [Decimal("0.125"), Decimal("19.999")])
    def test_amount_beyond_two_decimal_places_rejected(self, amount):
        with pytest.raises(InvalidRequestError) as exc_info:
            self._make(amount=amount)
        assert exc_info.value.field == "amount"
        assert "decimal place" in exc_info.value.reason

    def test_amount_trailing_zeros_accepted(self):
        assert self._make(amount=Decimal("7.500")).amount == Decimal("7.5")

    def test_amount_just_below_limit_accepted(self):
        amount = Decimal("999999999999.99")
        assert self._make(amount=amount).amount == amount

    def test_amount_too_large_rejected(self):
        with pytest.raises(InvalidRequestError) as exc_info:
            self._make(amount=Decimal(10) ** 12)
        assert exc_info.value.field == "amount"
        assert "less than" in exc_info.value.reason


class TestReadModels:

    def test_page_count(self):
        assert Page(items=(), total=21, page=1, size=10).pages == 3
        assert Page(items=(), total=0, page=1, size=10).pages == 0

    def test_post_record_grants(self):
        post = PostRecord(uuid4(), "Lead", frozenset({"APPROVAL_REVIEW"}))
        assert post.grants("APPROVAL_REVIEW")
        assert not post.grants("REPORT_VIEW")

    def test_detail_variant_must_match_app_type(self):
        record = ApplicationRecord(
            app_id=uuid4(), app_no="AP20240304000001", app_type=AppType.LEAVE,
            title="t", applicant_id=uuid4(), dept_id=None,
            status=ApplicationStatus.PENDING, current_node=None,
            submit_time=START, finish_time=None,
        )
        wrong = ReimburseDetailView(
            expense_type=1, amount=Decimal("1.00"), reason="r",
            invoice_attachment=None, occur_date=date(2024, 3, 1),
        )
        with pytest.raises(ValueError):
            ApplicationDetail(application=record, detail=wrong, history=())


class TestDeterministicClock:

    def test_now_is_stable_until_advanced(self):
        clock = DeterministicClock(START)
        assert clock.now() == clock.now() == START
        clock.advance(90)
        assert (clock.now() - START).total_seconds() == 90

    def test_tick(self):
        clock = DeterministicClock(START)
        assert (clock.tick() - START).total_seconds() == 1
