"""
Tests for ApplicationSelector: "my applications", history search and detail.

History search filters partly in SQL and partly in Python; the page total
must always be the size of the fully filtered set.
"""

from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from approval_kernel.config import KernelSettings
from approval_kernel.domain.application import AppType, ApplicationStatus, ApprovalAction
from approval_kernel.domain.dtos import HistoryFilter, LeaveDetailView, ReimburseDetailView
from approval_kernel.exceptions import ApplicationNotFoundError
from approval_kernel.models.directory import User
from approval_kernel.selectors.application_selector import ApplicationSelector


# ---------------------------------------------------------------------------
# My applications
# ---------------------------------------------------------------------------


class TestListMyApplications:

    def test_empty(self, application_selector, directory):
        page = application_selector.list_my_applications(directory["bob"])
        assert page.items == ()
        assert page.total == 0
        assert page.page == 1
        assert page.size == 10

    def test_newest_first_with_labels(self, application_selector, submit, directory):
        first = submit("leave")
        second = submit("reimburse")

        page = application_selector.list_my_applications(directory["bob"])
        assert [v.app_id for v in page.items] == [second, first]
        newest = page.items[0]
        assert newest.app_type is AppType.REIMBURSE
        assert newest.applicant_name == "Bob Li"
        assert newest.dept_name == "Engineering"
        assert newest.status is ApplicationStatus.PENDING
        assert newest.expense_type == 2
        assert newest.leave_type is None
        assert page.items[1].leave_type == 1

    def test_only_own_applications(self, application_selector, submit, directory):
        submit("leave", applicant="erin")
        assert application_selector.list_my_applications(directory["bob"]).total == 0

    def test_filters(self, application_selector, submit, directory):
        submit("leave", outcome="approve")
        submit("leave")
        submit("reimburse", outcome="reject")

        by_type = application_selector.list_my_applications(directory["bob"], app_type="leave")
        assert by_type.total == 2
        by_status = application_selector.list_my_applications(
            directory["bob"], status=ApplicationStatus.REJECTED,
        )
        assert [v.app_type for v in by_status.items] == [AppType.REIMBURSE]

    def test_pagination(self, application_selector, submit, directory):
        ids = [submit("leave") for _ in range(5)]

        page = application_selector.list_my_applications(directory["bob"], page=2, size=2)
        assert page.total == 5
        assert page.pages == 3
        assert [v.app_id for v in page.items] == [ids[2], ids[1]]

    def test_page_bounds_normalized(self, session, submit, directory):
        selector = ApplicationSelector(session, KernelSettings(max_page_size=3))
        for _ in range(4):
            submit("leave")

        page = selector.list_my_applications(directory["bob"], page=0, size=50)
        assert page.page == 1
        assert page.size == 3
        assert len(page.items) == 3

    def test_unassigned_department_label(self, session, application_selector, submit, directory):
        submit("leave")
        session.get(User, directory["bob"]).dept_id = None
        session.flush()

        page = application_selector.list_my_applications(directory["bob"])
        assert page.items[0].dept_name == "Unassigned"


# ---------------------------------------------------------------------------
# History search
# ---------------------------------------------------------------------------


class TestHistoryDefaults:

    def test_pending_excluded(self, application_selector, submit, directory):
        submit("leave")
        approved = submit("leave", outcome="approve")
        withdrawn = submit("leave", outcome="withdraw")

        page = application_selector.list_my_history(directory["bob"])
        assert {v.app_id for v in page.items} == {approved, withdrawn}
        assert page.total == 2

    def test_explicit_status(self, application_selector, submit, directory):
        pending = submit("leave")
        submit("leave", outcome="approve")

        page = application_selector.list_my_history(
            directory["bob"], filters=HistoryFilter(status=ApplicationStatus.PENDING),
        )
        assert [v.app_id for v in page.items] == [pending]

    def test_latest_decision_folded_in(self, application_selector, submit, directory):
        app_id = submit("reimburse", outcome="reject", comment="Receipt missing")

        [view] = application_selector.list_my_history(directory["bob"]).items
        assert view.app_id == app_id
        assert view.approver_name == "Alice Chen"
        assert view.action == ApprovalAction.REJECT
        assert view.comment == "Receipt missing"
        assert view.expense_amount == Decimal("128.50")
        assert view.leave_days is None
        assert view.approve_time == view.finish_time
        assert view.dept_name == "Engineering"

    def test_withdrawn_has_no_decision(self, application_selector, submit, directory):
        submit("leave", outcome="withdraw")

        [view] = application_selector.list_my_history(directory["bob"]).items
        assert view.status is ApplicationStatus.WITHDRAWN
        assert view.approver_name is None
        assert view.approve_time is None


class TestHistoryFilters:

    def test_leave_type_only_narrows_leave(self, application_selector, submit, directory):
        annual = submit("leave", outcome="approve", leave_type=1)
        submit("leave", outcome="approve", leave_type=2)
        expense = submit("reimburse", outcome="approve")

        page = application_selector.list_my_history(
            directory["bob"], filters=HistoryFilter(leave_type=1),
        )
        assert {v.app_id for v in page.items} == {annual, expense}
        assert page.total == 2

    def test_expense_type_only_narrows_reimbursements(self, application_selector, submit, directory):
        leave = submit("leave", outcome="approve")
        taxi = submit("reimburse", outcome="approve", expense_type=2)
        submit("reimburse", outcome="approve", expense_type=3)

        page = application_selector.list_my_history(
            directory["bob"], filters=HistoryFilter(expense_type=2),
        )
        assert {v.app_id for v in page.items} == {leave, taxi}

    def test_app_type(self, application_selector, submit, directory):
        submit("leave", outcome="approve")
        expense = submit("reimburse", outcome="approve")

        page = application_selector.list_my_history(
            directory["bob"], filters=HistoryFilter(app_type=AppType.REIMBURSE),
        )
        assert [v.app_id for v in page.items] == [expense]

    def test_approver_name_substring(self, application_selector, submit, directory):
        by_alice = submit("leave", outcome="approve", approver="alice")
        submit("leave", outcome="approve", approver="erin")
        submit("leave", outcome="withdraw")

        page = application_selector.list_my_history(
            directory["bob"], filters=HistoryFilter(approver_name="Alice"),
        )
        assert [v.app_id for v in page.items] == [by_alice]
        assert page.total == 1

    def test_approver_name_is_case_sensitive(self, application_selector, submit, directory):
        submit("leave", outcome="approve")
        page = application_selector.list_my_history(
            directory["bob"], filters=HistoryFilter(approver_name="alice"),
        )
        assert page.total == 0

    def test_date_range_on_submit_time(self, application_selector, submit,
                                       deterministic_clock, directory):
        submit("leave", outcome="approve")
        cutoff = deterministic_clock.now()
        later = submit("leave", outcome="approve")

        page = application_selector.list_my_history(
            directory["bob"], filters=HistoryFilter(start_time=cutoff),
        )
        assert [v.app_id for v in page.items] == [later]

        page = application_selector.list_my_history(
            directory["bob"],
            filters=HistoryFilter(end_time=cutoff - timedelta(seconds=1)),
        )
        assert page.total == 1
        assert page.items[0].app_id != later

    def test_total_counts_python_filtered_set(self, application_selector, submit, directory):
        for _ in range(3):
            submit("leave", outcome="approve", approver="alice")
        for _ in range(4):
            submit("leave", outcome="approve", approver="erin")

        page = application_selector.list_my_history(
            directory["bob"], page=2, size=2, filters=HistoryFilter(approver_name="Erin"),
        )
        assert page.total == 4
        assert page.pages == 2
        assert len(page.items) == 2
        assert all(v.approver_name == "Erin Wu" for v in page.items)

    def test_page_past_the_end(self, application_selector, submit, directory):
        submit("leave", outcome="approve")
        page = application_selector.list_my_history(directory["bob"], page=5, size=10)
        assert page.items == ()
        assert page.total == 1


# ---------------------------------------------------------------------------
# Detail
# ---------------------------------------------------------------------------


class TestApplicationDetail:

    def test_leave_detail(self, application_selector, submit):
        app_id = submit("leave", outcome="approve", comment="Enjoy")

        detail = application_selector.get_application_detail(app_id)
        assert detail.application.app_id == app_id
        assert detail.application.status is ApplicationStatus.APPROVED
        assert isinstance(detail.detail, LeaveDetailView)
        assert detail.detail.days == Decimal("2.0")
        assert [h.comment for h in detail.history] == ["Enjoy"]

    def test_reimburse_detail(self, application_selector, submit):
        app_id = submit("reimburse")

        detail = application_selector.get_application_detail(app_id)
        assert isinstance(detail.detail, ReimburseDetailView)
        assert detail.detail.amount == Decimal("128.50")
        assert detail.history == ()

    def test_history_newest_first(self, application_selector, submit, history_ledger,
                                  deterministic_clock, directory):
        app_id = submit("leave", outcome="approve", comment="first")
        deterministic_clock.advance(60)
        history_ledger.append(app_id, directory["erin"], "Erin Wu", ApprovalAction.APPROVE, "second")

        detail = application_selector.get_application_detail(app_id)
        assert [h.comment for h in detail.history] == ["second", "first"]

    def test_unknown_application(self, application_selector):
        with pytest.raises(ApplicationNotFoundError):
            application_selector.get_application_detail(uuid4())
