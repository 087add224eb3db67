"""
Module: approval_kernel.selectors.task_selector
Responsibility: The approver's to-do and done task lists.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - To-do lists only OPEN tasks (newest created first); done lists only
      DONE tasks (newest finished first).  Withdrawn applications have no
      open task and therefore never appear in to-do.
"""

from uuid import UUID

from sqlalchemy import func, select

from approval_kernel.domain.application import AppType, TaskStatus
from approval_kernel.domain.dtos import Page, TaskView
from approval_kernel.models.application import Application
from approval_kernel.models.task import Task
from approval_kernel.selectors.base import BaseSelector


class TaskSelector(BaseSelector):

    def list_todo_tasks(
        self, approver_id: UUID, page: int | None = 1, size: int | None = None,
    ) -> Page[TaskView]:
        return self._list(
            approver_id, TaskStatus.OPEN, (Task.create_time.desc(), Task.id), page, size,
        )

    def list_done_tasks(
        self, approver_id: UUID, page: int | None = 1, size: int | None = None,
    ) -> Page[TaskView]:
        return self._list(
            approver_id, TaskStatus.DONE, (Task.finish_time.desc(), Task.id), page, size,
        )

    def _list(self, approver_id, status, order_by, page, size) -> Page[TaskView]:
        page, size = self.normalize_page(page, size)
        conditions = (Task.assignee_id == approver_id, Task.status == status)

        total = self.session.execute(
            select(func.count()).select_from(Task).where(*conditions)
        ).scalar_one()

        rows = self.session.execute(
            select(Task, Application)
            .join(Application, Application.id == Task.app_id)
            .where(*conditions)
            .order_by(*order_by)
            .offset((page - 1) * size)
            .limit(size)
        ).all()

        apps = [app for _, app in rows]
        applicants = self.user_names(a.applicant_id for a in apps)
        leave = self.leave_details(a.id for a in apps if a.app_type == AppType.LEAVE.value)
        reimburse = self.reimburse_details(
            a.id for a in apps if a.app_type == AppType.REIMBURSE.value
        )

        items = []
        for task, app in rows:
            leave_detail = leave.get(app.id)
            reimburse_detail = reimburse.get(app.id)
            items.append(
                TaskView(
                    task_id=task.id,
                    app_id=app.id,
                    app_no=app.app_no,
                    app_type=AppType(app.app_type),
                    title=app.title,
                    applicant_name=applicants.get(app.applicant_id, ""),
                    node_name=task.node_name,
                    create_time=task.create_time,
                    leave_type=leave_detail.leave_type if leave_detail else None,
                    expense_type=reimburse_detail.expense_type if reimburse_detail else None,
                    action=task.action,
                    comment=task.comment,
                    finish_time=task.finish_time,
                )
            )
        return Page(items=tuple(items), total=total, page=page, size=size)
