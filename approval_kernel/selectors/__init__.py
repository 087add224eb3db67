"""Read-only selectors."""

from approval_kernel.selectors.application_selector import ApplicationSelector
from approval_kernel.selectors.approver_selector import ApproverSelector
from approval_kernel.selectors.base import BaseSelector
from approval_kernel.selectors.summary_selector import SummarySelector, approval_rate
from approval_kernel.selectors.task_selector import TaskSelector

__all__ = [
    "ApplicationSelector",
    "ApproverSelector",
    "BaseSelector",
    "SummarySelector",
    "TaskSelector",
    "approval_rate",
]
