"""Write-side services.  All of them flush; none of them commit."""

from approval_kernel.services.application_lifecycle import ApplicationLifecycle, build_title
from approval_kernel.services.approver_validator import ApproverValidator
from approval_kernel.services.base import BaseService
from approval_kernel.services.decision_service import DecisionService
from approval_kernel.services.directory_service import DirectoryService
from approval_kernel.services.history_ledger import HistoryLedger
from approval_kernel.services.sequence_service import SequenceCounter, SequenceService
from approval_kernel.services.task_router import TaskRouter

__all__ = [
    "ApplicationLifecycle",
    "ApproverValidator",
    "BaseService",
    "DecisionService",
    "DirectoryService",
    "HistoryLedger",
    "SequenceCounter",
    "SequenceService",
    "TaskRouter",
    "build_title",
]
