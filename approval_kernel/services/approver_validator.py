"""
ApproverValidator -- the single eligibility gate for task assignment.

Responsibility:
    Decides whether a candidate user may act as approver for a given
    applicant.  No task may be created for an approver that has not passed
    ``validate()``.

Architecture position:
    Kernel > Services.  Reads the directory through DirectoryService;
    performs no writes.

Invariants enforced:
    - Approver differs from the applicant.
    - Approver exists and is active.
    - Approver shares the applicant's department.
    - Approver holds a post, and that post carries the approval permission.

Failure modes:
    - ApproverRequiredError, SelfApprovalError, ApproverInactiveError,
      ApproverDepartmentMismatchError, ApproverWithoutPostError,
      ApproverLacksPermissionError.  The first failing rule wins, in the
      order listed above.
"""

from uuid import UUID

from approval_kernel.domain.dtos import UserRecord
from approval_kernel.exceptions import (
    ApproverDepartmentMismatchError,
    ApproverInactiveError,
    ApproverLacksPermissionError,
    ApproverRequiredError,
    ApproverWithoutPostError,
    SelfApprovalError,
)
from approval_kernel.logging_config import get_logger
from approval_kernel.services.directory_service import DirectoryService

logger = get_logger("services.approver_validator")


class ApproverValidator:
    """Eligibility rules for approvers."""

    def __init__(self, directory: DirectoryService, permission_code: str):
        self._directory = directory
        self._permission_code = permission_code

    @property
    def permission_code(self) -> str:
        return self._permission_code

    def validate(self, applicant: UserRecord, approver_id: UUID | None) -> UserRecord:
        """
        Check ``approver_id`` against every eligibility rule.

        Returns:
            The approver's directory record.
        """
        if approver_id is None:
            raise ApproverRequiredError()
        if approver_id == applicant.user_id:
            raise SelfApprovalError(str(applicant.user_id))

        approver = self._directory.get_user_by_id(approver_id)
        if approver is None or not approver.is_active:
            raise ApproverInactiveError(str(approver_id))

        if approver.dept_id is None or approver.dept_id != applicant.dept_id:
            raise ApproverDepartmentMismatchError(
                str(approver_id),
                str(applicant.dept_id),
                str(approver.dept_id) if approver.dept_id else None,
            )

        post = self._directory.get_post_by_id(approver.post_id)
        if post is None:
            raise ApproverWithoutPostError(str(approver_id))
        if not post.grants(self._permission_code):
            raise ApproverLacksPermissionError(str(approver_id), self._permission_code)

        logger.debug(
            "approver_validated",
            extra={"approver_id": approver_id, "applicant_id": applicant.user_id},
        )
        return approver

