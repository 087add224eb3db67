"""
Typed Exception Hierarchy for the Approval Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers sit behind a transport layer we do not own.  They must be able to
tell "the thing you asked for does not exist" from "you may not touch it"
from "the request breaks a business rule" without parsing message text.

Every exception therefore carries:
  1. A CODE class attribute (machine-readable, stable across releases)
  2. A KIND class attribute (NOT_FOUND / FORBIDDEN / VALIDATION / UNEXPECTED)
  3. A STATUS class attribute (HTTP-style default: 404 / 403 / 400 / 500)
  4. Structured context as instance attributes (not just a message string)

Example:
    try:
        kernel.withdraw(app_id, user_id)
    except NotApplicantError as e:
        return e.to_dict()          # {"kind": "FORBIDDEN", "code": ..., ...}

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    ApprovalKernelError (base)
    |
    +-- NotFoundError
    |   +-- UserNotFoundError
    |   +-- ApplicationNotFoundError
    |   +-- TaskNotFoundError
    |
    +-- ForbiddenError
    |   +-- NotApplicantError
    |   +-- NotAssigneeError
    |
    +-- ValidationError
    |   +-- InvalidRequestError
    |   +-- MissingDepartmentError
    |   +-- ApproverRequiredError
    |   +-- SelfApprovalError
    |   +-- ApproverInactiveError
    |   +-- ApproverDepartmentMismatchError
    |   +-- ApproverWithoutPostError
    |   +-- ApproverLacksPermissionError
    |   +-- InvalidStatusTransitionError
    |   +-- TaskAlreadyClosedError
    |   +-- ImmutabilityViolationError
    |
    +-- UnexpectedError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Kind        | Code                          | When Raised
------------|-------------------------------|-----------------------------------
NOT_FOUND   | USER_NOT_FOUND                | Applicant / caller does not exist
            | APPLICATION_NOT_FOUND         | app_id unknown
            | TASK_NOT_FOUND                | task_id unknown
------------|-------------------------------|-----------------------------------
FORBIDDEN   | NOT_APPLICANT                 | Withdrawing someone else's request
            | NOT_ASSIGNEE                  | Deciding a task assigned elsewhere
------------|-------------------------------|-----------------------------------
VALIDATION  | INVALID_REQUEST               | Malformed leave/reimburse payload
            | MISSING_DEPARTMENT            | Applicant has no department
            | APPROVER_REQUIRED             | No approver chosen
            | SELF_APPROVAL                 | Approver == applicant
            | APPROVER_INACTIVE             | Approver missing or disabled
            | APPROVER_DEPARTMENT_MISMATCH  | Approver in another department
            | APPROVER_WITHOUT_POST         | Approver holds no post
            | APPROVER_LACKS_PERMISSION     | Post lacks approval permission
            | INVALID_STATUS_TRANSITION     | e.g. withdrawing a finished request
            | TASK_ALREADY_CLOSED           | Deciding a task twice
            | IMMUTABILITY_VIOLATION        | Mutating a history entry
------------|-------------------------------|-----------------------------------
UNEXPECTED  | UNEXPECTED_ERROR              | Anything else (detail is logged,
            |                               | never returned)

===============================================================================
DESIGN DECISIONS
===============================================================================

1. Inherit from Exception, not ValueError/LookupError.  Domain errors must
   be catchable as one group and never confused with programming errors.

2. code/kind/status are CLASS attributes so the boundary can map an error
   type without instantiating it.

3. UnexpectedError never carries the original message.  The original is
   chained as __cause__ and logged by the boundary.
===============================================================================
"""

from typing import Any


class ApprovalKernelError(Exception):
    """
    Base exception for all approval kernel errors.

    Every subclass overrides `code`; category classes set `kind` and `status`.
    """

    code: str = "APPROVAL_KERNEL_ERROR"
    kind: str = "UNEXPECTED"
    status: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the stable error envelope returned to callers."""
        return {
            "kind": self.kind,
            "code": self.code,
            "status": self.status,
            "message": self.message,
        }


# Not found


class NotFoundError(ApprovalKernelError):
    """Referenced entity does not exist."""

    code: str = "NOT_FOUND"
    kind: str = "NOT_FOUND"
    status: int = 404


class UserNotFoundError(NotFoundError):
    """User with the given ID was not found in the directory."""

    code: str = "USER_NOT_FOUND"

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


class ApplicationNotFoundError(NotFoundError):
    """Application with the given ID was not found."""

    code: str = "APPLICATION_NOT_FOUND"

    def __init__(self, app_id: str):
        self.app_id = app_id
        super().__init__(f"Application not found: {app_id}")


class TaskNotFoundError(NotFoundError):
    """Approval task with the given ID was not found."""

    code: str = "TASK_NOT_FOUND"

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Task not found: {task_id}")


# Forbidden


class ForbiddenError(ApprovalKernelError):
    """Actor lacks rights over the specific resource."""

    code: str = "FORBIDDEN"
    kind: str = "FORBIDDEN"
    status: int = 403


class NotApplicantError(ForbiddenError):
    """Only the applicant may act on their own application."""

    code: str = "NOT_APPLICANT"

    def __init__(self, app_id: str, user_id: str):
        self.app_id = app_id
        self.user_id = user_id
        super().__init__(
            f"User {user_id} is not the applicant of application {app_id}"
        )


class NotAssigneeError(ForbiddenError):
    """Only the assignee may decide a task."""

    code: str = "NOT_ASSIGNEE"

    def __init__(self, task_id: str, user_id: str):
        self.task_id = task_id
        self.user_id = user_id
        super().__init__(f"User {user_id} is not the assignee of task {task_id}")


# Validation


class ValidationError(ApprovalKernelError):
    """Business-rule violation."""

    code: str = "VALIDATION_FAILED"
    kind: str = "VALIDATION"
    status: int = 400


class InvalidRequestError(ValidationError):
    """Request payload is malformed."""

    code: str = "INVALID_REQUEST"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class MissingDepartmentError(ValidationError):
    """Applicant has not been assigned to a department."""

    code: str = "MISSING_DEPARTMENT"

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(
            f"User {user_id} has no department and cannot submit applications"
        )


class ApproverRequiredError(ValidationError):
    """No approver was chosen."""

    code: str = "APPROVER_REQUIRED"

    def __init__(self):
        super().__init__("An approver must be selected")


class SelfApprovalError(ValidationError):
    """Applicant named themselves as approver."""

    code: str = "SELF_APPROVAL"

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__("Applicants cannot approve their own application")


class ApproverInactiveError(ValidationError):
    """Approver does not exist or is disabled."""

    code: str = "APPROVER_INACTIVE"

    def __init__(self, approver_id: str):
        self.approver_id = approver_id
        super().__init__(f"Approver {approver_id} is invalid or disabled")


class ApproverDepartmentMismatchError(ValidationError):
    """Approver does not share the applicant's department."""

    code: str = "APPROVER_DEPARTMENT_MISMATCH"

    def __init__(self, approver_id: str, expected_dept_id: str, actual_dept_id: str | None):
        self.approver_id = approver_id
        self.expected_dept_id = expected_dept_id
        self.actual_dept_id = actual_dept_id
        super().__init__(
            "Approver must belong to the same department as the applicant"
        )


class ApproverWithoutPostError(ValidationError):
    """Approver has no post assigned."""

    code: str = "APPROVER_WITHOUT_POST"

    def __init__(self, approver_id: str):
        self.approver_id = approver_id
        super().__init__(
            f"Approver {approver_id} has no post and cannot handle approvals"
        )


class ApproverLacksPermissionError(ValidationError):
    """Approver's post does not carry the approval permission code."""

    code: str = "APPROVER_LACKS_PERMISSION"

    def __init__(self, approver_id: str, permission_code: str):
        self.approver_id = approver_id
        self.permission_code = permission_code
        super().__init__(
            f"Approver {approver_id} lacks permission {permission_code}"
        )


class InvalidStatusTransitionError(ValidationError):
    """Requested status change is not allowed from the current status."""

    code: str = "INVALID_STATUS_TRANSITION"

    def __init__(self, app_id: str, from_status: int, to_status: int):
        self.app_id = app_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Application {app_id} cannot move from status "
            f"{from_status} to {to_status}"
        )


class TaskAlreadyClosedError(ValidationError):
    """Task has already been decided or removed."""

    code: str = "TASK_ALREADY_CLOSED"

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Task {task_id} is no longer open")


class ImmutabilityViolationError(ValidationError):
    """Attempt to modify an append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify immutable {entity_type} {entity_id}: {reason}"
        )


# Unexpected


class UnexpectedError(ApprovalKernelError):
    """
    Any failure that is not a domain error.

    The message is deliberately generic; the original exception is chained
    as ``__cause__`` and logged by the boundary.
    """

    code: str = "UNEXPECTED_ERROR"
    kind: str = "UNEXPECTED"
    status: int = 500

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__("Internal error, please contact the administrator")
