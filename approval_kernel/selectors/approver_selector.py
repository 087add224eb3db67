"""
Module: approval_kernel.selectors.approver_selector
Responsibility: Lists the users a caller may pick as approver.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - A candidate is active, belongs to the target department, holds a post,
      and that post carries the configured approval permission code.
    - Permission codes are resolved once per post, not once per candidate.
"""

from uuid import UUID

from sqlalchemy import select

from approval_kernel.domain.application import UserStatus
from approval_kernel.domain.dtos import ApproverOption
from approval_kernel.exceptions import UserNotFoundError
from approval_kernel.models.directory import Post, User
from approval_kernel.selectors.base import BaseSelector


class ApproverSelector(BaseSelector):

    def get_dept_approvers(
        self, user_id: UUID, dept_id: UUID | None = None,
    ) -> list[ApproverOption]:
        """
        Eligible approvers in ``dept_id``, or in the caller's own department.

        Returns an empty list when no department can be resolved.
        """
        caller = self.session.get(User, user_id)
        if caller is None:
            raise UserNotFoundError(str(user_id))

        target_dept_id = dept_id if dept_id is not None else caller.dept_id
        if target_dept_id is None:
            return []

        candidates = list(
            self.session.execute(
                select(User)
                .where(User.dept_id == target_dept_id)
                .where(User.status == UserStatus.ACTIVE)
                .where(User.post_id.is_not(None))
                .order_by(User.real_name, User.username)
            ).scalars()
        )
        if not candidates:
            return []

        post_ids = {c.post_id for c in candidates}
        posts = {
            post.id: post
            for post in self.session.execute(
                select(Post).where(Post.id.in_(post_ids))
            ).scalars()
        }
        code = self.settings.approval_permission_code
        dept_name = self.dept_names([target_dept_id]).get(target_dept_id)

        options = []
        for candidate in candidates:
            post = posts.get(candidate.post_id)
            if post is None or code not in post.permission_codes:
                continue
            options.append(
                ApproverOption(
                    user_id=candidate.id,
                    real_name=candidate.real_name,
                    dept_id=target_dept_id,
                    dept_name=dept_name,
                    post_id=post.id,
                    post_name=post.post_name,
                )
            )
        return options
