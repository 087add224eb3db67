"""
Approval kernel: leave and reimbursement applications routed to a single
department approver, with an append-only decision history and the
statistics derived from it.
"""

from approval_kernel.kernel import ApprovalKernel

__version__ = "0.1.0"

__all__ = ["ApprovalKernel", "__version__"]
