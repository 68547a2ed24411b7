"""State Machines for Workflow Status Transitions.

Every admin-driven workflow in BuzzarFeed is a status field with a small set
of allowed transitions. Each workflow is declared here once and validated the
same way.

Application:
    pending
        ├──> approved ──> archived
        ├──> rejected ──> archived
        └──> archived (final)

Amendment / Closure request:
    pending
        ├──> approved (final)
        └──> rejected (final)

Review report:
    pending
        ├──> reviewed  ──> pending (re-reported)
        └──> dismissed ──> pending (re-reported)

Rules:
- Requests start in ``pending``
- Transitions not listed are rejected with StateTransitionError
- Final states cannot be changed
- Decisions go through a conditional UPDATE on the status column, so two
  concurrent decisions on one request cannot both succeed
"""

from ..core.constants import (
    AmendmentStatus,
    ApplicationStatus,
    ClosureStatus,
    ReportStatus,
)
from ..core.exceptions import StateTransitionError


class StatusWorkflow:
    """Allowed status transitions for one workflow."""

    def __init__(self, name: str, transitions: dict[str, list[str]]):
        self.name = name
        self.transitions = transitions
        self.final_states = [state for state, targets in transitions.items() if not targets]

    def validate_transition(self, old_status: str, new_status: str) -> None:
        """Validate that a state transition is allowed.

        Raises:
            StateTransitionError: If the transition is not allowed
        """
        if old_status == new_status:
            raise StateTransitionError(
                f"{self.name.capitalize()} is already {old_status}"
            )

        if old_status in self.final_states:
            raise StateTransitionError(
                f"Cannot change {self.name} status from final state '{old_status}'"
            )

        allowed_next_states = self.transitions.get(old_status)

        if allowed_next_states is None:
            raise StateTransitionError(
                f"Unknown current {self.name} status: '{old_status}'"
            )

        if new_status not in allowed_next_states:
            raise StateTransitionError(
                f"Invalid state transition: '{old_status}' → '{new_status}'. "
                f"Valid transitions from '{old_status}' are: {', '.join(allowed_next_states)}"
            )

    async def apply_transition(self, repository, row, new_status: str) -> None:
        """Validate ``row.status -> new_status`` and write it with a conditional update.

        ``repository.claim_status`` only updates the row if its status is still
        the one validated here, so of two concurrent decisions on the same row
        the second one fails.

        Raises:
            StateTransitionError: If the transition is not allowed, or the row
                was moved by another request in the meantime
        """
        old_status = row.status
        self.validate_transition(old_status, new_status)

        if not await repository.claim_status(row.id, old_status, new_status):
            raise StateTransitionError(
                f"{self.name.capitalize()} is no longer {old_status}; it was decided by another request"
            )

        row.status = new_status

    def is_final_state(self, status: str) -> bool:
        return status in self.final_states

    def get_allowed_transitions(self, current_status: str) -> list[str]:
        return self.transitions.get(current_status, [])


APPLICATION_WORKFLOW = StatusWorkflow(
    "application",
    {
        ApplicationStatus.PENDING: [
            ApplicationStatus.APPROVED,
            ApplicationStatus.REJECTED,
            ApplicationStatus.ARCHIVED,
        ],
        ApplicationStatus.APPROVED: [ApplicationStatus.ARCHIVED],
        ApplicationStatus.REJECTED: [ApplicationStatus.ARCHIVED],
        ApplicationStatus.ARCHIVED: [],
    }
)

AMENDMENT_WORKFLOW = StatusWorkflow(
    "amendment",
    {
        AmendmentStatus.PENDING: [AmendmentStatus.APPROVED, AmendmentStatus.REJECTED],
        AmendmentStatus.APPROVED: [],
        AmendmentStatus.REJECTED: [],
    }
)

CLOSURE_WORKFLOW = StatusWorkflow(
    "closure request",
    {
        ClosureStatus.PENDING: [ClosureStatus.APPROVED, ClosureStatus.REJECTED],
        ClosureStatus.APPROVED: [],
        ClosureStatus.REJECTED: [],
    }
)

REPORT_WORKFLOW = StatusWorkflow(
    "report",
    {
        ReportStatus.PENDING: [ReportStatus.REVIEWED, ReportStatus.DISMISSED],
        ReportStatus.REVIEWED: [ReportStatus.PENDING],
        ReportStatus.DISMISSED: [ReportStatus.PENDING],
    }
)
