"""
Tests for Workflow State Machines

Tests validate that status transitions follow the declared workflow rules.
"""

import pytest

from buzzarfeed.core.constants import (
    AmendmentStatus,
    ApplicationStatus,
    ClosureStatus,
    ReportStatus,
)
from buzzarfeed.core.exceptions import StateTransitionError
from buzzarfeed.domain.state_machine import (
    AMENDMENT_WORKFLOW,
    APPLICATION_WORKFLOW,
    CLOSURE_WORKFLOW,
    REPORT_WORKFLOW,
)


class TestApplicationWorkflow:
    """Test suite for application status transitions"""

    @pytest.mark.parametrize("target", [
        ApplicationStatus.APPROVED,
        ApplicationStatus.REJECTED,
        ApplicationStatus.ARCHIVED,
    ])
    def test_pending_can_be_decided(self, target):
        """Test: A pending application can be approved, rejected or archived"""
        APPLICATION_WORKFLOW.validate_transition(ApplicationStatus.PENDING, target)

    def test_decided_application_can_be_archived(self):
        """Test: Approved and rejected applications can still be archived"""
        APPLICATION_WORKFLOW.validate_transition(ApplicationStatus.APPROVED, ApplicationStatus.ARCHIVED)
        APPLICATION_WORKFLOW.validate_transition(ApplicationStatus.REJECTED, ApplicationStatus.ARCHIVED)

    def test_approved_cannot_be_rejected(self):
        """Test: Invalid transition from APPROVED to REJECTED"""
        with pytest.raises(StateTransitionError) as exc_info:
            APPLICATION_WORKFLOW.validate_transition(ApplicationStatus.APPROVED, ApplicationStatus.REJECTED)
        assert "Invalid state transition" in exc_info.value.message

    def test_archived_is_final(self):
        """Test: Nothing leaves the archived state"""
        assert APPLICATION_WORKFLOW.is_final_state(ApplicationStatus.ARCHIVED)
        with pytest.raises(StateTransitionError) as exc_info:
            APPLICATION_WORKFLOW.validate_transition(ApplicationStatus.ARCHIVED, ApplicationStatus.PENDING)
        assert "final state" in exc_info.value.message

    def test_same_status_is_rejected(self):
        """Test: Approving an approved application is an error, not a no-op"""
        with pytest.raises(StateTransitionError) as exc_info:
            APPLICATION_WORKFLOW.validate_transition(ApplicationStatus.APPROVED, ApplicationStatus.APPROVED)
        assert "already approved" in exc_info.value.message

    def test_unknown_status(self):
        """Test: An unknown current status is reported as such"""
        with pytest.raises(StateTransitionError) as exc_info:
            APPLICATION_WORKFLOW.validate_transition("validating", ApplicationStatus.APPROVED)
        assert "Unknown" in exc_info.value.message


class TestRequestWorkflows:
    """Amendments and closure requests share the pending -> approved|rejected shape"""

    @pytest.mark.parametrize("workflow,status", [
        (AMENDMENT_WORKFLOW, AmendmentStatus),
        (CLOSURE_WORKFLOW, ClosureStatus),
    ])
    def test_pending_to_decisions(self, workflow, status):
        workflow.validate_transition(status.PENDING, status.APPROVED)
        workflow.validate_transition(status.PENDING, status.REJECTED)

    @pytest.mark.parametrize("workflow,status", [
        (AMENDMENT_WORKFLOW, AmendmentStatus),
        (CLOSURE_WORKFLOW, ClosureStatus),
    ])
    def test_decisions_are_final(self, workflow, status):
        assert workflow.final_states == [status.APPROVED, status.REJECTED]
        with pytest.raises(StateTransitionError):
            workflow.validate_transition(status.REJECTED, status.APPROVED)
        with pytest.raises(StateTransitionError):
            workflow.validate_transition(status.APPROVED, status.PENDING)


class TestReportWorkflow:
    """Test suite for review report transitions"""

    def test_resolution(self):
        REPORT_WORKFLOW.validate_transition(ReportStatus.PENDING, ReportStatus.REVIEWED)
        REPORT_WORKFLOW.validate_transition(ReportStatus.PENDING, ReportStatus.DISMISSED)

    def test_resolved_report_can_be_reopened(self):
        """Test: Reporting the same review again reopens the report"""
        REPORT_WORKFLOW.validate_transition(ReportStatus.REVIEWED, ReportStatus.PENDING)
        REPORT_WORKFLOW.validate_transition(ReportStatus.DISMISSED, ReportStatus.PENDING)

    def test_no_final_states(self):
        assert REPORT_WORKFLOW.final_states == []

    def test_cannot_flip_between_resolutions(self):
        with pytest.raises(StateTransitionError):
            REPORT_WORKFLOW.validate_transition(ReportStatus.DISMISSED, ReportStatus.REVIEWED)

    def test_allowed_transitions(self):
        assert REPORT_WORKFLOW.get_allowed_transitions(ReportStatus.PENDING) == [
            ReportStatus.REVIEWED,
            ReportStatus.DISMISSED,
        ]
        assert REPORT_WORKFLOW.get_allowed_transitions("unknown") == []


class StatusRow:
    def __init__(self, status):
        self.id = 1
        self.status = status


class ClaimingRepository:
    """Stands in for a repository; ``stored`` is the status in the database."""

    def __init__(self, stored):
        self.stored = stored
        self.claims = []

    async def claim_status(self, row_id, expected, new_status):
        self.claims.append((row_id, expected, new_status))
        if self.stored != expected:
            return False
        self.stored = new_status
        return True


class TestApplyTransition:
    """Test suite for writing a transition through a conditional update"""

    @pytest.mark.asyncio
    async def test_moves_row_and_storage(self):
        row = StatusRow(AmendmentStatus.PENDING)
        repository = ClaimingRepository(AmendmentStatus.PENDING)

        await AMENDMENT_WORKFLOW.apply_transition(repository, row, AmendmentStatus.APPROVED)

        assert row.status == AmendmentStatus.APPROVED
        assert repository.claims == [(1, AmendmentStatus.PENDING, AmendmentStatus.APPROVED)]

    @pytest.mark.asyncio
    async def test_row_decided_elsewhere_is_refused(self):
        """Test: The loaded row says pending but another request already decided it"""
        row = StatusRow(ClosureStatus.PENDING)
        repository = ClaimingRepository(ClosureStatus.REJECTED)

        with pytest.raises(StateTransitionError, match="decided by another request"):
            await CLOSURE_WORKFLOW.apply_transition(repository, row, ClosureStatus.APPROVED)

        assert row.status == ClosureStatus.PENDING

    @pytest.mark.asyncio
    async def test_invalid_transition_never_writes(self):
        row = StatusRow(ApplicationStatus.ARCHIVED)
        repository = ClaimingRepository(ApplicationStatus.ARCHIVED)

        with pytest.raises(StateTransitionError):
            await APPLICATION_WORKFLOW.apply_transition(repository, row, ApplicationStatus.APPROVED)

        assert repository.claims == []
