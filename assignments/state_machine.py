# assignments/state_machine.py
"""
Assignment workflow.

assigned → in_progress → submitted → reviewed → completed
Work can be reopened (back to in_progress) from submitted, reviewed
or completed.
"""
from core.workflow import StatusWorkflow

from .models import Assignment

VALID_TRANSITIONS = {
    Assignment.STATUS_ASSIGNED: [
        Assignment.STATUS_IN_PROGRESS,
        Assignment.STATUS_SUBMITTED,
        Assignment.STATUS_COMPLETED,
    ],
    Assignment.STATUS_IN_PROGRESS: [
        Assignment.STATUS_ASSIGNED,
        Assignment.STATUS_SUBMITTED,
        Assignment.STATUS_COMPLETED,
    ],
    Assignment.STATUS_SUBMITTED: [
        Assignment.STATUS_REVIEWED,
        Assignment.STATUS_COMPLETED,
        Assignment.STATUS_IN_PROGRESS,
    ],
    Assignment.STATUS_REVIEWED: [Assignment.STATUS_COMPLETED, Assignment.STATUS_IN_PROGRESS],
    Assignment.STATUS_COMPLETED: [Assignment.STATUS_IN_PROGRESS],
}

LIST_ACTIONS = {
    "mark_reviewed": Assignment.STATUS_REVIEWED,
    "mark_completed": Assignment.STATUS_COMPLETED,
    "reopen": Assignment.STATUS_IN_PROGRESS,
}

workflow = StatusWorkflow(
    name="assignment",
    statuses=dict(Assignment.STATUS_CHOICES),
    transitions=VALID_TRANSITIONS,
    actions=LIST_ACTIONS,
    logger_name="cos.assignments",
)
