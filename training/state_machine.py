# training/state_machine.py
"""
Training session workflow.

scheduled → ongoing → completed
scheduled / ongoing → cancelled

Attendance rows are not workflow-checked: the bulk attendance form
may set any valid status.
"""
from core.workflow import StatusWorkflow

from .models import SessionAttendance, TrainingSession

VALID_TRANSITIONS = {
    TrainingSession.STATUS_SCHEDULED: [TrainingSession.STATUS_ONGOING, TrainingSession.STATUS_CANCELLED],
    TrainingSession.STATUS_ONGOING: [TrainingSession.STATUS_COMPLETED, TrainingSession.STATUS_CANCELLED],
    TrainingSession.STATUS_COMPLETED: [],
    TrainingSession.STATUS_CANCELLED: [],
}

SESSION_ACTIONS = {
    "start_session": TrainingSession.STATUS_ONGOING,
    "complete_session": TrainingSession.STATUS_COMPLETED,
    "cancel_session": TrainingSession.STATUS_CANCELLED,
}

ATTENDANCE_STATUSES = frozenset(dict(SessionAttendance.STATUS_CHOICES))

workflow = StatusWorkflow(
    name="session",
    statuses=dict(TrainingSession.STATUS_CHOICES),
    transitions=VALID_TRANSITIONS,
    actions=SESSION_ACTIONS,
    logger_name="cos.training",
)
