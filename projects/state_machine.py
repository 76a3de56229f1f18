# projects/state_machine.py
"""
Project workflow.

A project manager may set any status from any status, including
reopening a completed or cancelled project. Only values outside
``Project.STATUS_CHOICES`` are rejected.
"""
from core.workflow import StatusWorkflow

from .models import Project

PROJECT_STATUSES = [value for value, _ in Project.STATUS_CHOICES]

VALID_TRANSITIONS = {
    src: [dst for dst in PROJECT_STATUSES if dst != src]
    for src in PROJECT_STATUSES
}

# List-page actions and the status each one sets
LIST_ACTIONS = {
    "activate": Project.STATUS_ACTIVE,
    "complete": Project.STATUS_COMPLETED,
    "pause": Project.STATUS_ON_HOLD,
}

workflow = StatusWorkflow(
    name="project",
    statuses=PROJECT_STATUSES,
    transitions=VALID_TRANSITIONS,
    actions=LIST_ACTIONS,
    logger_name="cos.projects",
)
