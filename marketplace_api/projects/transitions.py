"""
Project status enum and the transition table that governs it.

The table is the single source of truth for the generic status path and for
``allowed_transitions`` shown to callers. Dedicated operations declare their
own allow-lists in ``projects.services.OPERATIONS``; only ``complete`` widens
the table (it may finish a project straight from ``revision_requested``).
"""
from django.db import models


class ProjectStatus(models.TextChoices):
    IN_PROGRESS = 'in_progress', 'In Progress'
    UNDER_REVIEW = 'under_review', 'Under Review'
    REVISION_REQUESTED = 'revision_requested', 'Revision Requested'
    ON_HOLD = 'on_hold', 'On Hold'
    COMPLETED = 'completed', 'Completed'
    CANCELLED = 'cancelled', 'Cancelled'


STATUS_TRANSITIONS = {
    ProjectStatus.IN_PROGRESS: (
        ProjectStatus.UNDER_REVIEW,
        ProjectStatus.ON_HOLD,
        ProjectStatus.CANCELLED,
    ),
    ProjectStatus.UNDER_REVIEW: (
        ProjectStatus.REVISION_REQUESTED,
        ProjectStatus.COMPLETED,
        ProjectStatus.CANCELLED,
    ),
    ProjectStatus.REVISION_REQUESTED: (
        ProjectStatus.UNDER_REVIEW,
        ProjectStatus.ON_HOLD,
        ProjectStatus.CANCELLED,
    ),
    ProjectStatus.ON_HOLD: (
        ProjectStatus.IN_PROGRESS,
        ProjectStatus.CANCELLED,
    ),
    ProjectStatus.COMPLETED: (),
    ProjectStatus.CANCELLED: (),
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in STATUS_TRANSITIONS.items() if not targets
)


def parse_status(value):
    """Return the ProjectStatus for ``value`` or None if it is not recognised."""
    try:
        return ProjectStatus(value)
    except ValueError:
        return None


def can_transition(current, target):
    current = parse_status(current)
    target = parse_status(target)
    if current is None or target is None:
        return False
    return target in STATUS_TRANSITIONS[current]


def allowed_transitions(current):
    current = parse_status(current)
    if current is None:
        return []
    return [status.value for status in STATUS_TRANSITIONS[current]]


def is_terminal(status):
    return parse_status(status) in TERMINAL_STATUSES
