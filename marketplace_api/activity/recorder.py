import logging

from django.db import DatabaseError, transaction

from .models import ActivityType, ProjectActivity

logger = logging.getLogger(__name__)


class ActivityRecorder:
    """
    Non-propagating sink for project activity.

    Activity is a side effect of a lifecycle, milestone, file or payment
    operation that has already been committed. A failed write is reported to
    the operational log and dropped; it never reaches the caller and never
    undoes the primary change.
    """

    def record(self, *, project, user, activity_type, description, metadata=None):
        try:
            activity_type = ActivityType(activity_type)
            # Own savepoint so a failed insert cannot poison an enclosing transaction.
            with transaction.atomic():
                return ProjectActivity.objects.create(
                    project=project,
                    user=user,
                    activity_type=activity_type,
                    description=description,
                    metadata=metadata or {},
                )
        except (ValueError, TypeError, DatabaseError):
            logger.exception(
                "Failed to record %s activity for project %s",
                activity_type,
                getattr(project, 'pk', project),
            )
            return None


default_recorder = ActivityRecorder()
