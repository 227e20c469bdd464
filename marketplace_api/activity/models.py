from django.conf import settings
from django.db import models


class ActivityType(models.TextChoices):
    PROJECT_CREATED = 'project_created', 'Project created'
    STATUS_CHANGED = 'status_changed', 'Status changed'
    MILESTONE_ADDED = 'milestone_added', 'Milestone added'
    MILESTONE_COMPLETED = 'milestone_completed', 'Milestone completed'
    FILE_UPLOADED = 'file_uploaded', 'File uploaded'
    FILE_APPROVED = 'file_approved', 'File approved'
    MESSAGE_SENT = 'message_sent', 'Message sent'
    PAYMENT_MADE = 'payment_made', 'Payment made'
    REVIEW_SUBMITTED = 'review_submitted', 'Review submitted'
    PROJECT_COMPLETED = 'project_completed', 'Project completed'
    PROJECT_CANCELLED = 'project_cancelled', 'Project cancelled'


class ImmutableActivityError(Exception):
    pass


class ProjectActivity(models.Model):
    """
    Audit record of something that happened on a project.

    Rows are append-only: once written they can be read but never changed
    or removed.
    """
    project = models.ForeignKey('projects.Project', on_delete=models.CASCADE, related_name='activities')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='project_activities')
    activity_type = models.CharField(max_length=32, choices=ActivityType.choices)
    description = models.TextField()
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['project', 'activity_type']),
        ]
        verbose_name_plural = 'Project activities'

    def __str__(self):
        return f"{self.activity_type} on project {self.project_id} by {self.user_id}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableActivityError("Project activity records cannot be modified.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableActivityError("Project activity records cannot be deleted.")
