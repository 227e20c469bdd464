from django.db import models
from django.contrib.auth import get_user_model
from django.core.validators import MaxValueValidator, MinValueValidator
from auditlog.registry import auditlog

from jobs.models import Job
from .transitions import ProjectStatus, allowed_transitions

User = get_user_model()


class Project(models.Model):
    """
    One accepted engagement between a client and an editor.

    ``status`` only ever changes through ``projects.services.ProjectLifecycleService``.
    """
    job = models.OneToOneField(Job, on_delete=models.PROTECT, related_name='project')
    client = models.ForeignKey(User, related_name='client_projects', on_delete=models.PROTECT)
    editor = models.ForeignKey(User, related_name='editor_projects', on_delete=models.PROTECT)
    status = models.CharField(max_length=20, choices=ProjectStatus.choices, default=ProjectStatus.IN_PROGRESS)
    escrow_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    revision_count = models.PositiveIntegerField(default=0)
    revision_notes = models.TextField(null=True, blank=True)
    hold_reason = models.TextField(null=True, blank=True)
    cancellation_reason = models.TextField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(status__in=ProjectStatus.values),
                name='project_status_valid',
            ),
            models.CheckConstraint(
                condition=models.Q(completed_at__isnull=True) | models.Q(status=ProjectStatus.COMPLETED),
                name='project_completed_at_only_when_completed',
            ),
            models.CheckConstraint(
                condition=models.Q(cancelled_at__isnull=True) | models.Q(status=ProjectStatus.CANCELLED),
                name='project_cancelled_at_only_when_cancelled',
            ),
        ]

    def __str__(self):
        return f"{self.job.title} ({self.client} -> {self.editor})"

    @property
    def title(self):
        return self.job.title

    @property
    def allowed_transitions(self):
        return allowed_transitions(self.status)

    def is_party(self, user):
        return user is not None and user.pk in (self.client_id, self.editor_id)

    def role_of(self, user):
        if user.pk == self.client_id:
            return 'client'
        if user.pk == self.editor_id:
            return 'editor'
        return None


class ProjectFile(models.Model):
    """
    Metadata for a deliverable exchanged on a project. The bytes live in
    external storage; only the name and location are recorded here.
    """
    FILE_TYPE_CHOICES = (
        ('draft', 'Draft'),
        ('final', 'Final'),
    )

    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='files')
    uploaded_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name='uploaded_files')
    file_type = models.CharField(max_length=10, choices=FILE_TYPE_CHOICES)
    file_name = models.CharField(max_length=255)
    file_path = models.CharField(max_length=500)
    is_approved = models.BooleanField(default=False)
    approved_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.file_name} ({self.file_type})"


class Review(models.Model):
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='reviews')
    reviewer = models.ForeignKey(User, on_delete=models.CASCADE, related_name='given_reviews')
    reviewee = models.ForeignKey(User, on_delete=models.CASCADE, related_name='received_reviews')
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    comment = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ['project', 'reviewer']

    def __str__(self):
        return f"{self.reviewer} -> {self.reviewee}: {self.rating}"


auditlog.register(Project)
