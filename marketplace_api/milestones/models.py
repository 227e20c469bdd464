from django.db import models

from projects.models import Project


class Milestone(models.Model):
    PENDING = 'pending'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'

    STATUS_CHOICES = (
        (PENDING, 'Pending'),
        (IN_PROGRESS, 'In Progress'),
        (COMPLETED, 'Completed'),
    )

    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name="milestones")
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PENDING)
    due_date = models.DateField(null=True, blank=True)
    display_order = models.IntegerField(default=0)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['display_order', 'due_date', 'id']
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(status='completed', completed_at__isnull=False)
                    | (~models.Q(status='completed') & models.Q(completed_at__isnull=True))
                ),
                name='milestone_completed_at_matches_status',
            ),
        ]

    def __str__(self):
        return f"{self.title} ({self.status})"
