import logging
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.db import transaction
from django.db.models import Count, F, Q
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from activity.models import ActivityType
from activity.recorder import default_recorder
from marketplace_api.exceptions import ConflictError
from projects.access import ensure_party
from projects.models import Project
from .models import Milestone

logger = logging.getLogger(__name__)

MAX_UPCOMING_DAYS = 3650


DEFAULT_MILESTONES = (
    ('Project Kickoff', 'Initial project setup and requirements gathering'),
    ('First Draft', 'Initial draft delivery for review'),
    ('Revision Round 1', 'Incorporate first round of feedback'),
    ('Final Delivery', 'Final edited video delivery'),
    ('Project Approval', 'Client approval and project completion'),
)

UPDATABLE_FIELDS = ('title', 'description', 'due_date', 'display_order', 'status')


def completion_percentage(completed, total):
    """Whole-number percentage, rounded half up; 0 when there is nothing to count."""
    if not total:
        return 0
    ratio = Decimal(completed) * 100 / Decimal(total)
    return int(ratio.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


class MilestoneService:
    """
    Checklist items of a project: CRUD, completion, ordering and progress.
    Every mutating call checks that the actor is a party to the project.
    """

    def __init__(self, recorder=None):
        self.recorder = recorder or default_recorder

    def get_milestone(self, milestone_id, actor):
        try:
            milestone = Milestone.objects.select_related('project').get(pk=milestone_id)
        except (Milestone.DoesNotExist, ValueError, TypeError):
            raise NotFound("Milestone not found.")
        ensure_party(milestone.project, actor)
        return milestone

    def find_by_project(self, project):
        return (
            Milestone.objects
            .filter(project=project)
            .order_by('display_order', F('due_date').asc(nulls_last=True), 'id')
        )

    def create(self, project, actor, *, title, description='', due_date=None, display_order=0):
        ensure_party(project, actor)
        if not title or not str(title).strip():
            raise ValidationError("Title is required.")

        milestone = Milestone.objects.create(
            project=project,
            title=title,
            description=description or '',
            due_date=due_date,
            display_order=display_order or 0,
        )
        logger.info("Milestone %s added to project %s", milestone.pk, project.pk)

        self.recorder.record(
            project=project,
            user=actor,
            activity_type=ActivityType.MILESTONE_ADDED,
            description=f"Milestone added: {milestone.title}",
            metadata={'milestone_id': milestone.pk, 'title': milestone.title},
        )
        return milestone

    def update(self, milestone, actor, **changes):
        """
        Partial update. Fields not passed keep their value; moving the status
        to or away from ``completed`` keeps ``completed_at`` in step.
        """
        ensure_party(milestone.project, actor)
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown milestone fields: {', '.join(sorted(unknown))}")

        status = changes.get('status')
        if status is not None and status not in dict(Milestone.STATUS_CHOICES):
            raise ValidationError(f"Invalid milestone status: {status}")
        if 'title' in changes and not (changes['title'] or '').strip():
            raise ValidationError("Title cannot be blank.")

        with transaction.atomic():
            milestone = Milestone.objects.select_for_update().get(pk=milestone.pk)
            for field, value in changes.items():
                setattr(milestone, field, value)

            if status == Milestone.COMPLETED and milestone.completed_at is None:
                milestone.completed_at = timezone.now()
            elif status is not None and status != Milestone.COMPLETED:
                milestone.completed_at = None

            milestone.save()
        return milestone

    def complete(self, milestone, actor):
        ensure_party(milestone.project, actor)

        with transaction.atomic():
            milestone = Milestone.objects.select_for_update().get(pk=milestone.pk)
            if milestone.status == Milestone.COMPLETED:
                raise ValidationError("Milestone is already completed.")
            milestone.status = Milestone.COMPLETED
            milestone.completed_at = timezone.now()
            milestone.save(update_fields=['status', 'completed_at', 'updated_at'])

        progress = self.get_project_progress(milestone.project)
        self.recorder.record(
            project=milestone.project,
            user=actor,
            activity_type=ActivityType.MILESTONE_COMPLETED,
            description=f"Milestone completed: {milestone.title}",
            metadata={'milestone_id': milestone.pk, 'title': milestone.title, 'progress': progress},
        )
        return milestone

    def delete(self, milestone, actor):
        ensure_party(milestone.project, actor)
        logger.info("Deleting milestone %s from project %s", milestone.pk, milestone.project_id)
        milestone.delete()

    def reorder(self, project, actor, orders):
        """
        Apply ``[{"id": ..., "order": ...}, ...]`` to the project's milestones.

        All-or-nothing: if any id is malformed, repeated or belongs to another
        project, nothing is updated.
        """
        ensure_party(project, actor)
        if not isinstance(orders, (list, tuple)):
            raise ValidationError("Orders must be an array.")

        positions = {}
        for entry in orders:
            if not isinstance(entry, dict):
                raise ValidationError("Each order entry must be an object with 'id' and 'order'.")
            milestone_id, order = entry.get('id'), entry.get('order')
            if isinstance(milestone_id, bool) or not isinstance(milestone_id, int):
                raise ValidationError("Milestone id must be an integer.")
            if isinstance(order, bool) or not isinstance(order, int):
                raise ValidationError("Order must be an integer.")
            if milestone_id in positions:
                raise ValidationError(f"Milestone {milestone_id} appears more than once.")
            positions[milestone_id] = order

        with transaction.atomic():
            milestones = list(
                Milestone.objects
                .select_for_update()
                .filter(project=project, pk__in=positions.keys())
            )
            foreign = set(positions) - {m.pk for m in milestones}
            if foreign:
                logger.warning(
                    "Rejected reorder on project %s: milestones %s are not part of it",
                    project.pk, sorted(foreign),
                )
                raise ValidationError(
                    f"Milestones {sorted(foreign)} do not belong to this project."
                )

            now = timezone.now()
            for milestone in milestones:
                milestone.display_order = positions[milestone.pk]
                milestone.updated_at = now
            Milestone.objects.bulk_update(milestones, ['display_order', 'updated_at'])

        return self.find_by_project(project)

    def create_default_milestones(self, project, actor):
        ensure_party(project, actor)

        with transaction.atomic():
            # Lock the project so two concurrent requests cannot both seed it.
            Project.objects.select_for_update().get(pk=project.pk)
            if Milestone.objects.filter(project=project).exists():
                raise ConflictError("Project already has milestones.")
            milestones = self.seed_default_milestones(project)

        self.recorder.record(
            project=project,
            user=actor,
            activity_type=ActivityType.MILESTONE_ADDED,
            description=f"Default milestones added ({len(milestones)})",
            metadata={'milestone_ids': [m.pk for m in milestones], 'template': 'default'},
        )
        return milestones

    def seed_default_milestones(self, project):
        """Insert the standard checklist. The caller owns the transaction and the activity entry."""
        Milestone.objects.bulk_create([
            Milestone(project=project, title=title, description=description, display_order=position)
            for position, (title, description) in enumerate(DEFAULT_MILESTONES, start=1)
        ])
        return list(self.find_by_project(project))

    def get_project_progress(self, project):
        counts = Milestone.objects.filter(project=project).aggregate(
            total=Count('id'),
            completed=Count('id', filter=Q(status=Milestone.COMPLETED)),
            in_progress=Count('id', filter=Q(status=Milestone.IN_PROGRESS)),
            pending=Count('id', filter=Q(status=Milestone.PENDING)),
        )
        counts['percentage'] = completion_percentage(counts['completed'], counts['total'])
        return counts

    def _open_for_user(self, user):
        return (
            Milestone.objects
            .filter(Q(project__client=user) | Q(project__editor=user))
            .exclude(status=Milestone.COMPLETED)
            .select_related('project', 'project__job')
        )

    def get_overdue_milestones(self, user):
        today = timezone.localdate()
        return list(self._open_for_user(user).filter(due_date__lt=today).order_by('due_date', 'id'))

    def get_upcoming_milestones(self, user, days=None):
        days = settings.UPCOMING_MILESTONE_DAYS if days is None else days
        if not 0 <= days <= MAX_UPCOMING_DAYS:
            raise ValidationError(f"Days must be between 0 and {MAX_UPCOMING_DAYS}.")
        today = timezone.localdate()
        return list(
            self._open_for_user(user)
            .filter(due_date__gte=today, due_date__lte=today + timedelta(days=days))
            .order_by('due_date', 'id')
        )
