import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from activity import services as activity_queries
from activity.models import ActivityType
from activity.recorder import default_recorder
from jobs.models import Job, Proposal
from marketplace_api.exceptions import ConflictError
from milestones.services import MilestoneService
from .access import ensure_party, get_project, get_project_for_party
from .models import Project, ProjectFile, Review
from .transitions import (
    STATUS_TRANSITIONS,
    TERMINAL_STATUSES,
    ProjectStatus,
    allowed_transitions,
    parse_status,
)

logger = logging.getLogger(__name__)

CLIENT = 'client'
EDITOR = 'editor'


@dataclass(frozen=True)
class Operation:
    """
    A status-changing entry point: where it may start from, where it lands,
    who may call it and how it is written to the activity log.
    ``role`` of None means either party.
    """
    verb: str
    target: ProjectStatus
    allowed_from: frozenset
    role: Optional[str]
    activity_type: ActivityType


NON_TERMINAL = frozenset(set(ProjectStatus) - TERMINAL_STATUSES)

OPERATIONS = {
    'submit_for_review': Operation(
        verb='submit for review',
        target=ProjectStatus.UNDER_REVIEW,
        allowed_from=frozenset({ProjectStatus.IN_PROGRESS, ProjectStatus.REVISION_REQUESTED}),
        role=EDITOR,
        activity_type=ActivityType.STATUS_CHANGED,
    ),
    'request_revision': Operation(
        verb='request a revision',
        target=ProjectStatus.REVISION_REQUESTED,
        allowed_from=frozenset({ProjectStatus.UNDER_REVIEW}),
        role=CLIENT,
        activity_type=ActivityType.STATUS_CHANGED,
    ),
    # Wider than the table: a client may accept the work while a revision is still pending.
    'complete': Operation(
        verb='complete',
        target=ProjectStatus.COMPLETED,
        allowed_from=frozenset({ProjectStatus.UNDER_REVIEW, ProjectStatus.REVISION_REQUESTED}),
        role=CLIENT,
        activity_type=ActivityType.PROJECT_COMPLETED,
    ),
    'cancel': Operation(
        verb='cancel',
        target=ProjectStatus.CANCELLED,
        allowed_from=NON_TERMINAL,
        role=None,
        activity_type=ActivityType.PROJECT_CANCELLED,
    ),
    'put_on_hold': Operation(
        verb='put on hold',
        target=ProjectStatus.ON_HOLD,
        allowed_from=frozenset({ProjectStatus.IN_PROGRESS, ProjectStatus.REVISION_REQUESTED}),
        role=None,
        activity_type=ActivityType.STATUS_CHANGED,
    ),
    'resume': Operation(
        verb='resume',
        target=ProjectStatus.IN_PROGRESS,
        allowed_from=frozenset({ProjectStatus.ON_HOLD}),
        role=None,
        activity_type=ActivityType.STATUS_CHANGED,
    ),
}

# Who may drive the project into a given status through the generic path.
TARGET_ROLES = {
    ProjectStatus.UNDER_REVIEW: EDITOR,
    ProjectStatus.REVISION_REQUESTED: CLIENT,
    ProjectStatus.COMPLETED: CLIENT,
}


def generic_operation(target):
    return Operation(
        verb=f"change status to {target.value}",
        target=target,
        allowed_from=frozenset(
            status for status, targets in STATUS_TRANSITIONS.items() if target in targets
        ),
        role=TARGET_ROLES.get(target),
        activity_type=ActivityType.STATUS_CHANGED,
    )


class ProjectLifecycleService:
    """
    Owns ``Project.status``.

    Every public operation funnels through ``_transition``, which locks the
    project row, re-reads the status under the lock, checks the caller's role
    and the operation's allow-list, applies the status side effects and only
    then, outside the transaction, records activity.
    """

    def __init__(self, recorder=None, milestone_service=None):
        self.recorder = recorder or default_recorder
        self.milestones = milestone_service or MilestoneService(recorder=self.recorder)

    # Creation

    def accept_proposal(self, proposal_id, actor):
        """Turn a pending proposal into a project seeded with the default milestones."""
        with transaction.atomic():
            try:
                proposal = Proposal.objects.select_for_update().get(pk=proposal_id)
            except (Proposal.DoesNotExist, ValueError, TypeError):
                raise NotFound("Proposal not found.")
            job = Job.objects.select_for_update().get(pk=proposal.job_id)

            if job.client_id != actor.pk:
                raise PermissionDenied("Only the job owner can accept proposals.")
            if proposal.status != 'pending':
                raise ConflictError(f"This proposal has already been {proposal.status}.")
            if Project.objects.filter(job=job).exists():
                raise ConflictError("A proposal has already been accepted for this job.")

            now = timezone.now()
            proposal.status = 'accepted'
            proposal.accepted_at = now
            proposal.save(update_fields=['status', 'accepted_at'])
            job.proposals.exclude(pk=proposal.pk).filter(status='pending').update(status='rejected')
            job.status = 'in_progress'
            job.save(update_fields=['status', 'updated_at'])

            project = Project.objects.create(
                job=job,
                client_id=job.client_id,
                editor_id=proposal.editor_id,
                escrow_amount=proposal.price,
            )
            milestones = self.milestones.seed_default_milestones(project)

        logger.info(
            "Project %s created from proposal %s (escrow %s)",
            project.pk, proposal.pk, project.escrow_amount,
        )
        self.recorder.record(
            project=project,
            user=actor,
            activity_type=ActivityType.PROJECT_CREATED,
            description=f"Project created from proposal #{proposal.pk}",
            metadata={
                'proposal_id': proposal.pk,
                'job_id': job.pk,
                'escrow_amount': str(project.escrow_amount),
            },
        )
        self.recorder.record(
            project=project,
            user=actor,
            activity_type=ActivityType.MILESTONE_ADDED,
            description=f"Default milestones added ({len(milestones)})",
            metadata={'milestone_ids': [m.pk for m in milestones], 'template': 'default'},
        )
        return get_project(project.pk)

    # Status operations

    def submit_for_review(self, project_id, actor):
        return self._transition(project_id, actor, OPERATIONS['submit_for_review'])

    def request_revision(self, project_id, actor, notes=None):
        return self._transition(project_id, actor, OPERATIONS['request_revision'], note=notes)

    def complete(self, project_id, actor, feedback=None):
        return self._transition(
            project_id, actor, OPERATIONS['complete'],
            metadata={'feedback': feedback} if feedback else None,
        )

    def cancel(self, project_id, actor, reason=None):
        return self._transition(project_id, actor, OPERATIONS['cancel'], note=reason)

    def put_on_hold(self, project_id, actor, reason=None):
        return self._transition(project_id, actor, OPERATIONS['put_on_hold'], note=reason)

    def resume(self, project_id, actor):
        return self._transition(project_id, actor, OPERATIONS['resume'])

    def update_status(self, project_id, actor, target_status, notes=None):
        target = parse_status(target_status)
        if target is None:
            raise ValidationError(
                f"Invalid status: {target_status}. Valid statuses are: {', '.join(ProjectStatus.values)}"
            )
        return self._transition(project_id, actor, generic_operation(target), note=notes)

    def _transition(self, project_id, actor, operation, note=None, metadata=None):
        with transaction.atomic():
            project = get_project_for_party(
                project_id, actor, queryset=Project.objects.select_for_update(),
            )
            role = project.role_of(actor)
            if operation.role is not None and role != operation.role:
                logger.warning(
                    "User %s (%s) tried to %s project %s", actor.pk, role, operation.verb, project.pk,
                )
                raise PermissionDenied(f"Only the project {operation.role} can {operation.verb}.")

            previous = ProjectStatus(project.status)
            if previous in TERMINAL_STATUSES:
                raise ValidationError(
                    f"Project is already {previous.value}; no further status changes are allowed."
                )
            if previous not in operation.allowed_from:
                raise ValidationError(
                    f"Cannot {operation.verb}: project is {previous.value}. "
                    f"Allowed transitions: {', '.join(allowed_transitions(previous)) or 'none'}."
                )

            self._apply(project, operation.target, note)
            project.save()

        logger.info(
            "Project %s moved %s -> %s by %s %s",
            project.pk, previous.value, project.status, role, actor.pk,
        )
        self._record_transition(project, actor, role, operation, previous, note, metadata)
        return get_project(project.pk)

    def _apply(self, project, target, note):
        now = timezone.now()
        if target == ProjectStatus.REVISION_REQUESTED:
            project.revision_notes = note
            project.revision_count += 1
        elif target == ProjectStatus.ON_HOLD:
            project.hold_reason = note
        elif target == ProjectStatus.COMPLETED:
            project.completed_at = now
        elif target == ProjectStatus.CANCELLED:
            project.cancellation_reason = note
            project.cancelled_at = now
        project.status = target

    def _record_transition(self, project, actor, role, operation, previous, note, metadata):
        payload = {
            'old_status': previous.value,
            'new_status': project.status,
            'role': role,
        }
        if note:
            payload['notes'] = note
        if metadata:
            payload.update(metadata)

        if operation.activity_type == ActivityType.PROJECT_CANCELLED:
            payload['cancelled_by'] = role
            description = f"Project cancelled by {role}"
        elif operation.activity_type == ActivityType.PROJECT_COMPLETED:
            description = "Project marked as completed"
        else:
            description = (
                f"Status changed from {previous.label} to {ProjectStatus(project.status).label}"
            )
            if project.status == ProjectStatus.REVISION_REQUESTED:
                payload['revision_count'] = project.revision_count

        self.recorder.record(
            project=project,
            user=actor,
            activity_type=operation.activity_type,
            description=description,
            metadata=payload,
        )

    # Queries

    def projects_for_user(self, user, status=None):
        qs = (
            Project.objects
            .filter(Q(client=user) | Q(editor=user))
            .select_related('job', 'client', 'editor')
        )
        if status:
            if parse_status(status) is None:
                raise ValidationError(f"Invalid status: {status}")
            qs = qs.filter(status=status)
        return qs

    def get_progress(self, project):
        progress = self.milestones.get_project_progress(project)
        return {
            'total': progress['total'],
            'completed': progress['completed'],
            'percentage': progress['percentage'],
        }

    def get_stats(self, project):
        milestone_counts = self.milestones.get_project_progress(project)
        file_counts = ProjectFile.objects.filter(project=project).aggregate(
            total_files=Count('id'),
            drafts=Count('id', filter=Q(file_type='draft')),
            finals=Count('id', filter=Q(file_type='final')),
        )
        return {
            'milestones': {
                'total': milestone_counts['total'],
                'completed': milestone_counts['completed'],
            },
            'files': file_counts,
            'activity_count': activity_queries.activity_count(project),
        }

    def get_project_detail(self, project_id, actor):
        project = get_project_for_party(project_id, actor)
        return {
            'project': project,
            'progress': self.get_progress(project),
            'stats': self.get_stats(project),
            'allowed_transitions': project.allowed_transitions,
        }


class ProjectFileService:
    """Deliverable metadata: editors and clients register files, clients approve them."""

    def __init__(self, recorder=None):
        self.recorder = recorder or default_recorder

    def register(self, project, actor, *, file_type, file_name, file_path):
        ensure_party(project, actor)
        if project.status in TERMINAL_STATUSES:
            raise ValidationError(f"Cannot upload files to a {project.status} project.")
        if file_type not in dict(ProjectFile.FILE_TYPE_CHOICES):
            raise ValidationError("File type must be 'draft' or 'final'.")

        project_file = ProjectFile.objects.create(
            project=project,
            uploaded_by=actor,
            file_type=file_type,
            file_name=file_name,
            file_path=file_path,
        )
        self.recorder.record(
            project=project,
            user=actor,
            activity_type=ActivityType.FILE_UPLOADED,
            description=f"{project_file.get_file_type_display()} uploaded: {file_name}",
            metadata={'file_id': project_file.pk, 'file_type': file_type, 'file_name': file_name},
        )
        return project_file

    def approve(self, file_id, actor):
        try:
            project_file = ProjectFile.objects.select_related('project').get(pk=file_id)
        except (ProjectFile.DoesNotExist, ValueError, TypeError):
            raise NotFound("File not found.")
        project = ensure_party(project_file.project, actor)
        if project.client_id != actor.pk:
            raise PermissionDenied("Only the project client can approve files.")

        with transaction.atomic():
            project_file = ProjectFile.objects.select_for_update().get(pk=project_file.pk)
            if project_file.is_approved:
                raise ValidationError("File is already approved.")
            project_file.is_approved = True
            project_file.approved_at = timezone.now()
            project_file.save(update_fields=['is_approved', 'approved_at'])

        self.recorder.record(
            project=project,
            user=actor,
            activity_type=ActivityType.FILE_APPROVED,
            description=f"File approved: {project_file.file_name}",
            metadata={'file_id': project_file.pk, 'file_type': project_file.file_type},
        )
        return project_file


class ReviewService:
    """Reviews are exchanged once per party after completion, within the review window."""

    def __init__(self, recorder=None):
        self.recorder = recorder or default_recorder

    def submit(self, project_id, actor, *, rating, comment=''):
        project = get_project_for_party(project_id, actor)
        if project.status != ProjectStatus.COMPLETED or not project.completed_at:
            raise ValidationError("Reviews can only be submitted for completed projects.")

        deadline = project.completed_at + timedelta(days=settings.REVIEW_PERIOD_DAYS)
        if timezone.now() > deadline:
            raise ValidationError("Review period has expired.")
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationError("Rating must be an integer between 1 and 5.")
        if Review.objects.filter(project=project, reviewer=actor).exists():
            raise ConflictError("You have already reviewed this project.")

        reviewee = project.editor if actor.pk == project.client_id else project.client
        review = Review.objects.create(
            project=project,
            reviewer=actor,
            reviewee=reviewee,
            rating=rating,
            comment=comment or '',
        )
        self.recorder.record(
            project=project,
            user=actor,
            activity_type=ActivityType.REVIEW_SUBMITTED,
            description=f"Review submitted ({rating}/5)",
            metadata={'review_id': review.pk, 'rating': rating, 'reviewee_id': reviewee.pk},
        )
        return review
