"""Tests for MilestoneService."""
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied, ValidationError

from activity.models import ActivityType, ProjectActivity
from jobs.models import Job, Proposal
from marketplace_api.exceptions import ConflictError
from milestones.models import Milestone
from milestones.services import MAX_UPCOMING_DAYS, MilestoneService, completion_percentage

pytestmark = pytest.mark.django_db


@pytest.fixture
def service():
    return MilestoneService()


@pytest.fixture
def empty_project(project):
    Milestone.objects.filter(project=project).delete()
    return project


@pytest.fixture
def other_project(lifecycle, outsider, editor_user):
    job = Job.objects.create(client=outsider, title='Podcast clips', description='Ten short clips.')
    proposal = Proposal.objects.create(job=job, editor=editor_user, price=Decimal('120.00'))
    return lifecycle.accept_proposal(proposal.pk, outsider)


class TestCompletionPercentage:
    """Tests for the progress rounding helper."""

    @pytest.mark.parametrize("completed,total,expected", [
        (0, 0, 0),
        (0, 5, 0),
        (1, 3, 33),
        (2, 3, 67),
        (1, 8, 13),
        (5, 5, 100),
    ])
    def test_rounding(self, completed, total, expected):
        """Test whole-number rounding half up."""
        assert completion_percentage(completed, total) == expected


class TestCreateAndList:
    """Tests for creating and listing milestones."""

    def test_create_logs_activity(self, service, empty_project, editor_user):
        """Test that a new milestone is logged as milestone_added."""
        milestone = service.create(empty_project, editor_user, title='Colour grade', display_order=1)

        assert milestone.status == Milestone.PENDING
        assert milestone.completed_at is None
        entry = ProjectActivity.objects.filter(project=empty_project).latest('id')
        assert entry.activity_type == ActivityType.MILESTONE_ADDED
        assert entry.metadata['milestone_id'] == milestone.pk

    def test_blank_title_rejected(self, service, empty_project, editor_user):
        """Test that a milestone needs a title."""
        with pytest.raises(ValidationError):
            service.create(empty_project, editor_user, title='   ')

    def test_outsider_cannot_create(self, service, empty_project, outsider):
        """Test that only parties may add milestones."""
        with pytest.raises(PermissionDenied):
            service.create(empty_project, outsider, title='Sneaky')

    def test_ordering(self, service, empty_project, client_user):
        """Test ordering by display order, then due date with undated last."""
        today = timezone.localdate()
        late = service.create(empty_project, client_user, title='Late', display_order=1, due_date=today + timedelta(days=9))
        undated = service.create(empty_project, client_user, title='Undated', display_order=1)
        early = service.create(empty_project, client_user, title='Early', display_order=1, due_date=today + timedelta(days=2))
        first = service.create(empty_project, client_user, title='First', display_order=0)

        assert list(service.find_by_project(empty_project)) == [first, early, late, undated]


class TestDefaults:
    """Tests for the default milestone template."""

    def test_seed_empty_project(self, service, empty_project, client_user):
        """Test seeding a project with no milestones."""
        milestones = service.create_default_milestones(empty_project, client_user)

        assert [m.display_order for m in milestones] == [1, 2, 3, 4, 5]
        assert milestones[0].title == 'Project Kickoff'
        assert milestones[-1].title == 'Project Approval'

    def test_conflict_when_milestones_exist(self, service, project, client_user):
        """Test that defaults are refused once the project has milestones."""
        with pytest.raises(ConflictError):
            service.create_default_milestones(project, client_user)
        assert Milestone.objects.filter(project=project).count() == 5


class TestUpdateAndComplete:
    """Tests for partial updates and completion."""

    def test_partial_update_keeps_other_fields(self, service, project, editor_user):
        """Test that omitted fields are untouched."""
        milestone = Milestone.objects.filter(project=project).first()
        updated = service.update(milestone, editor_user, title='Kickoff call')

        assert updated.title == 'Kickoff call'
        assert updated.description == milestone.description
        assert updated.status == Milestone.PENDING

    def test_update_to_completed_stamps_and_clears(self, service, project, editor_user):
        """Test that completed_at follows the status on partial updates."""
        milestone = Milestone.objects.filter(project=project).first()

        milestone = service.update(milestone, editor_user, status=Milestone.COMPLETED)
        assert milestone.completed_at is not None

        milestone = service.update(milestone, editor_user, status=Milestone.IN_PROGRESS)
        assert milestone.completed_at is None

    def test_unknown_status_rejected(self, service, project, editor_user):
        """Test an invalid milestone status."""
        milestone = Milestone.objects.filter(project=project).first()
        with pytest.raises(ValidationError):
            service.update(milestone, editor_user, status='done')

    def test_complete_logs_progress(self, service, project, client_user):
        """Test completion stamps the milestone and logs progress."""
        milestone = Milestone.objects.filter(project=project).first()
        milestone = service.complete(milestone, client_user)

        assert milestone.status == Milestone.COMPLETED
        assert milestone.completed_at is not None
        entry = ProjectActivity.objects.filter(
            project=project, activity_type=ActivityType.MILESTONE_COMPLETED,
        ).get()
        assert entry.metadata['progress']['percentage'] == 20

    def test_complete_twice_rejected(self, service, project, client_user):
        """Test that an already completed milestone cannot be completed again."""
        milestone = Milestone.objects.filter(project=project).first()
        service.complete(milestone, client_user)
        with pytest.raises(ValidationError):
            service.complete(milestone, client_user)

    def test_delete(self, service, project, editor_user):
        """Test deleting a milestone."""
        milestone = Milestone.objects.filter(project=project).first()
        service.delete(milestone, editor_user)
        assert not Milestone.objects.filter(pk=milestone.pk).exists()


class TestReorder:
    """Tests for batch reordering."""

    def test_reorder(self, service, project, client_user):
        """Test that the batch is applied."""
        milestones = list(service.find_by_project(project))
        orders = [{'id': m.pk, 'order': 10 - i} for i, m in enumerate(milestones)]

        reordered = list(service.reorder(project, client_user, orders))
        assert [m.pk for m in reordered] == [m.pk for m in reversed(milestones)]

    def test_cross_project_batch_rejected(self, service, project, other_project, editor_user):
        """Test that one foreign id rejects the whole batch."""
        own = Milestone.objects.filter(project=project).first()
        foreign = Milestone.objects.filter(project=other_project).first()

        with pytest.raises(ValidationError):
            service.reorder(project, editor_user, [
                {'id': own.pk, 'order': 99},
                {'id': foreign.pk, 'order': 98},
            ])

        own.refresh_from_db()
        foreign.refresh_from_db()
        assert own.display_order == 1
        assert foreign.display_order == 1

    def test_malformed_entries(self, service, project, client_user):
        """Test that non-integer ids and orders are rejected."""
        milestone = Milestone.objects.filter(project=project).first()
        with pytest.raises(ValidationError):
            service.reorder(project, client_user, [{'id': str(milestone.pk), 'order': 1}])
        with pytest.raises(ValidationError):
            service.reorder(project, client_user, [{'id': milestone.pk}])
        with pytest.raises(ValidationError):
            service.reorder(project, client_user, {'id': milestone.pk, 'order': 1})


class TestDueDates:
    """Tests for overdue and upcoming queries."""

    def test_overdue_and_upcoming(self, service, empty_project, client_user, editor_user, outsider):
        """Test that both queries exclude completed milestones and other users."""
        today = timezone.localdate()
        overdue = service.create(empty_project, client_user, title='Overdue', due_date=today - timedelta(days=1))
        soon = service.create(empty_project, client_user, title='Soon', due_date=today + timedelta(days=3))
        later = service.create(empty_project, client_user, title='Later', due_date=today + timedelta(days=20))
        done = service.create(empty_project, client_user, title='Done', due_date=today - timedelta(days=2))
        service.complete(done, client_user)

        assert service.get_overdue_milestones(editor_user) == [overdue]
        assert service.get_upcoming_milestones(editor_user) == [soon]
        assert service.get_upcoming_milestones(client_user, days=30) == [soon, later]
        assert service.get_overdue_milestones(outsider) == []

    def test_negative_days(self, service, client_user):
        """Test that the look-ahead window cannot be negative."""
        with pytest.raises(ValidationError):
            service.get_upcoming_milestones(client_user, days=-1)

    @pytest.mark.parametrize("days", [MAX_UPCOMING_DAYS + 1, 1000000000])
    def test_days_upper_bound(self, service, client_user, days):
        """Test that huge look-ahead windows are rejected before date arithmetic."""
        with pytest.raises(ValidationError):
            service.get_upcoming_milestones(client_user, days=days)

    def test_days_at_bound(self, service, client_user):
        """Test that the largest window is accepted."""
        assert service.get_upcoming_milestones(client_user, days=MAX_UPCOMING_DAYS) == []
