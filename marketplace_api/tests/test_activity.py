"""Tests for the activity log: recorder, immutability and read queries."""
from unittest.mock import patch

import pytest
from django.db import DatabaseError

from activity import services
from activity.models import ActivityType, ImmutableActivityError, ProjectActivity
from activity.recorder import ActivityRecorder

pytestmark = pytest.mark.django_db


class TestRecorder:
    """Tests for ActivityRecorder.record."""

    def test_records_entry(self, project, client_user):
        """Test a normal write."""
        entry = ActivityRecorder().record(
            project=project,
            user=client_user,
            activity_type='message_sent',
            description='Sent the shot list',
            metadata={'length': 3},
        )
        assert entry.activity_type == ActivityType.MESSAGE_SENT
        assert entry.metadata == {'length': 3}

    def test_unknown_type_is_dropped(self, project, client_user):
        """Test that an invalid activity type is logged and dropped."""
        before = ProjectActivity.objects.count()
        result = ActivityRecorder().record(
            project=project, user=client_user, activity_type='teleported', description='?',
        )
        assert result is None
        assert ProjectActivity.objects.count() == before

    def test_database_failure_is_swallowed(self, project, client_user, caplog):
        """Test that a failed insert never raises."""
        with patch.object(ProjectActivity.objects, 'create', side_effect=DatabaseError('locked')):
            result = ActivityRecorder().record(
                project=project, user=client_user,
                activity_type=ActivityType.FILE_UPLOADED, description='cut.mp4',
            )
        assert result is None
        assert 'Failed to record' in caplog.text


class TestImmutability:
    """Tests that activity rows are append-only."""

    def test_update_refused(self, project):
        """Test that saving an existing row raises."""
        entry = ProjectActivity.objects.filter(project=project).first()
        entry.description = 'rewritten'
        with pytest.raises(ImmutableActivityError):
            entry.save()
        entry.refresh_from_db()
        assert entry.description != 'rewritten'

    def test_delete_refused(self, project):
        """Test that deleting a row raises."""
        entry = ProjectActivity.objects.filter(project=project).first()
        with pytest.raises(ImmutableActivityError):
            entry.delete()
        assert ProjectActivity.objects.filter(pk=entry.pk).exists()


class TestQueries:
    """Tests for the read side of the activity log."""

    def test_find_by_project_newest_first(self, lifecycle, project, editor_user):
        """Test ordering and paging of the project feed."""
        lifecycle.submit_for_review(project.pk, editor_user)

        feed = services.find_by_project(project)
        assert [a.activity_type for a in feed] == [
            ActivityType.STATUS_CHANGED, ActivityType.MILESTONE_ADDED, ActivityType.PROJECT_CREATED,
        ]
        assert len(services.find_by_project(project, limit=1, offset=1)) == 1

    def test_find_by_user(self, project, editor_user, outsider):
        """Test that users only see activity on their own projects."""
        assert len(services.find_by_user(editor_user)) == 2
        assert services.find_by_user(outsider) == []

    def test_find_by_type(self, project):
        """Test filtering by activity type."""
        created = services.find_by_type(project, 'project_created')
        assert len(created) == 1
        with pytest.raises(ValueError):
            services.find_by_type(project, 'nonsense')

    def test_summary(self, lifecycle, project, editor_user, client_user):
        """Test counts and last occurrence per type."""
        lifecycle.put_on_hold(project.pk, editor_user, 'holiday')
        lifecycle.resume(project.pk, client_user)

        summary = {row['activity_type']: row for row in services.get_project_summary(project)}
        assert summary['status_changed']['count'] == 2
        assert summary['project_created']['count'] == 1
        assert summary['status_changed']['last_activity'] is not None
        assert services.activity_count(project) == 4
