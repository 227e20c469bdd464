"""Endpoint tests: routing, response shape and the error envelope."""
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from milestones.models import Milestone
from projects.models import Project, ProjectFile

pytestmark = pytest.mark.django_db


class TestErrorEnvelope:
    """Tests that failures render as {"success": false, "error": ...}."""

    def test_unauthenticated(self, api_client):
        """Test that anonymous requests are refused with the envelope."""
        response = api_client.get('/api/projects/')
        assert response.status_code == 401
        assert response.data['success'] is False
        assert response.data['error']

    def test_not_found(self, auth_client, client_user):
        """Test a missing project."""
        response = auth_client(client_user).get('/api/projects/98765/')
        assert response.status_code == 404
        assert response.data == {'success': False, 'error': 'Project not found.'}

    def test_forbidden(self, auth_client, project, outsider):
        """Test a project the user is not a party to."""
        response = auth_client(outsider).get(f'/api/projects/{project.pk}/')
        assert response.status_code == 403
        assert response.data['success'] is False

    def test_validation_details(self, auth_client, project, client_user):
        """Test that serializer errors keep their field breakdown."""
        response = auth_client(client_user).post(f'/api/milestones/project/{project.pk}/', {}, format='json')
        assert response.status_code == 400
        assert response.data['success'] is False
        assert response.data['error'].startswith('title')
        assert 'title' in response.data['details']

    def test_conflict_is_400(self, auth_client, project, client_user):
        """Test that a conflict renders as a 400."""
        response = auth_client(client_user).post(f'/api/milestones/project/{project.pk}/defaults/')
        assert response.status_code == 400
        assert response.data == {'success': False, 'error': 'Project already has milestones.'}


class TestProjectEndpoints:
    """Tests for project and lifecycle endpoints."""

    def test_accept_proposal(self, auth_client, proposal, client_user):
        """Test accepting a proposal over HTTP."""
        response = auth_client(client_user).post(f'/api/projects/accept/{proposal.pk}/')

        assert response.status_code == 201
        assert response.data['success'] is True
        assert response.data['project']['status'] == 'in_progress'
        assert response.data['project']['escrow_amount'] == '450.00'
        assert response.data['allowed_transitions'] == ['under_review', 'on_hold', 'cancelled']

    def test_editor_cannot_accept(self, auth_client, proposal, editor_user):
        """Test that only client accounts reach the accept endpoint."""
        response = auth_client(editor_user).post(f'/api/projects/accept/{proposal.pk}/')
        assert response.status_code == 403

    def test_list_my_projects(self, auth_client, project, editor_user, outsider):
        """Test that each user only sees their own projects."""
        assert len(auth_client(editor_user).get('/api/projects/').data) == 1
        assert auth_client(outsider).get('/api/projects/').data == []

    def test_detail_includes_progress_and_stats(self, auth_client, project, client_user):
        """Test the project detail payload."""
        response = auth_client(client_user).get(f'/api/projects/{project.pk}/')

        assert response.status_code == 200
        assert response.data['project']['title'] == 'Wedding highlight reel'
        assert response.data['progress'] == {'total': 5, 'completed': 0, 'percentage': 0}
        assert response.data['stats']['activity_count'] == 2
        assert response.data['allowed_transitions'] == ['under_review', 'on_hold', 'cancelled']

    def test_lifecycle_over_http(self, auth_client, project, client_user, editor_user):
        """Test submit, revise and complete through the dedicated endpoints."""
        editor, client = auth_client(editor_user), auth_client(client_user)

        response = editor.post(f'/api/projects/{project.pk}/submit-for-review/')
        assert response.data['project']['status'] == 'under_review'

        response = client.post(f'/api/projects/{project.pk}/request-revision/', {'notes': 'Louder music'}, format='json')
        assert response.data['project']['revision_count'] == 1
        assert response.data['allowed_transitions'] == ['under_review', 'on_hold', 'cancelled']

        editor.post(f'/api/projects/{project.pk}/submit-for-review/')
        response = client.post(f'/api/projects/{project.pk}/complete/', {'feedback': 'Great'}, format='json')
        assert response.status_code == 200
        assert response.data['project']['status'] == 'completed'
        assert response.data['allowed_transitions'] == []

    def test_wrong_role_is_403(self, auth_client, project, client_user):
        """Test that a client cannot submit work for review."""
        response = auth_client(client_user).post(f'/api/projects/{project.pk}/submit-for-review/')
        assert response.status_code == 403
        assert response.data['success'] is False

    def test_generic_status(self, auth_client, project, client_user):
        """Test the PUT status endpoint, including an unknown status."""
        client = auth_client(client_user)

        response = client.put(f'/api/projects/{project.pk}/status/', {'status': 'on_hold', 'notes': 'Paused'}, format='json')
        assert response.status_code == 200
        assert response.data['project']['hold_reason'] == 'Paused'

        response = client.put(f'/api/projects/{project.pk}/status/', {'status': 'archived'}, format='json')
        assert response.status_code == 400
        assert 'Invalid status' in response.data['error']

    def test_hold_resume_cancel(self, auth_client, project, editor_user):
        """Test hold, resume and cancel endpoints."""
        client = auth_client(editor_user)
        client.post(f'/api/projects/{project.pk}/hold/', {'reason': 'Sick'}, format='json')
        client.post(f'/api/projects/{project.pk}/resume/')
        response = client.post(f'/api/projects/{project.pk}/cancel/', {'reason': 'Scope changed'}, format='json')

        assert response.data['project']['status'] == 'cancelled'
        assert response.data['project']['hold_reason'] == 'Sick'
        assert response.data['project']['cancellation_reason'] == 'Scope changed'

        response = client.post(f'/api/projects/{project.pk}/resume/')
        assert response.status_code == 400


class TestFilesAndReviews:
    """Tests for deliverable files and reviews."""

    def test_upload_and_approve(self, auth_client, project, client_user, editor_user):
        """Test that an editor uploads and the client approves."""
        response = auth_client(editor_user).post(f'/api/projects/{project.pk}/files/', {
            'file_type': 'draft',
            'file_name': 'reel_v1.mp4',
            'file_path': 's3://deliveries/reel_v1.mp4',
        }, format='json')
        assert response.status_code == 201
        file_id = response.data['file']['id']

        assert auth_client(editor_user).post(f'/api/projects/files/{file_id}/approve/').status_code == 403

        response = auth_client(client_user).post(f'/api/projects/files/{file_id}/approve/')
        assert response.status_code == 200
        assert response.data['file']['is_approved'] is True

        stats = auth_client(client_user).get(f'/api/projects/{project.pk}/').data['stats']
        assert stats['files'] == {'total_files': 1, 'drafts': 1, 'finals': 0}

    def test_review_requires_completion(self, auth_client, project, client_user):
        """Test that an in-progress project cannot be reviewed."""
        response = auth_client(client_user).post(f'/api/projects/{project.pk}/reviews/', {'rating': 5}, format='json')
        assert response.status_code == 400

    def test_review_window(self, auth_client, lifecycle, project, client_user, editor_user):
        """Test one review per party inside the review period."""
        lifecycle.submit_for_review(project.pk, editor_user)
        lifecycle.complete(project.pk, client_user)

        response = auth_client(client_user).post(f'/api/projects/{project.pk}/reviews/', {'rating': 5, 'comment': 'Superb'}, format='json')
        assert response.status_code == 201
        assert response.data['review']['reviewee']['id'] == editor_user.pk

        response = auth_client(client_user).post(f'/api/projects/{project.pk}/reviews/', {'rating': 4}, format='json')
        assert response.status_code == 400

        Project.objects.filter(pk=project.pk).update(completed_at=timezone.now() - timedelta(days=30))
        response = auth_client(editor_user).post(f'/api/projects/{project.pk}/reviews/', {'rating': 5}, format='json')
        assert response.status_code == 400
        assert response.data['error'] == 'Review period has expired.'

    def test_uploads_closed_after_completion(self, auth_client, lifecycle, project, client_user, editor_user):
        """Test that terminal projects take no new files."""
        lifecycle.submit_for_review(project.pk, editor_user)
        lifecycle.complete(project.pk, client_user)

        response = auth_client(editor_user).post(f'/api/projects/{project.pk}/files/', {
            'file_type': 'final', 'file_name': 'late.mp4', 'file_path': '/tmp/late.mp4',
        }, format='json')
        assert response.status_code == 400
        assert not ProjectFile.objects.exists()


class TestMilestoneEndpoints:
    """Tests for milestone endpoints."""

    def test_list_with_progress(self, auth_client, project, editor_user):
        """Test listing a project's milestones."""
        response = auth_client(editor_user).get(f'/api/milestones/project/{project.pk}/')
        assert len(response.data['milestones']) == 5
        assert response.data['progress']['percentage'] == 0

    def test_patch_and_complete(self, auth_client, project, client_user):
        """Test a partial update followed by completion."""
        milestone = Milestone.objects.filter(project=project).first()
        client = auth_client(client_user)

        response = client.patch(f'/api/milestones/{milestone.pk}/', {'title': 'Kickoff call'}, format='json')
        assert response.data['milestone']['title'] == 'Kickoff call'
        assert response.data['milestone']['description'] == milestone.description

        response = client.post(f'/api/milestones/{milestone.pk}/complete/')
        assert response.data['milestone']['status'] == 'completed'
        assert response.data['progress']['percentage'] == 20

    def test_reorder_rejects_bad_payload(self, auth_client, project, client_user):
        """Test that reorder entries must carry integer ids."""
        response = auth_client(client_user).put(
            f'/api/milestones/project/{project.pk}/reorder/',
            {'orders': [{'id': 'abc', 'order': 1}]},
            format='json',
        )
        assert response.status_code == 400

    def test_upcoming_days_param(self, auth_client, project, client_user):
        """Test the upcoming window query parameter."""
        Milestone.objects.filter(project=project, display_order=2).update(
            due_date=timezone.localdate() + timedelta(days=10),
        )
        client = auth_client(client_user)
        assert client.get('/api/milestones/upcoming/').data['milestones'] == []
        assert len(client.get('/api/milestones/upcoming/?days=14').data['milestones']) == 1
        assert client.get('/api/milestones/upcoming/?days=soon').status_code == 400

    def test_upcoming_days_too_large(self, auth_client, client_user):
        """Test that an oversized window gets the error envelope, not a server error."""
        response = auth_client(client_user).get('/api/milestones/upcoming/?days=1000000000')
        assert response.status_code == 400
        assert response.data['success'] is False
        assert 'Days must be between' in response.data['error']


class TestActivityEndpoints:
    """Tests for activity endpoints."""

    def test_project_feed_and_filter(self, auth_client, project, editor_user):
        """Test the feed and the ?type= filter."""
        client = auth_client(editor_user)

        response = client.get(f'/api/projects/{project.pk}/activity/')
        assert response.data['count'] == 2
        assert response.data['activities'][0]['activity_type'] == 'milestone_added'

        response = client.get(f'/api/projects/{project.pk}/activity/?type=project_created')
        assert len(response.data['activities']) == 1

        response = client.get(f'/api/projects/{project.pk}/activity/?type=bogus')
        assert response.status_code == 400

    def test_summary_and_recent(self, auth_client, project, client_user, outsider):
        """Test the summary and the cross-project recent feed."""
        summary = auth_client(client_user).get(f'/api/projects/{project.pk}/activity/summary/').data['summary']
        assert {row['activity_type'] for row in summary} == {'project_created', 'milestone_added'}

        assert len(auth_client(client_user).get('/api/projects/activity/recent/').data['activities']) == 2
        assert auth_client(outsider).get('/api/projects/activity/recent/').data['activities'] == []


class TestPaymentEndpoints:
    """Tests for payment and wallet endpoints."""

    def test_create_process_refund(self, auth_client, project, client_user, editor_user):
        """Test the payment round trip over HTTP."""
        client = auth_client(client_user)
        response = client.post('/api/payments/', {
            'project_id': project.pk,
            'payee_id': editor_user.pk,
            'amount': '200.00',
            'description': 'First draft',
        }, format='json')
        assert response.status_code == 201
        payment_id = response.data['payment']['id']

        response = client.post(f'/api/payments/{payment_id}/process/', {'payment_method': 'demo_card'}, format='json')
        assert response.data['payment']['status'] == 'completed'

        wallet = auth_client(editor_user).get('/api/payments/wallet/').data['wallet']
        assert Decimal(wallet['balance']) == Decimal('200.00')

        response = client.post(f'/api/payments/{payment_id}/refund/', {'reason': 'Duplicate'}, format='json')
        assert response.data['payment']['status'] == 'refunded'
        assert len(client.get('/api/payments/wallet/transactions/').data) == 2

    def test_declined_payment(self, auth_client, project, client_user, editor_user):
        """Test a declined charge over HTTP."""
        client = auth_client(client_user)
        payment_id = client.post('/api/payments/', {
            'project_id': project.pk, 'payee_id': editor_user.pk, 'amount': '20.00',
        }, format='json').data['payment']['id']

        response = client.post(f'/api/payments/{payment_id}/process/', {
            'payment_method': 'demo_card', 'card_number': '4000 0000 0000 0002',
        }, format='json')
        assert response.data['success'] is False
        assert response.data['payment']['status'] == 'failed'

    def test_my_payments_and_project_payments(self, auth_client, project, client_user, editor_user, outsider):
        """Test payment listings and their access rules."""
        auth_client(client_user).post('/api/payments/', {
            'project_id': project.pk, 'payee_id': editor_user.pk, 'amount': '20.00',
        }, format='json')

        assert len(auth_client(editor_user).get('/api/payments/my/?role=payee').data) == 1
        assert auth_client(editor_user).get('/api/payments/my/?role=payer').data == []
        assert len(auth_client(client_user).get(f'/api/payments/project/{project.pk}/').data['payments']) == 1
        assert auth_client(outsider).get(f'/api/payments/project/{project.pk}/').status_code == 403


class TestAccountEndpoints:
    """Tests for registration and profile endpoints."""

    def test_register_editor(self, api_client):
        """Test self-registration returns tokens."""
        response = api_client.post('/api/account/register/', {
            'first_name': 'Ada',
            'last_name': 'Cutter',
            'email': 'ada@example.com',
            'user_type': 'editor',
            'password': 'Montage-2024!',
            'confirm_password': 'Montage-2024!',
        }, format='json')
        assert response.status_code == 201
        assert response.data['access']
        assert response.data['user']['user_type'] == 'editor'

    def test_admin_self_registration_refused(self, api_client):
        """Test that admin accounts cannot be self-registered."""
        response = api_client.post('/api/account/register/', {
            'first_name': 'Root',
            'last_name': 'User',
            'email': 'root@example.com',
            'user_type': 'admin',
            'password': 'Montage-2024!',
            'confirm_password': 'Montage-2024!',
        }, format='json')
        assert response.status_code == 400
        assert response.data['success'] is False

    def test_profile(self, auth_client, client_user):
        """Test reading the current user's profile."""
        response = auth_client(client_user).get('/api/account/users/me/')
        assert response.data['email'] == 'client@example.com'
        assert response.data['project_counts'] == {}

    def test_profile_project_counts(self, auth_client, project, client_user, editor_user, outsider):
        """Test that each party sees the shared project counted on their own side."""
        for user in (client_user, editor_user):
            response = auth_client(user).get('/api/account/users/me/')
            assert response.data['project_counts'] == {'in_progress': 1}
        assert auth_client(outsider).get('/api/account/users/me/').data['project_counts'] == {}


class TestJobEndpoints:
    """Tests for job posting and proposals."""

    def test_client_posts_job_editor_cannot(self, auth_client, client_user, editor_user):
        """Test that only clients post jobs."""
        payload = {'title': 'Product teaser', 'description': '30 second teaser', 'budget_min': '100.00', 'budget_max': '250.00'}

        response = auth_client(client_user).post('/api/jobs/', payload, format='json')
        assert response.status_code == 201
        assert response.data['job']['status'] == 'open'

        assert auth_client(editor_user).post('/api/jobs/', payload, format='json').status_code == 403

    def test_budget_range_validated(self, auth_client, client_user):
        """Test that the maximum budget cannot be below the minimum."""
        response = auth_client(client_user).post('/api/jobs/', {
            'title': 'Teaser', 'description': 'Short', 'budget_min': '300.00', 'budget_max': '100.00',
        }, format='json')
        assert response.status_code == 400

    def test_editor_proposes_once(self, auth_client, job, editor_user, client_user):
        """Test proposal submission and the one-per-editor rule."""
        editor = auth_client(editor_user)
        response = editor.post(f'/api/jobs/{job.pk}/proposals/', {'price': '400.00', 'estimated_days': 5}, format='json')
        assert response.status_code == 201
        assert response.data['proposal']['status'] == 'pending'

        response = editor.post(f'/api/jobs/{job.pk}/proposals/', {'price': '380.00'}, format='json')
        assert response.status_code == 400

        assert len(auth_client(client_user).get(f'/api/jobs/{job.pk}/proposals/').data) == 1

    def test_accepted_job_leaves_open_list(self, auth_client, project, editor_user):
        """Test that the default job listing only shows open jobs."""
        assert auth_client(editor_user).get('/api/jobs/').data == []
        assert len(auth_client(editor_user).get('/api/jobs/?status=in_progress').data) == 1
