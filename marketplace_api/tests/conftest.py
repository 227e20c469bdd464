"""
Shared fixtures: one client, one editor, an outsider, and a job whose accepted
proposal has already been turned into a project.
"""
from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from jobs.models import Job, Proposal
from projects.services import ProjectLifecycleService


@pytest.fixture
def client_user(django_user_model):
    return django_user_model.objects.create_user(
        email='client@example.com',
        password='s3cure-Passw0rd',
        first_name='Casey',
        last_name='Client',
        user_type='client',
    )


@pytest.fixture
def editor_user(django_user_model):
    return django_user_model.objects.create_user(
        email='editor@example.com',
        password='s3cure-Passw0rd',
        first_name='Eli',
        last_name='Editor',
        user_type='editor',
    )


@pytest.fixture
def outsider(django_user_model):
    return django_user_model.objects.create_user(
        email='outsider@example.com',
        password='s3cure-Passw0rd',
        first_name='Olu',
        last_name='Outsider',
        user_type='client',
    )


@pytest.fixture
def job(client_user):
    return Job.objects.create(
        client=client_user,
        title='Wedding highlight reel',
        description='Cut a 5 minute highlight reel from 3 hours of footage.',
        duration_minutes=5,
        budget_min=Decimal('300.00'),
        budget_max=Decimal('600.00'),
    )


@pytest.fixture
def proposal(job, editor_user):
    return Proposal.objects.create(
        job=job,
        editor=editor_user,
        price=Decimal('450.00'),
        estimated_days=7,
        message='I can deliver in a week.',
    )


@pytest.fixture
def lifecycle():
    return ProjectLifecycleService()


@pytest.fixture
def project(lifecycle, proposal, client_user):
    return lifecycle.accept_proposal(proposal.pk, client_user)


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def auth_client():
    """Return a factory for API clients authenticated as a given user."""
    def make(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client
    return make
