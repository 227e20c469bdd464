from rest_framework.exceptions import NotFound, PermissionDenied

from .models import Project


def get_project(project_id, *, queryset=None):
    queryset = queryset if queryset is not None else Project.objects.select_related('job', 'client', 'editor')
    try:
        return queryset.get(pk=project_id)
    except (Project.DoesNotExist, ValueError, TypeError):
        raise NotFound("Project not found.")


def ensure_party(project, user):
    if not project.is_party(user):
        raise PermissionDenied("You don't have access to this project.")
    return project


def get_project_for_party(project_id, user, *, queryset=None):
    """Load a project the user is the client or editor of (404 before 403)."""
    return ensure_party(get_project(project_id, queryset=queryset), user)
