from django.db.models import Count, Max, Q

from .models import ActivityType, ProjectActivity


def find_by_project(project, *, limit=50, offset=0):
    qs = ProjectActivity.objects.filter(project=project).select_related('user')
    return list(qs[offset:offset + limit])


def find_by_user(user, *, limit=20, offset=0):
    """Recent activity across every project the user is a party to."""
    qs = (
        ProjectActivity.objects
        .filter(Q(project__client=user) | Q(project__editor=user))
        .select_related('user', 'project', 'project__job')
    )
    return list(qs[offset:offset + limit])


def find_by_type(project, activity_type):
    activity_type = ActivityType(activity_type)
    return list(
        ProjectActivity.objects
        .filter(project=project, activity_type=activity_type)
        .select_related('user')
    )


def activity_count(project):
    return ProjectActivity.objects.filter(project=project).count()


def get_project_summary(project):
    return list(
        ProjectActivity.objects
        .filter(project=project)
        .order_by()
        .values('activity_type')
        .annotate(count=Count('id'), last_activity=Max('created_at'))
        .order_by('activity_type')
    )
