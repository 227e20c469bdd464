from rest_framework import views as drf_views
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from drf_yasg import openapi
from drf_yasg.utils import swagger_auto_schema

from projects.access import get_project_for_party
from . import services
from .models import ActivityType
from .serializers import ProjectActivitySerializer

MAX_LIMIT = 200

limit_param = openapi.Parameter('limit', openapi.IN_QUERY, type=openapi.TYPE_INTEGER)
offset_param = openapi.Parameter('offset', openapi.IN_QUERY, type=openapi.TYPE_INTEGER)
type_param = openapi.Parameter(
    'type', openapi.IN_QUERY, type=openapi.TYPE_STRING, enum=ActivityType.values,
)


def int_param(request, name, default):
    value = request.query_params.get(name)
    if value is None:
        return default
    try:
        value = int(value)
    except ValueError:
        raise ValidationError(f"{name} must be an integer.")
    if value < 0:
        raise ValidationError(f"{name} must be zero or greater.")
    return min(value, MAX_LIMIT) if name == 'limit' else value


class ProjectActivityAPIView(drf_views.APIView):
    """Newest-first activity feed of a project. ``?type=`` narrows it to one activity type."""

    @swagger_auto_schema(manual_parameters=[limit_param, offset_param, type_param])
    def get(self, request, id):
        project = get_project_for_party(id, request.user)
        activity_type = request.query_params.get('type')

        if activity_type:
            try:
                activities = services.find_by_type(project, activity_type)
            except ValueError:
                raise ValidationError(f"Invalid activity type: {activity_type}")
        else:
            activities = services.find_by_project(
                project,
                limit=int_param(request, 'limit', 50),
                offset=int_param(request, 'offset', 0),
            )

        return Response({
            'success': True,
            'count': services.activity_count(project),
            'activities': ProjectActivitySerializer(activities, many=True).data
        })


class ProjectActivitySummaryAPIView(drf_views.APIView):

    def get(self, request, id):
        project = get_project_for_party(id, request.user)
        return Response({
            'success': True,
            'summary': services.get_project_summary(project),
        })


class RecentActivityAPIView(drf_views.APIView):
    """Latest activity across every project the user is a party to."""

    @swagger_auto_schema(manual_parameters=[limit_param, offset_param])
    def get(self, request):
        activities = services.find_by_user(
            request.user,
            limit=int_param(request, 'limit', 20),
            offset=int_param(request, 'offset', 0),
        )
        return Response({
            'success': True,
            'activities': ProjectActivitySerializer(activities, many=True).data
        })
