from rest_framework import status, views as drf_views
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from drf_yasg import openapi
from drf_yasg.utils import swagger_auto_schema

from projects.access import get_project_for_party
from . import serializers as my_serializers
from .services import MilestoneService


class MilestoneServiceMixin:
    service = MilestoneService()


class ProjectMilestonesAPIView(MilestoneServiceMixin, drf_views.APIView):
    """
    GET: the project's milestones in display order, with progress.
    POST: add a milestone to the project.
    """

    @swagger_auto_schema(operation_summary="List a project's milestones")
    def get(self, request, project_id):
        project = get_project_for_party(project_id, request.user)
        milestones = self.service.find_by_project(project)
        return Response({
            'success': True,
            'milestones': my_serializers.MilestoneSerializer(milestones, many=True).data,
            'progress': self.service.get_project_progress(project),
        })

    @swagger_auto_schema(
        operation_summary="Add a milestone",
        request_body=my_serializers.MilestoneCreateSerializer,
        responses={201: my_serializers.MilestoneSerializer},
    )
    def post(self, request, project_id):
        project = get_project_for_party(project_id, request.user)
        serializer = my_serializers.MilestoneCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        milestone = self.service.create(project, request.user, **serializer.validated_data)
        return Response({
            'success': True,
            'detail': "Milestone created successfully.",
            'milestone': my_serializers.MilestoneSerializer(milestone).data
        }, status=status.HTTP_201_CREATED)


class DefaultMilestonesAPIView(MilestoneServiceMixin, drf_views.APIView):

    @swagger_auto_schema(operation_summary="Seed the default milestone template")
    def post(self, request, project_id):
        project = get_project_for_party(project_id, request.user)
        milestones = self.service.create_default_milestones(project, request.user)
        return Response({
            'success': True,
            'detail': "Default milestones created.",
            'milestones': my_serializers.MilestoneSerializer(milestones, many=True).data
        }, status=status.HTTP_201_CREATED)


class ReorderMilestonesAPIView(MilestoneServiceMixin, drf_views.APIView):

    @swagger_auto_schema(
        operation_summary="Reorder a project's milestones",
        request_body=my_serializers.ReorderSerializer,
    )
    def put(self, request, project_id):
        project = get_project_for_party(project_id, request.user)
        serializer = my_serializers.ReorderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        milestones = self.service.reorder(project, request.user, serializer.validated_data['orders'])
        return Response({
            'success': True,
            'detail': "Milestones reordered.",
            'milestones': my_serializers.MilestoneSerializer(milestones, many=True).data
        })


class MilestoneDetailAPIView(MilestoneServiceMixin, drf_views.APIView):

    def get(self, request, id):
        milestone = self.service.get_milestone(id, request.user)
        return Response({
            'success': True,
            'milestone': my_serializers.MilestoneSerializer(milestone).data
        })

    @swagger_auto_schema(
        operation_summary="Partially update a milestone",
        request_body=my_serializers.MilestoneUpdateSerializer,
    )
    def patch(self, request, id):
        milestone = self.service.get_milestone(id, request.user)
        serializer = my_serializers.MilestoneUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        milestone = self.service.update(milestone, request.user, **serializer.validated_data)
        return Response({
            'success': True,
            'detail': "Milestone updated.",
            'milestone': my_serializers.MilestoneSerializer(milestone).data
        })

    def delete(self, request, id):
        milestone = self.service.get_milestone(id, request.user)
        self.service.delete(milestone, request.user)
        return Response({
            'success': True,
            'detail': "Milestone deleted."
        })


class CompleteMilestoneAPIView(MilestoneServiceMixin, drf_views.APIView):

    @swagger_auto_schema(operation_summary="Mark a milestone as completed")
    def post(self, request, id):
        milestone = self.service.get_milestone(id, request.user)
        milestone = self.service.complete(milestone, request.user)
        return Response({
            'success': True,
            'detail': "Milestone completed.",
            'milestone': my_serializers.MilestoneSerializer(milestone).data,
            'progress': self.service.get_project_progress(milestone.project),
        })


class OverdueMilestonesAPIView(MilestoneServiceMixin, drf_views.APIView):

    def get(self, request):
        milestones = self.service.get_overdue_milestones(request.user)
        return Response({
            'success': True,
            'milestones': my_serializers.MilestoneSerializer(milestones, many=True).data
        })


class UpcomingMilestonesAPIView(MilestoneServiceMixin, drf_views.APIView):
    days_param = openapi.Parameter(
        'days', openapi.IN_QUERY, description="Look-ahead window in days", type=openapi.TYPE_INTEGER,
    )

    @swagger_auto_schema(manual_parameters=[days_param])
    def get(self, request):
        days = request.query_params.get('days')
        if days is not None:
            try:
                days = int(days)
            except ValueError:
                raise ValidationError("Days must be an integer.")

        milestones = self.service.get_upcoming_milestones(request.user, days=days)
        return Response({
            'success': True,
            'milestones': my_serializers.MilestoneSerializer(milestones, many=True).data
        })
