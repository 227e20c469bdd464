from rest_framework import generics, status, views as drf_views
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_yasg import openapi
from drf_yasg.utils import swagger_auto_schema

from accounts.permissions import IsClient
from . import serializers as my_serializers
from .access import get_project_for_party
from .services import ProjectFileService, ProjectLifecycleService, ReviewService


lifecycle = ProjectLifecycleService()


def project_response(project, detail, status_code=status.HTTP_200_OK):
    return Response({
        'success': True,
        'detail': detail,
        'project': my_serializers.ProjectSerializer(project).data,
        'allowed_transitions': project.allowed_transitions,
    }, status=status_code)


class AcceptProposalAPIView(drf_views.APIView):
    permission_classes = [IsAuthenticated, IsClient]

    @swagger_auto_schema(operation_summary="Accept a proposal and start the project")
    def post(self, request, proposal_id):
        project = lifecycle.accept_proposal(proposal_id, request.user)
        return project_response(project, "Proposal accepted. Project created.", status.HTTP_201_CREATED)


class ProjectListAPIView(generics.ListAPIView):
    """Projects the requesting user is the client or editor of. Filter with ?status=."""
    serializer_class = my_serializers.ProjectSerializer
    status_param = openapi.Parameter('status', openapi.IN_QUERY, type=openapi.TYPE_STRING)

    def get_queryset(self):
        return lifecycle.projects_for_user(self.request.user, self.request.query_params.get('status'))

    @swagger_auto_schema(manual_parameters=[status_param])
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class ProjectDetailAPIView(drf_views.APIView):

    def get(self, request, id):
        detail = lifecycle.get_project_detail(id, request.user)
        return Response({
            'success': True,
            'project': my_serializers.ProjectSerializer(detail['project']).data,
            'progress': detail['progress'],
            'stats': detail['stats'],
            'allowed_transitions': detail['allowed_transitions'],
        })


class ProjectProgressAPIView(drf_views.APIView):

    def get(self, request, id):
        project = get_project_for_party(id, request.user)
        return Response({
            'success': True,
            'progress': lifecycle.get_progress(project),
        })


class ProjectStatusAPIView(drf_views.APIView):
    """Generic status change, bound by the transition table."""

    @swagger_auto_schema(
        operation_summary="Change project status",
        request_body=my_serializers.StatusUpdateSerializer,
    )
    def put(self, request, id):
        serializer = my_serializers.StatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        project = lifecycle.update_status(
            id, request.user,
            serializer.validated_data['status'],
            serializer.validated_data.get('notes'),
        )
        return project_response(project, "Project status updated.")


class SubmitForReviewAPIView(drf_views.APIView):

    @swagger_auto_schema(operation_summary="Editor submits the work for review")
    def post(self, request, id):
        project = lifecycle.submit_for_review(id, request.user)
        return project_response(project, "Project submitted for review.")


class RequestRevisionAPIView(drf_views.APIView):

    @swagger_auto_schema(
        operation_summary="Client requests a revision",
        request_body=my_serializers.RevisionRequestSerializer,
    )
    def post(self, request, id):
        serializer = my_serializers.RevisionRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        project = lifecycle.request_revision(id, request.user, serializer.validated_data.get('notes'))
        return project_response(project, "Revision requested.")


class CompleteProjectAPIView(drf_views.APIView):

    @swagger_auto_schema(
        operation_summary="Client accepts the work and completes the project",
        request_body=my_serializers.CompleteProjectSerializer,
    )
    def post(self, request, id):
        serializer = my_serializers.CompleteProjectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        project = lifecycle.complete(id, request.user, serializer.validated_data.get('feedback'))
        return project_response(project, "Project completed.")


class CancelProjectAPIView(drf_views.APIView):

    @swagger_auto_schema(operation_summary="Cancel the project", request_body=my_serializers.ReasonSerializer)
    def post(self, request, id):
        serializer = my_serializers.ReasonSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        project = lifecycle.cancel(id, request.user, serializer.validated_data.get('reason'))
        return project_response(project, "Project cancelled.")


class HoldProjectAPIView(drf_views.APIView):

    @swagger_auto_schema(operation_summary="Put the project on hold", request_body=my_serializers.ReasonSerializer)
    def post(self, request, id):
        serializer = my_serializers.ReasonSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        project = lifecycle.put_on_hold(id, request.user, serializer.validated_data.get('reason'))
        return project_response(project, "Project put on hold.")


class ResumeProjectAPIView(drf_views.APIView):

    @swagger_auto_schema(operation_summary="Resume a project that is on hold")
    def post(self, request, id):
        project = lifecycle.resume(id, request.user)
        return project_response(project, "Project resumed.")


class ProjectFilesAPIView(drf_views.APIView):
    """
    GET: files registered on the project, filter with ?type=draft|final.
    POST: register a draft or final deliverable (name and storage path).
    """
    file_service = ProjectFileService()

    def get(self, request, id):
        project = get_project_for_party(id, request.user)
        files = project.files.select_related('uploaded_by')
        file_type = request.query_params.get('type')
        if file_type:
            files = files.filter(file_type=file_type)
        return Response({
            'success': True,
            'files': my_serializers.ProjectFileSerializer(files, many=True).data
        })

    @swagger_auto_schema(request_body=my_serializers.ProjectFileSerializer)
    def post(self, request, id):
        project = get_project_for_party(id, request.user)
        serializer = my_serializers.ProjectFileSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        project_file = self.file_service.register(project, request.user, **serializer.validated_data)
        return Response({
            'success': True,
            'detail': "File uploaded.",
            'file': my_serializers.ProjectFileSerializer(project_file).data
        }, status=status.HTTP_201_CREATED)


class ApproveFileAPIView(drf_views.APIView):
    file_service = ProjectFileService()

    @swagger_auto_schema(operation_summary="Client approves a delivered file")
    def post(self, request, id):
        project_file = self.file_service.approve(id, request.user)
        return Response({
            'success': True,
            'detail': "File approved.",
            'file': my_serializers.ProjectFileSerializer(project_file).data
        })


class ProjectReviewsAPIView(drf_views.APIView):
    review_service = ReviewService()

    def get(self, request, id):
        project = get_project_for_party(id, request.user)
        reviews = project.reviews.select_related('reviewer', 'reviewee')
        return Response({
            'success': True,
            'reviews': my_serializers.ReviewSerializer(reviews, many=True).data
        })

    @swagger_auto_schema(request_body=my_serializers.ReviewSerializer)
    def post(self, request, id):
        serializer = my_serializers.ReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        review = self.review_service.submit(id, request.user, **serializer.validated_data)
        return Response({
            'success': True,
            'detail': "Review submitted successfully.",
            'review': my_serializers.ReviewSerializer(review).data
        }, status=status.HTTP_201_CREATED)
