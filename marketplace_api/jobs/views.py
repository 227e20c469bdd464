from rest_framework import generics, status
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django.shortcuts import get_object_or_404
from django_filters.rest_framework import DjangoFilterBackend
from drf_yasg.utils import swagger_auto_schema

from accounts.permissions import IsClient, IsEditor
from . import serializers as my_serializers
from .models import Job, Proposal


class JobListCreateAPIView(generics.ListCreateAPIView):
    """
    GET: browse jobs (open jobs by default, filter with ?status=).
    POST: clients post a new job.
    """
    serializer_class = my_serializers.JobSerializer
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    filterset_fields = ['status']
    search_fields = ['title', 'description']
    ordering_fields = ['created_at', 'budget_max']
    ordering = ['-created_at']

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAuthenticated(), IsClient()]
        return [IsAuthenticated()]

    def get_queryset(self):
        qs = Job.objects.select_related('client')
        if 'status' not in self.request.query_params:
            qs = qs.filter(status='open')
        return qs

    @swagger_auto_schema(operation_summary="Post a new job", responses={201: my_serializers.JobSerializer})
    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.perform_create(serializer)

        return Response({
            'success': True,
            'detail': "Job created successfully.",
            'job': serializer.data
        }, status=status.HTTP_201_CREATED)


class JobDetailAPIView(generics.RetrieveAPIView):
    serializer_class = my_serializers.JobSerializer
    queryset = Job.objects.select_related('client')
    lookup_field = 'id'


class JobProposalsAPIView(generics.ListCreateAPIView):
    """
    GET: the job's client sees every proposal, an editor only their own.
    POST: editors submit a proposal for an open job.
    """
    serializer_class = my_serializers.ProposalSerializer

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAuthenticated(), IsEditor()]
        return [IsAuthenticated()]

    def get_job(self):
        return get_object_or_404(Job, id=self.kwargs['job_id'])

    def get_queryset(self):
        job = self.get_job()
        qs = Proposal.objects.filter(job=job).select_related('editor')
        if job.client_id != self.request.user.id:
            qs = qs.filter(editor=self.request.user)
        return qs

    def get_serializer_context(self):
        context = super().get_serializer_context()
        if self.request.method == 'POST':
            context['job'] = self.get_job()
        return context

    @swagger_auto_schema(operation_summary="Submit a proposal for a job", responses={201: my_serializers.ProposalSerializer})
    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.perform_create(serializer)

        return Response({
            'success': True,
            'detail': "Proposal submitted successfully.",
            'proposal': serializer.data
        }, status=status.HTTP_201_CREATED)
