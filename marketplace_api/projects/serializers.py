from rest_framework import serializers

from accounts.serializers import UserSummarySerializer
from .models import Project, ProjectFile, Review


class ProjectSerializer(serializers.ModelSerializer):
    title = serializers.CharField(source='job.title', read_only=True)
    client = UserSummarySerializer(read_only=True)
    editor = UserSummarySerializer(read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    allowed_transitions = serializers.ListField(child=serializers.CharField(), read_only=True)

    class Meta:
        model = Project
        fields = [
            'id', 'job', 'title', 'client', 'editor', 'status', 'status_display',
            'escrow_amount', 'revision_count', 'revision_notes', 'hold_reason',
            'cancellation_reason', 'completed_at', 'cancelled_at', 'created_at',
            'updated_at', 'allowed_transitions',
        ]
        read_only_fields = fields


class StatusUpdateSerializer(serializers.Serializer):
    # Validated against the transition table by the service, not here.
    status = serializers.CharField()
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class RevisionRequestSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class CompleteProjectSerializer(serializers.Serializer):
    feedback = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ReasonSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ProjectFileSerializer(serializers.ModelSerializer):
    uploaded_by = UserSummarySerializer(read_only=True)

    class Meta:
        model = ProjectFile
        fields = ['id', 'project', 'uploaded_by', 'file_type', 'file_name', 'file_path', 'is_approved', 'approved_at', 'created_at']
        read_only_fields = ['id', 'project', 'uploaded_by', 'is_approved', 'approved_at', 'created_at']


class ReviewSerializer(serializers.ModelSerializer):
    reviewer = UserSummarySerializer(read_only=True)
    reviewee = UserSummarySerializer(read_only=True)
    rating = serializers.IntegerField(min_value=1, max_value=5)

    class Meta:
        model = Review
        fields = ['id', 'project', 'reviewer', 'reviewee', 'rating', 'comment', 'created_at']
        read_only_fields = ['id', 'project', 'reviewer', 'reviewee', 'created_at']
