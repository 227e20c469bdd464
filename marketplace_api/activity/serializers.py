from rest_framework import serializers

from accounts.serializers import UserSummarySerializer
from .models import ProjectActivity


class ProjectActivitySerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)
    activity_type_display = serializers.CharField(source='get_activity_type_display', read_only=True)

    class Meta:
        model = ProjectActivity
        fields = ['id', 'project', 'user', 'activity_type', 'activity_type_display', 'description', 'metadata', 'created_at']
        read_only_fields = fields
