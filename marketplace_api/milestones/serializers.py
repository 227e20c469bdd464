from rest_framework import serializers

from .models import Milestone


class MilestoneSerializer(serializers.ModelSerializer):
    class Meta:
        model = Milestone
        fields = [
            'id', 'project', 'title', 'description', 'status', 'due_date',
            'display_order', 'completed_at', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class MilestoneCreateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    due_date = serializers.DateField(required=False, allow_null=True, default=None)
    display_order = serializers.IntegerField(required=False, default=0)


class MilestoneUpdateSerializer(serializers.Serializer):
    """
    Partial update payload. Only the keys the caller sends end up in
    ``validated_data``, so omitted fields are left untouched.
    """
    title = serializers.CharField(max_length=255, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    due_date = serializers.DateField(required=False, allow_null=True)
    display_order = serializers.IntegerField(required=False)
    status = serializers.ChoiceField(choices=Milestone.STATUS_CHOICES, required=False)


class ReorderEntrySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    order = serializers.IntegerField()


class ReorderSerializer(serializers.Serializer):
    orders = ReorderEntrySerializer(many=True, allow_empty=False)
