from rest_framework import serializers

from accounts.serializers import UserSummarySerializer
from .models import Job, Proposal


class JobSerializer(serializers.ModelSerializer):
    """
    Serializer for clients posting jobs and for anyone browsing them.

    The authenticated client is attached as the job owner; status is managed
    by the proposal acceptance flow.
    """
    client = UserSummarySerializer(read_only=True)

    class Meta:
        model = Job
        fields = ['id', 'client', 'title', 'description', 'duration_minutes', 'budget_min', 'budget_max', 'status', 'created_at']
        read_only_fields = ['id', 'client', 'status', 'created_at']

    def validate(self, attrs):
        budget_min = attrs.get('budget_min')
        budget_max = attrs.get('budget_max')
        if budget_min is not None and budget_min < 0:
            raise serializers.ValidationError("Please enter a valid minimum budget.")
        if budget_min is not None and budget_max is not None and budget_max < budget_min:
            raise serializers.ValidationError("Maximum budget cannot be lower than the minimum budget.")
        return attrs

    def create(self, validated_data):
        return Job.objects.create(client=self.context['request'].user, **validated_data)


class ProposalSerializer(serializers.ModelSerializer):
    """
    Serializer for editors submitting proposals and clients reviewing them.

    Validates a positive price, an open job and one proposal per editor per job.
    """
    editor = UserSummarySerializer(read_only=True)

    class Meta:
        model = Proposal
        fields = ['id', 'job', 'editor', 'price', 'estimated_days', 'message', 'status', 'created_at', 'accepted_at']
        read_only_fields = ['id', 'job', 'editor', 'status', 'created_at', 'accepted_at']

    def validate_price(self, value):
        if value <= 0:
            raise serializers.ValidationError("Please enter a valid price.")
        return value

    def validate(self, attrs):
        request = self.context['request']
        job = self.context['job']

        if job.status != 'open':
            raise serializers.ValidationError("This job is no longer accepting proposals.")
        if Proposal.objects.filter(job=job, editor=request.user).exists():
            raise serializers.ValidationError("You have already submitted a proposal for this job.")

        return attrs

    def create(self, validated_data):
        return Proposal.objects.create(
            job=self.context['job'],
            editor=self.context['request'].user,
            **validated_data
        )
