from decimal import Decimal

from django.conf import settings
from rest_framework import serializers

from accounts.serializers import UserSummarySerializer
from .models import Payment, Wallet, WalletTransaction


class PaymentSerializer(serializers.ModelSerializer):
    payer = UserSummarySerializer(read_only=True)
    payee = UserSummarySerializer(read_only=True)

    class Meta:
        model = Payment
        fields = [
            'id', 'transaction_id', 'project', 'payer', 'payee', 'amount', 'currency',
            'description', 'status', 'payment_method', 'provider_reference', 'failure_reason',
            'processed_at', 'refund_reason', 'refunded_at', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class PaymentCreateSerializer(serializers.Serializer):
    project_id = serializers.IntegerField()
    payee_id = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.01'))
    description = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_amount(self, value):
        if value > settings.MAX_PAYMENT_AMOUNT:
            raise serializers.ValidationError(f"Amount cannot exceed {settings.MAX_PAYMENT_AMOUNT}.")
        return value


class ProcessPaymentSerializer(serializers.Serializer):
    payment_method = serializers.ChoiceField(choices=Payment.METHOD_CHOICES, default='demo_card')
    card_number = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class RefundSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class WalletSerializer(serializers.ModelSerializer):
    class Meta:
        model = Wallet
        fields = ['id', 'balance', 'currency', 'created_at', 'updated_at']
        read_only_fields = fields


class WalletTransactionSerializer(serializers.ModelSerializer):
    transaction_id = serializers.CharField(source='payment.transaction_id', read_only=True, default=None)

    class Meta:
        model = WalletTransaction
        fields = ['id', 'transaction_type', 'amount', 'balance_after', 'description', 'payment', 'transaction_id', 'created_at']
        read_only_fields = fields
