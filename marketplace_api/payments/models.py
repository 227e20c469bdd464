import uuid

from django.conf import settings
from django.db import models
from django.contrib.auth import get_user_model

from projects.models import Project

User = get_user_model()


def generate_transaction_id():
    return f"PAY-{uuid.uuid4().hex[:8].upper()}"


def default_currency():
    return settings.DEFAULT_CURRENCY


class Payment(models.Model):
    """
    A transfer of funds from a project's client (payer) to its editor (payee).

    ``pending`` -> ``completed`` | ``failed`` when processed, and
    ``completed`` -> ``refunded``. Wallet balances only move on those two
    transitions, see ``payments.services.PaymentService``.
    """
    PENDING = 'pending'
    COMPLETED = 'completed'
    FAILED = 'failed'
    REFUNDED = 'refunded'

    STATUS_CHOICES = (
        (PENDING, 'Pending'),
        (COMPLETED, 'Completed'),
        (FAILED, 'Failed'),
        (REFUNDED, 'Refunded'),
    )

    METHOD_CHOICES = (
        ('demo_card', 'Demo card'),
        ('demo_bank', 'Demo bank transfer'),
        ('demo_wallet', 'Demo wallet'),
    )

    transaction_id = models.CharField(max_length=20, unique=True, default=generate_transaction_id, editable=False)
    project = models.ForeignKey(Project, on_delete=models.SET_NULL, null=True, blank=True, related_name='payments')
    payer = models.ForeignKey(User, on_delete=models.PROTECT, related_name='payments_made')
    payee = models.ForeignKey(User, on_delete=models.PROTECT, related_name='payments_received')
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    currency = models.CharField(max_length=3, default=default_currency)
    description = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PENDING)
    payment_method = models.CharField(max_length=20, choices=METHOD_CHOICES, blank=True)
    provider_reference = models.CharField(max_length=100, blank=True)
    failure_reason = models.CharField(max_length=255, blank=True)
    processed_at = models.DateTimeField(null=True, blank=True)
    refund_reason = models.TextField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']
        constraints = [
            models.CheckConstraint(condition=models.Q(amount__gt=0), name='payment_amount_positive'),
        ]

    def __str__(self):
        return f"{self.transaction_id}: {self.amount} {self.currency} ({self.status})"


class Wallet(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='wallet')
    balance = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    currency = models.CharField(max_length=3, default=default_currency)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.user} - {self.balance} {self.currency}"


class WalletTransaction(models.Model):
    """Ledger line written in the same transaction as every wallet balance change."""
    CREDIT = 'credit'
    DEBIT = 'debit'

    TYPE_CHOICES = (
        (CREDIT, 'Credit'),
        (DEBIT, 'Debit'),
    )

    wallet = models.ForeignKey(Wallet, on_delete=models.CASCADE, related_name='transactions')
    transaction_type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    balance_after = models.DecimalField(max_digits=12, decimal_places=2)
    description = models.CharField(max_length=255)
    payment = models.ForeignKey(Payment, on_delete=models.SET_NULL, null=True, blank=True, related_name='wallet_transactions')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.transaction_type} {self.amount} on wallet {self.wallet_id}"
