import logging
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from activity.models import ActivityType
from activity.recorder import default_recorder
from projects.access import get_project, get_project_for_party
from .models import Payment, Wallet, WalletTransaction
from .providers import InvalidPaymentDetails, get_payment_provider

logger = logging.getLogger(__name__)

PAYMENT_ROLES = ('all', 'payer', 'payee')


class PaymentService:
    """
    Payments between the parties of a project and the wallets they settle into.

    Wallet balances change only when a payment is processed successfully or
    refunded. Both wallets are locked in primary-key order and each balance
    change writes a ``WalletTransaction`` in the same database transaction as
    the payment status update.
    """

    def __init__(self, provider=None, recorder=None):
        self.provider = provider or get_payment_provider(settings.PAYMENT_PROVIDER)
        self.recorder = recorder or default_recorder

    def create(self, project_id, payer, *, payee_id, amount, description=''):
        project = get_project(project_id)
        if project.client_id != payer.pk:
            raise PermissionDenied("Only the project client can create payments for this project.")
        if payee_id != project.editor_id:
            raise ValidationError("The payee must be the project editor.")

        amount = Decimal(amount)
        if amount <= 0:
            raise ValidationError("Amount must be greater than zero.")
        if amount > settings.MAX_PAYMENT_AMOUNT:
            raise ValidationError(f"Amount cannot exceed {settings.MAX_PAYMENT_AMOUNT}.")

        payment = Payment.objects.create(
            project=project,
            payer=payer,
            payee_id=payee_id,
            amount=amount,
            description=description or f"Payment for project #{project.pk}",
        )
        logger.info(
            "Payment %s created on project %s: %s %s",
            payment.transaction_id, project.pk, payment.amount, payment.currency,
        )
        return payment

    def get_payment(self, payment_id, actor):
        try:
            payment = Payment.objects.select_related('payer', 'payee', 'project').get(pk=payment_id)
        except (Payment.DoesNotExist, ValueError, TypeError):
            raise NotFound("Payment not found.")
        if actor.pk not in (payment.payer_id, payment.payee_id):
            raise PermissionDenied("You don't have access to this payment.")
        return payment

    def process(self, payment_id, actor, method='demo_card', card_number=None):
        payment = self.get_payment(payment_id, actor)
        if payment.payer_id != actor.pk:
            raise PermissionDenied("Only the payer can process this payment.")

        with transaction.atomic():
            payment = Payment.objects.select_for_update().get(pk=payment.pk)
            if payment.status != Payment.PENDING:
                raise ValidationError(f"Payment has already been processed (status: {payment.status}).")

            try:
                result = self.provider.charge(payment, method, card_number=card_number)
            except InvalidPaymentDetails as exc:
                raise ValidationError(str(exc))

            payment.payment_method = method
            payment.processed_at = timezone.now()
            if result.success:
                self._transfer(
                    source_id=payment.payer_id,
                    target_id=payment.payee_id,
                    amount=payment.amount,
                    payment=payment,
                    description=f"Payment {payment.transaction_id}",
                )
                payment.status = Payment.COMPLETED
                payment.provider_reference = result.reference
            else:
                payment.status = Payment.FAILED
                payment.failure_reason = result.message
            payment.save()

        if payment.status == Payment.FAILED:
            logger.warning("Payment %s declined: %s", payment.transaction_id, payment.failure_reason)
            return payment

        logger.info("Payment %s completed", payment.transaction_id)
        if payment.project_id:
            self.recorder.record(
                project=payment.project,
                user=actor,
                activity_type=ActivityType.PAYMENT_MADE,
                description=f"Payment of {payment.amount} {payment.currency} made",
                metadata={
                    'payment_id': payment.pk,
                    'transaction_id': payment.transaction_id,
                    'amount': str(payment.amount),
                    'currency': payment.currency,
                },
            )
        return payment

    def refund(self, payment_id, actor, reason=None):
        payment = self.get_payment(payment_id, actor)
        if payment.payer_id != actor.pk:
            raise PermissionDenied("Only the payer can refund this payment.")

        with transaction.atomic():
            payment = Payment.objects.select_for_update().get(pk=payment.pk)
            if payment.status != Payment.COMPLETED:
                raise ValidationError("Only completed payments can be refunded.")

            self._transfer(
                source_id=payment.payee_id,
                target_id=payment.payer_id,
                amount=payment.amount,
                payment=payment,
                description=f"Refund of {payment.transaction_id}",
            )
            payment.status = Payment.REFUNDED
            payment.refund_reason = reason
            payment.refunded_at = timezone.now()
            payment.save()

        logger.info("Payment %s refunded", payment.transaction_id)
        return payment

    def _transfer(self, *, source_id, target_id, amount, payment, description):
        """Debit ``source_id`` and credit ``target_id``. Must run inside a transaction."""
        for user_id in (source_id, target_id):
            Wallet.objects.get_or_create(user_id=user_id)

        wallets = {
            wallet.user_id: wallet
            for wallet in Wallet.objects.select_for_update().filter(user_id__in=[source_id, target_id]).order_by('pk')
        }
        source, target = wallets[source_id], wallets[target_id]

        source.balance -= amount
        target.balance += amount
        source.save(update_fields=['balance', 'updated_at'])
        target.save(update_fields=['balance', 'updated_at'])

        WalletTransaction.objects.bulk_create([
            WalletTransaction(
                wallet=source,
                transaction_type=WalletTransaction.DEBIT,
                amount=amount,
                balance_after=source.balance,
                description=description,
                payment=payment,
            ),
            WalletTransaction(
                wallet=target,
                transaction_type=WalletTransaction.CREDIT,
                amount=amount,
                balance_after=target.balance,
                description=description,
                payment=payment,
            ),
        ])

    def get_wallet(self, user):
        wallet, _ = Wallet.objects.get_or_create(user=user)
        return wallet

    def wallet_transactions(self, user):
        return self.get_wallet(user).transactions.select_related('payment')

    def payments_for_user(self, user, role='all', status=None):
        if role not in PAYMENT_ROLES:
            raise ValidationError(f"Role must be one of: {', '.join(PAYMENT_ROLES)}")
        if status and status not in dict(Payment.STATUS_CHOICES):
            raise ValidationError(f"Invalid payment status: {status}")

        if role == 'payer':
            qs = Payment.objects.filter(payer=user)
        elif role == 'payee':
            qs = Payment.objects.filter(payee=user)
        else:
            qs = Payment.objects.filter(Q(payer=user) | Q(payee=user))
        if status:
            qs = qs.filter(status=status)
        return qs.select_related('payer', 'payee', 'project')

    def payments_for_project(self, project_id, actor):
        project = get_project_for_party(project_id, actor)
        return Payment.objects.filter(project=project).select_related('payer', 'payee')
