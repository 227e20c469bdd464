from rest_framework import generics, status, views as drf_views
from rest_framework.response import Response
from drf_yasg import openapi
from drf_yasg.utils import swagger_auto_schema

from .serializers import (
    PaymentCreateSerializer,
    PaymentSerializer,
    ProcessPaymentSerializer,
    RefundSerializer,
    WalletSerializer,
    WalletTransactionSerializer,
)
from .services import PaymentService


payment_service = PaymentService()


class CreatePaymentView(drf_views.APIView):

    @swagger_auto_schema(request_body=PaymentCreateSerializer, responses={201: PaymentSerializer})
    def post(self, request):
        serializer = PaymentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        payment = payment_service.create(
            data['project_id'],
            request.user,
            payee_id=data['payee_id'],
            amount=data['amount'],
            description=data['description'],
        )
        return Response({
            'success': True,
            'detail': "Payment created.",
            'payment': PaymentSerializer(payment).data
        }, status=status.HTTP_201_CREATED)


class MyPaymentsView(generics.ListAPIView):
    serializer_class = PaymentSerializer
    role_param = openapi.Parameter('role', openapi.IN_QUERY, type=openapi.TYPE_STRING, enum=['all', 'payer', 'payee'])
    status_param = openapi.Parameter('status', openapi.IN_QUERY, type=openapi.TYPE_STRING)

    def get_queryset(self):
        return payment_service.payments_for_user(
            self.request.user,
            role=self.request.query_params.get('role', 'all'),
            status=self.request.query_params.get('status'),
        )

    @swagger_auto_schema(manual_parameters=[role_param, status_param])
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class PaymentDetailView(drf_views.APIView):

    def get(self, request, id):
        payment = payment_service.get_payment(id, request.user)
        return Response({
            'success': True,
            'payment': PaymentSerializer(payment).data
        })


class ProcessPaymentView(drf_views.APIView):

    @swagger_auto_schema(request_body=ProcessPaymentSerializer, responses={200: PaymentSerializer})
    def post(self, request, id):
        serializer = ProcessPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        payment = payment_service.process(
            id,
            request.user,
            method=serializer.validated_data['payment_method'],
            card_number=serializer.validated_data.get('card_number'),
        )
        if payment.status == payment.FAILED:
            return Response({
                'success': False,
                'error': payment.failure_reason or "Payment failed.",
                'payment': PaymentSerializer(payment).data
            }, status=status.HTTP_200_OK)

        return Response({
            'success': True,
            'detail': "Payment processed successfully.",
            'payment': PaymentSerializer(payment).data
        })


class RefundPaymentView(drf_views.APIView):

    @swagger_auto_schema(request_body=RefundSerializer, responses={200: PaymentSerializer})
    def post(self, request, id):
        serializer = RefundSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        payment = payment_service.refund(id, request.user, serializer.validated_data.get('reason'))
        return Response({
            'success': True,
            'detail': "Payment refunded.",
            'payment': PaymentSerializer(payment).data
        })


class ProjectPaymentsView(drf_views.APIView):

    def get(self, request, project_id):
        payments = payment_service.payments_for_project(project_id, request.user)
        return Response({
            'success': True,
            'payments': PaymentSerializer(payments, many=True).data
        })


class WalletView(drf_views.APIView):

    def get(self, request):
        wallet = payment_service.get_wallet(request.user)
        return Response({
            'success': True,
            'wallet': WalletSerializer(wallet).data
        })


class WalletTransactionsView(generics.ListAPIView):
    serializer_class = WalletTransactionSerializer

    def get_queryset(self):
        return payment_service.wallet_transactions(self.request.user)
