from django.urls import path

from . import views as my_views

urlpatterns = [
    path('', my_views.CreatePaymentView.as_view(), name='create-payment'),
    path('my/', my_views.MyPaymentsView.as_view(), name='my-payments'),
    path('wallet/', my_views.WalletView.as_view(), name='wallet'),
    path('wallet/transactions/', my_views.WalletTransactionsView.as_view(), name='wallet-transactions'),
    path('project/<int:project_id>/', my_views.ProjectPaymentsView.as_view(), name='project-payments'),
    path('<int:id>/', my_views.PaymentDetailView.as_view(), name='payment-detail'),
    path('<int:id>/process/', my_views.ProcessPaymentView.as_view(), name='process-payment'),
    path('<int:id>/refund/', my_views.RefundPaymentView.as_view(), name='refund-payment'),
]
