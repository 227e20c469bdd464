from django.contrib import admin

from .models import Payment, Wallet, WalletTransaction


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ('id', 'transaction_id', 'project', 'payer', 'payee', 'amount', 'currency', 'status', 'created_at')
    list_filter = ('status', 'payment_method')
    search_fields = ('transaction_id', 'payer__email', 'payee__email')


@admin.register(Wallet)
class WalletAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'balance', 'currency', 'updated_at')
    search_fields = ('user__email',)
    readonly_fields = ('balance',)


@admin.register(WalletTransaction)
class WalletTransactionAdmin(admin.ModelAdmin):
    list_display = ('id', 'wallet', 'transaction_type', 'amount', 'balance_after', 'payment', 'created_at')
    list_filter = ('transaction_type',)
