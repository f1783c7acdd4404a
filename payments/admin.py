"""
Admin configuration for payments app
"""
from django.contrib import admin
from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    """
    Read-only: amounts must change through the Payment Editor so the ledger follows.
    """
    list_display = ['id', 'student', 'amount', 'payment_date', 'payment_method', 'reference', 'created_by']
    list_filter = ['payment_method', 'payment_date', 'organization']
    search_fields = ['student__name', 'student__phone', 'reference']
    ordering = ['-payment_date', '-created_at']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
