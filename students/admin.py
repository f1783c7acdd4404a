"""
Admin configuration for students app
"""
from django.contrib import admin
from .models import Student


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    """Ledger fields are read-only here; they move only with payments."""
    list_display = ['name', 'phone', 'batch', 'total_fee', 'fee_paid', 'fee_due', 'is_active', 'enrollment_date']
    list_filter = ['is_active', 'batch', 'organization']
    search_fields = ['name', 'phone', 'email']
    readonly_fields = ['fee_paid', 'fee_due', 'converted_from_lead', 'created_at', 'updated_at']
    ordering = ['-created_at']
