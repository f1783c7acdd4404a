"""
Admin configuration for leads app
"""
from django.contrib import admin
from .models import Lead


@admin.register(Lead)
class LeadAdmin(admin.ModelAdmin):
    """Lead Admin"""
    list_display = ['name', 'phone', 'email', 'source', 'course', 'status', 'assigned_to', 'created_at']
    list_filter = ['status', 'source', 'organization']
    search_fields = ['name', 'phone', 'email']
    readonly_fields = ['converted_at', 'created_at', 'updated_at']
    ordering = ['-created_at']
