"""
Admin configuration for batches app
"""
from django.contrib import admin
from .models import Batch


@admin.register(Batch)
class BatchAdmin(admin.ModelAdmin):
    """Batch Admin"""
    list_display = ['name', 'start_date', 'end_date', 'fee', 'capacity', 'trainer', 'is_active']
    list_filter = ['is_active', 'start_date', 'organization']
    search_fields = ['name', 'description']
    readonly_fields = ['created_at', 'updated_at']
    ordering = ['-start_date', 'name']
