"""
Admin configuration for core app
"""
from django.contrib import admin
from .models import Organization, OrganizationSetting


class OrganizationSettingInline(admin.TabularInline):
    model = OrganizationSetting
    extra = 0


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    """Organization Admin"""
    list_display = ['name', 'slug', 'created_at']
    search_fields = ['name', 'slug']
    inlines = [OrganizationSettingInline]
