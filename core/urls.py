from django.urls import path
from .views import (
    email_notification_settings_view, organization_logo_view, organization_settings_view,
    send_test_email_view,
)

urlpatterns = [
    path('settings/organization', organization_settings_view),
    path('settings/organization/logo', organization_logo_view),
    path('settings/notifications/email', email_notification_settings_view),
    path('settings/notifications/email/test', send_test_email_view),
]
