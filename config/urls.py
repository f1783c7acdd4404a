"""
URL configuration for the institute backend
"""
from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods
from django.views.generic import RedirectView
from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularSwaggerView,
    SpectacularRedocView,
)


@require_http_methods(["GET"])
def health_view(request):
    """Minimal health check for connectivity verification. No auth required."""
    return JsonResponse({'status': 'ok', 'service': 'institute-backend'})


@require_http_methods(["GET"])
def system_health_view(request):
    """
    Full system health check for monitoring: database and ledger tables.
    """
    result = {'db': 'ok', 'students': 'ok', 'payments': 'ok'}
    try:
        from django.db import connection
        connection.ensure_connection()
    except Exception as e:
        result['db'] = f'error: {str(e)[:80]}'
    try:
        from students.models import Student
        Student.objects.exists()
    except Exception as e:
        result['students'] = f'error: {str(e)[:80]}'
    try:
        from payments.models import Payment
        Payment.objects.exists()
    except Exception as e:
        result['payments'] = f'error: {str(e)[:80]}'
    return JsonResponse(result)


@require_http_methods(["GET"])
def api_root(request):
    """Root endpoint - API information"""
    return JsonResponse({
        'name': 'IgniteLabs Institute API',
        'version': '1.0.0',
        'endpoints': {
            'health': '/api/health/',
            'auth': '/api/auth/',
            'batches': '/api/batches',
            'students': '/api/students',
            'leads': '/api/leads',
            'payments': '/api/payments',
            'invoices': '/api/invoices/{paymentId}',
            'settings': '/api/settings/organization',
            'docs': '/api/docs/',
            'schema': '/api/schema/',
        }
    })


urlpatterns = [
    path('', api_root, name='api-root'),
    path('admin', RedirectView.as_view(url='/admin/', permanent=False)),
    path('admin/', admin.site.urls),
    path('api/', api_root),
    path('api/health/', health_view, name='api-health'),
    path('api/system/health/', system_health_view, name='api-system-health'),

    # API Schema
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('api/redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),

    # API endpoints
    path('api/auth/', include('accounts.urls')),
    path('api/batches', include('batches.urls')),
    path('api/students', include('students.urls')),
    path('api/leads', include('leads.urls')),
    path('api/', include('payments.urls')),
    path('api/', include('core.urls')),
]
