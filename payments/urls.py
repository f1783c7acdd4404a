from django.urls import path
from . import views

urlpatterns = [
    path('payments', views.payment_list_view),
    path('payments/<int:pk>', views.payment_detail_view),
    path('invoices/<int:payment_id>', views.invoice_view),
]
