from django.urls import path

from payments.views import student_payments_view, consolidated_invoice_view
from . import views

urlpatterns = [
    path('', views.student_list_view),
    path('/<int:pk>', views.student_detail_view),
    path('/<int:pk>/ledger', views.student_ledger_view),
    path('/<int:student_id>/payments', student_payments_view),
    path('/<int:student_id>/invoices/consolidated', consolidated_invoice_view),
]
