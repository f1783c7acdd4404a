from django.urls import path
from . import views

urlpatterns = [
    path('', views.lead_list_view),
    path('/<int:pk>', views.lead_detail_view),
    path('/<int:pk>/convert', views.lead_convert_view),
]
