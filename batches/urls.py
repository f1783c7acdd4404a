from django.urls import path
from . import views

urlpatterns = [
    path('', views.batch_list_view),
    path('/active', views.active_batches_view),
    path('/<int:pk>', views.batch_detail_view),
]
