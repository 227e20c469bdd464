from django.urls import path

from . import views as my_views

urlpatterns = [
    path('', my_views.JobListCreateAPIView.as_view(), name='job-list-create'),
    path('<int:id>/', my_views.JobDetailAPIView.as_view(), name='job-detail'),
    path('<int:job_id>/proposals/', my_views.JobProposalsAPIView.as_view(), name='job-proposals'),
]
