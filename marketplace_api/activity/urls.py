from django.urls import path

from . import views as my_views

urlpatterns = [
    path('activity/recent/', my_views.RecentActivityAPIView.as_view(), name='recent-activity'),
    path('<int:id>/activity/', my_views.ProjectActivityAPIView.as_view(), name='project-activity'),
    path('<int:id>/activity/summary/', my_views.ProjectActivitySummaryAPIView.as_view(), name='project-activity-summary'),
]
