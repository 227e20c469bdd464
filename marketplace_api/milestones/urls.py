from django.urls import path

from . import views as my_views

urlpatterns = [
    path('project/<int:project_id>/', my_views.ProjectMilestonesAPIView.as_view(), name='project-milestones'),
    path('project/<int:project_id>/defaults/', my_views.DefaultMilestonesAPIView.as_view(), name='default-milestones'),
    path('project/<int:project_id>/reorder/', my_views.ReorderMilestonesAPIView.as_view(), name='reorder-milestones'),

    path('overdue/', my_views.OverdueMilestonesAPIView.as_view(), name='overdue-milestones'),
    path('upcoming/', my_views.UpcomingMilestonesAPIView.as_view(), name='upcoming-milestones'),

    path('<int:id>/', my_views.MilestoneDetailAPIView.as_view(), name='milestone-detail'),
    path('<int:id>/complete/', my_views.CompleteMilestoneAPIView.as_view(), name='complete-milestone'),
]
