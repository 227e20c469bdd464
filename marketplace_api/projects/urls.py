from django.urls import path

from . import views as my_views

urlpatterns = [
    path('', my_views.ProjectListAPIView.as_view(), name='list-projects'),
    path('accept/<int:proposal_id>/', my_views.AcceptProposalAPIView.as_view(), name='accept-proposal'),
    path('<int:id>/', my_views.ProjectDetailAPIView.as_view(), name='project-detail'),
    path('<int:id>/progress/', my_views.ProjectProgressAPIView.as_view(), name='project-progress'),

    # Lifecycle
    path('<int:id>/status/', my_views.ProjectStatusAPIView.as_view(), name='project-status'),
    path('<int:id>/submit-for-review/', my_views.SubmitForReviewAPIView.as_view(), name='project-submit-for-review'),
    path('<int:id>/request-revision/', my_views.RequestRevisionAPIView.as_view(), name='project-request-revision'),
    path('<int:id>/complete/', my_views.CompleteProjectAPIView.as_view(), name='project-complete'),
    path('<int:id>/cancel/', my_views.CancelProjectAPIView.as_view(), name='project-cancel'),
    path('<int:id>/hold/', my_views.HoldProjectAPIView.as_view(), name='project-hold'),
    path('<int:id>/resume/', my_views.ResumeProjectAPIView.as_view(), name='project-resume'),

    # Deliverables and reviews
    path('<int:id>/files/', my_views.ProjectFilesAPIView.as_view(), name='project-files'),
    path('files/<int:id>/approve/', my_views.ApproveFileAPIView.as_view(), name='approve-file'),
    path('<int:id>/reviews/', my_views.ProjectReviewsAPIView.as_view(), name='project-reviews'),
]
