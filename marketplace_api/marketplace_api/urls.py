from django.contrib import admin
from django.urls import path, include
from rest_framework import permissions
from drf_yasg.views import get_schema_view
from drf_yasg import openapi

schema_view = get_schema_view(
    openapi.Info(
        title="Video Editor Marketplace API",
        default_version='v1',
        description="API documentation for the video editor marketplace: jobs, projects, milestones, activity and payments",
    ),
    public=True,
    permission_classes=(permissions.AllowAny,),
)

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/account/', include('accounts.urls')),
    path('api/jobs/', include('jobs.urls')),
    path('api/projects/', include('projects.urls')),
    path('api/projects/', include('activity.urls')),
    path('api/milestones/', include('milestones.urls')),
    path('api/payments/', include('payments.urls')),

    # swagger/openapi routes
    path('swagger', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
    path('redoc/', schema_view.with_ui('redoc', cache_timeout=0), name='schema-redoc'),
    path('openapi.json/', schema_view.without_ui(cache_timeout=0), name='schema-json'),
]
