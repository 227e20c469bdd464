from django.contrib import admin

from .models import Project, ProjectFile, Review


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ('id', 'job', 'client', 'editor', 'status', 'escrow_amount', 'revision_count', 'created_at')
    list_filter = ('status',)
    search_fields = ('job__title', 'client__email', 'editor__email')
    # Status only moves through the lifecycle endpoints.
    readonly_fields = ('status', 'escrow_amount', 'revision_count', 'completed_at', 'cancelled_at')


@admin.register(ProjectFile)
class ProjectFileAdmin(admin.ModelAdmin):
    list_display = ('id', 'project', 'file_name', 'file_type', 'is_approved', 'created_at')
    list_filter = ('file_type', 'is_approved')


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ('id', 'project', 'reviewer', 'reviewee', 'rating', 'created_at')
