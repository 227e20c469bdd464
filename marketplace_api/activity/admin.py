from django.contrib import admin

from .models import ProjectActivity


@admin.register(ProjectActivity)
class ProjectActivityAdmin(admin.ModelAdmin):
    list_display = ('id', 'project', 'user', 'activity_type', 'created_at')
    list_filter = ('activity_type',)
    search_fields = ('description',)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
