from django.contrib import admin

from .models import Milestone


@admin.register(Milestone)
class MilestoneAdmin(admin.ModelAdmin):
    list_display = ('id', 'project', 'title', 'status', 'due_date', 'display_order', 'completed_at')
    list_filter = ('status',)
    search_fields = ('title',)
