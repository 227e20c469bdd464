from django.contrib import admin

from .models import Job, Proposal


@admin.register(Job)
class JobAdmin(admin.ModelAdmin):
    list_display = ('id', 'title', 'client', 'status', 'budget_min', 'budget_max', 'created_at')
    list_filter = ('status',)
    search_fields = ('title', 'client__email')


@admin.register(Proposal)
class ProposalAdmin(admin.ModelAdmin):
    list_display = ('id', 'job', 'editor', 'price', 'status', 'created_at', 'accepted_at')
    list_filter = ('status',)
    search_fields = ('job__title', 'editor__email')
