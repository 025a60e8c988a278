from django.contrib import admin

from clinic_core.notifications.models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("title", "patient", "type", "is_read", "created_at")
    list_filter = ("type", "is_read")
    search_fields = ("title", "message")
    raw_id_fields = ("patient", "created_by", "deleted_by")
