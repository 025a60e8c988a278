from django.contrib import admin

from clinic_core.messaging.models import OutboxMessage


@admin.register(OutboxMessage)
class OutboxMessageAdmin(admin.ModelAdmin):
    list_display = ("subject", "kind", "status", "attempts", "scheduled_at", "sent_at")
    list_filter = ("kind", "status")
    search_fields = ("subject", "last_error")
    readonly_fields = ("attempts", "last_error", "sent_at", "created_at", "updated_at")
    ordering = ("-scheduled_at",)
