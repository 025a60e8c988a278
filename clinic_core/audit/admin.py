from django.contrib import admin

from clinic_core.audit.models import AuditEvent


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = (
        "action",
        "entity_type",
        "entity_id",
        "actor",
        "actor_role",
        "ip_address",
        "occurred_at",
    )
    list_filter = ("action", "entity_type", "actor_role")
    search_fields = ("action", "entity_type", "entity_id", "description")
    readonly_fields = [f.name for f in AuditEvent._meta.fields]
    ordering = ("-occurred_at",)

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
