from django.contrib import admin

from clinic_core.medical_records.models import MedicalRecord


@admin.register(MedicalRecord)
class MedicalRecordAdmin(admin.ModelAdmin):
    list_display = ("id", "patient", "type", "name", "severity", "created_at")
    list_filter = ("type", "severity")
    search_fields = ("name", "notes")
    raw_id_fields = ("patient", "recorded_by", "deleted_by")
