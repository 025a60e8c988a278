from django.contrib import admin

from clinic_core.patients.models import Patient


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ("patient_code", "first_name", "last_name", "email", "phone", "status", "created_at")
    list_filter = ("status", "registration_type", "gender")
    search_fields = ("patient_code", "first_name", "last_name", "email", "phone")
    readonly_fields = ("patient_code", "created_at", "updated_at", "deleted_at", "deleted_by")
