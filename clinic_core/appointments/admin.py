from django.contrib import admin

from clinic_core.appointments.models import Appointment


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ("patient", "doctor", "date", "timeslot", "service", "status")
    list_filter = ("status", "date")
    search_fields = ("service", "reason", "patient__patient_code", "patient__last_name")
    raw_id_fields = ("patient", "doctor", "created_by", "deleted_by")
