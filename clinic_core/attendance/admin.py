from django.contrib import admin

from clinic_core.attendance.models import ClientAttendance, StaffAttendance


@admin.register(StaffAttendance)
class StaffAttendanceAdmin(admin.ModelAdmin):
    list_display = ("staff", "work_date", "clock_in", "clock_out")
    list_filter = ("work_date",)
    raw_id_fields = ("staff", "recorded_by")


@admin.register(ClientAttendance)
class ClientAttendanceAdmin(admin.ModelAdmin):
    list_display = ("appointment", "status", "marked_at")
    list_filter = ("status",)
    raw_id_fields = ("appointment", "marked_by")
