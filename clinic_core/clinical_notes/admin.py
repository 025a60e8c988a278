from django.contrib import admin

from clinic_core.clinical_notes.models import ClinicalNote, ClinicalSuggestion


@admin.register(ClinicalNote)
class ClinicalNoteAdmin(admin.ModelAdmin):
    list_display = ("id", "patient", "author", "status", "created_at")
    search_fields = ("observations", "doctor_notes")
    raw_id_fields = ("patient", "author", "source_suggestion", "deleted_by")


@admin.register(ClinicalSuggestion)
class ClinicalSuggestionAdmin(admin.ModelAdmin):
    list_display = ("id", "patient", "suggested_by", "status", "created_at")
    list_filter = ("status",)
    raw_id_fields = ("patient", "suggested_by", "approved_by")
