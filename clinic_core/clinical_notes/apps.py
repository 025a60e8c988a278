from django.apps import AppConfig


class ClinicalNotesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "clinic_core.clinical_notes"
