# clinic_core/tasks/apps.py
from django.apps import AppConfig


class TasksConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "clinic_core.tasks"

    def ready(self):
        # registers event subscribers
        from clinic_core.tasks import subscribers  # noqa: F401
