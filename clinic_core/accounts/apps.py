from django.apps import AppConfig


class AccountsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "clinic_core.accounts"

    def ready(self) -> None:
        # registers the bearer scheme with drf-spectacular
        from clinic_core.accounts import openapi  # noqa: F401
