from django.contrib import admin

from clinic_core.accounts.models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    # Accounts are created through the API (password hashing + audit); admin is for inspection.
    ordering = ("email",)
    list_display = ("email", "first_name", "last_name", "role", "is_active", "deleted_at")
    list_filter = ("role", "is_active", "is_staff", "two_factor_enabled")
    search_fields = ("email", "first_name", "last_name", "phone")
    exclude = ("password", "user_permissions", "two_factor_secret", "two_factor_temp_secret")
    readonly_fields = ("last_login", "created_at", "updated_at", "deleted_at", "deleted_by")

    def has_add_permission(self, request):
        return False
