from django.contrib import admin

from clinic_core.pharmacy.models import PharmacyItem, PharmacySale


@admin.register(PharmacyItem)
class PharmacyItemAdmin(admin.ModelAdmin):
    list_display = ("sku", "name", "unit_price", "stock", "deleted_at")
    search_fields = ("sku", "name")
    readonly_fields = ("created_at", "updated_at", "deleted_at", "deleted_by")


@admin.register(PharmacySale)
class PharmacySaleAdmin(admin.ModelAdmin):
    list_display = ("item", "quantity", "unit_price", "total_amount", "created_at")
    raw_id_fields = ("item", "patient", "created_by")
    date_hierarchy = "created_at"

    def has_change_permission(self, request, obj=None):
        return False
