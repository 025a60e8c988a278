from django.contrib import admin

from clinic_core.billing.models import Invoice, Payment


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    can_delete = False
    readonly_fields = ("amount", "method", "transaction_ref", "status", "received_by", "paid_at")


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ("reference", "patient", "amount", "amount_paid", "currency", "status", "due_date")
    list_filter = ("status", "currency")
    search_fields = ("reference", "patient__patient_code", "patient__email")
    raw_id_fields = ("patient", "created_by", "deleted_by")
    inlines = [PaymentInline]


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("invoice", "amount", "method", "transaction_ref", "status", "paid_at")
    list_filter = ("method", "status")
    search_fields = ("transaction_ref", "invoice__reference")
    raw_id_fields = ("invoice", "received_by")
