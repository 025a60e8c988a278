# clinic_core/api/urls.py
from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from clinic_core.accounts.api.auth import (
    ForgotPasswordView,
    LoginView,
    LogoutView,
    MeView,
    RefreshView,
    RegisterView,
    ResetPasswordView,
    TwoFactorEnableView,
    TwoFactorLoginView,
    TwoFactorSetupView,
)
from clinic_core.accounts.api.views import UserViewSet
from clinic_core.appointments.api.views import AppointmentViewSet
from clinic_core.attendance.api.views import AttendanceViewSet
from clinic_core.audit.api.views import AuditTrailViewSet
from clinic_core.billing.api.views import InvoiceViewSet, PaymentViewSet
from clinic_core.clinical_notes.api.views import ClinicalNoteViewSet, ClinicalSuggestionViewSet
from clinic_core.medical_records.api.views import MedicalRecordViewSet
from clinic_core.messaging.api.views import ReminderViewSet
from clinic_core.notifications.api.views import NotificationViewSet
from clinic_core.patients.api.views import PatientViewSet
from clinic_core.pharmacy.api.views import PharmacyItemViewSet
from clinic_core.tasks.api.views import TaskViewSet

router = DefaultRouter()

router.register(r"users", UserViewSet, basename="users")
router.register(r"patients", PatientViewSet, basename="patients")
router.register(r"appointments", AppointmentViewSet, basename="appointments")
router.register(r"billing/invoices", InvoiceViewSet, basename="billing-invoices")
router.register(r"billing/payments", PaymentViewSet, basename="billing-payments")
router.register(r"pharmacy-items", PharmacyItemViewSet, basename="pharmacy-items")
router.register(r"attendance", AttendanceViewSet, basename="attendance")
router.register(r"tasks", TaskViewSet, basename="tasks")
router.register(r"notifications", NotificationViewSet, basename="notifications")
router.register(r"audit-trail", AuditTrailViewSet, basename="audit-trail")
router.register(r"clinical-notes", ClinicalNoteViewSet, basename="clinical-notes")
router.register(r"clinical-suggestions", ClinicalSuggestionViewSet, basename="clinical-suggestions")
router.register(r"medical-records", MedicalRecordViewSet, basename="medical-records")
router.register(r"reminders", ReminderViewSet, basename="reminders")

urlpatterns = [
    # Auth
    path("auth/register/", RegisterView.as_view(), name="register"),
    path("auth/login/", LoginView.as_view(), name="login"),
    path("auth/refresh/", RefreshView.as_view(), name="refresh"),
    path("auth/logout/", LogoutView.as_view(), name="logout"),
    path("auth/forgot-password/", ForgotPasswordView.as_view(), name="forgot-password"),
    path("auth/reset-password/", ResetPasswordView.as_view(), name="reset-password"),
    path("auth/me/", MeView.as_view(), name="me"),
    path("auth/2fa/setup/", TwoFactorSetupView.as_view(), name="2fa-setup"),
    path("auth/2fa/enable/", TwoFactorEnableView.as_view(), name="2fa-enable"),
    path("auth/2fa/login/", TwoFactorLoginView.as_view(), name="2fa-login"),

    # Router URLs last (so explicit paths win if ever overlapping)
    *router.urls,
]
