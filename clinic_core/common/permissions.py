# clinic_core/common/permissions.py

from __future__ import annotations

from typing import Mapping

from rest_framework.permissions import AllowAny, BasePermission

from clinic_core.common.roles import Role

ADMIN = Role.ADMIN
DOCTOR = Role.DOCTOR
NURSE = Role.NURSE
FRONTDESK = Role.FRONTDESK
PHARMACIST = Role.PHARMACIST
PATIENT = Role.PATIENT

CLINICAL_DESK = frozenset({ADMIN, DOCTOR, NURSE, FRONTDESK})
ALL_STAFF = frozenset({ADMIN, DOCTOR, NURSE, FRONTDESK, PHARMACIST})
EVERYONE = ALL_STAFF | {PATIENT}

# Public marker: spread into @action(...) or set on an APIView.
# Skips identity resolution entirely, then lets everyone through.
PUBLIC = {"authentication_classes": [], "permission_classes": [AllowAny]}


# -----------------------------
# Capability table: resource -> action -> roles
# SUPERADMIN is implicitly allowed everywhere (see is_allowed).
# An empty set means "SUPERADMIN only".
# -----------------------------
POLICY: Mapping[str, Mapping[str, frozenset]] = {
    "auth": {
        "register": frozenset({ADMIN}),
        "me": EVERYONE,
        "two_factor_setup": EVERYONE,
        "two_factor_enable": EVERYONE,
    },
    "users": {
        "list": frozenset({ADMIN}),
        "retrieve": frozenset({ADMIN}),
        "create": frozenset({ADMIN}),
        "partial_update": frozenset({ADMIN}),
        "destroy": frozenset({ADMIN}),
        "purge": frozenset(),
    },
    "patients": {
        "list": CLINICAL_DESK,
        # PATIENT only ever reaches its own record (checked in the view)
        "retrieve": CLINICAL_DESK | {PATIENT},
        "by_code": CLINICAL_DESK,
        "create": CLINICAL_DESK,
        "partial_update": CLINICAL_DESK | {PATIENT},
        "appointments": CLINICAL_DESK | {PATIENT},
        "approve": frozenset({ADMIN, FRONTDESK}),
        "destroy": frozenset({ADMIN}),
    },
    "appointments": {
        "list": CLINICAL_DESK,
        "retrieve": CLINICAL_DESK,
        "create": CLINICAL_DESK,
        "partial_update": frozenset({ADMIN, DOCTOR, NURSE}),
        "approve": frozenset({ADMIN, DOCTOR}),
        "cancel": CLINICAL_DESK,
        "complete": frozenset({ADMIN, DOCTOR}),
        "mine": frozenset({PATIENT}),
        "destroy": frozenset({ADMIN, FRONTDESK}),
    },
    "invoices": {
        "list": frozenset({ADMIN, FRONTDESK}),
        "retrieve": frozenset({ADMIN, FRONTDESK, PATIENT}),
        "create": frozenset({ADMIN, FRONTDESK}),
        "payments": frozenset({ADMIN, FRONTDESK}),
        "export": frozenset({ADMIN}),
    },
    "payments": {
        "list": frozenset({ADMIN, FRONTDESK}),
    },
    "pharmacy": {
        "list": frozenset({ADMIN, DOCTOR, NURSE, PHARMACIST}),
        "retrieve": frozenset({ADMIN, DOCTOR, NURSE, PHARMACIST}),
        "create": frozenset({ADMIN, PHARMACIST}),
        "partial_update": frozenset({ADMIN, PHARMACIST}),
        "destroy": frozenset({ADMIN}),
        "sale": frozenset({ADMIN, PHARMACIST}),
        "sales": frozenset({ADMIN, PHARMACIST}),
        "sales_report": frozenset({ADMIN, PHARMACIST}),
    },
    "attendance": {
        "clock": frozenset({ADMIN, DOCTOR}),
        "staff": frozenset({ADMIN, DOCTOR}),
        "clients": frozenset({ADMIN, DOCTOR}),
    },
    "tasks": {
        "list": CLINICAL_DESK | {PATIENT},
        "retrieve": CLINICAL_DESK | {PATIENT},
        "create": CLINICAL_DESK,
        "partial_update": CLINICAL_DESK,
        "complete": CLINICAL_DESK,
        "destroy": frozenset({ADMIN}),
    },
    "notifications": {
        "list": frozenset({ADMIN}),
        "retrieve": frozenset({ADMIN, PATIENT}),
        "create": CLINICAL_DESK,
        "mine": frozenset({PATIENT}),
        "read": frozenset({ADMIN, PATIENT}),
        "destroy": frozenset({ADMIN}),
    },
    "audit": {
        "list": CLINICAL_DESK,
        "statistics": CLINICAL_DESK,
        "entity": CLINICAL_DESK,
        "create": frozenset({ADMIN}),
    },
    "medical_records": {
        "for_patient": frozenset({ADMIN, DOCTOR, FRONTDESK}),
        "retrieve": frozenset({ADMIN, DOCTOR, FRONTDESK}),
        "create": frozenset({ADMIN, DOCTOR, FRONTDESK}),
        "partial_update": frozenset({ADMIN, DOCTOR}),
        "destroy": frozenset({ADMIN, DOCTOR}),
    },
    "clinical_notes": {
        "list": frozenset({ADMIN, DOCTOR, NURSE}),
        "retrieve": frozenset({ADMIN, DOCTOR, NURSE}),
        "create": frozenset({ADMIN, DOCTOR}),
        "partial_update": frozenset({ADMIN, DOCTOR}),
        "destroy": frozenset({ADMIN}),
    },
    "clinical_suggestions": {
        "list": frozenset({ADMIN, DOCTOR, NURSE}),
        "retrieve": frozenset({ADMIN, DOCTOR, NURSE}),
        "create": frozenset({ADMIN, NURSE}),
        "approve": frozenset({ADMIN, DOCTOR}),
    },
    "reminders": {
        "list": CLINICAL_DESK,
        "create": CLINICAL_DESK,
    },
}


def is_allowed(role: str | None, resource: str | None, action: str | None) -> bool:
    """
    Single policy decision point: (role, resource, action) -> bool.
    Unknown resources/actions are denied.
    """
    if not role:
        return False
    if role == Role.SUPERADMIN:
        return True

    allowed = POLICY.get(resource or "", {}).get(action or "")
    if allowed is None:
        return False
    return role in allowed


def capabilities_for(role: str | None) -> list[str]:
    """Flattened "resource.action" list for UI gating."""
    return sorted(
        f"{resource}.{action}"
        for resource, actions in POLICY.items()
        for action in actions
        if is_allowed(role, resource, action)
    )


class PolicyPermission(BasePermission):
    """
    DRF adapter over POLICY.

    Views declare `policy_resource`; the action comes from the ViewSet action
    name, or is inferred from the HTTP method for plain APIViews (or from
    `policy_action` when set).
    """
    message = "You do not have permission to perform this action."

    def _infer_action(self, request, view) -> str | None:
        action = getattr(view, "policy_action", None) or getattr(view, "action", None)
        if action:
            return action

        kwargs = getattr(view, "kwargs", {}) or {}
        is_detail = "pk" in kwargs or "id" in kwargs

        method = request.method.upper()
        if method in ("GET", "HEAD", "OPTIONS"):
            return "retrieve" if is_detail else "list"
        if method == "POST":
            return "create"
        if method == "PUT":
            return "update"
        if method == "PATCH":
            return "partial_update"
        if method == "DELETE":
            return "destroy"
        return None

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not user or not getattr(user, "is_authenticated", False):
            return False

        resource = getattr(view, "policy_resource", None)
        return is_allowed(getattr(user, "role", None), resource, self._infer_action(request, view))
