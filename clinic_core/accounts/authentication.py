# clinic_core/accounts/authentication.py

from __future__ import annotations

from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import AuthenticationFailed


class ClinicJWTAuthentication(JWTAuthentication):
    """
    Authenticate using `Authorization: Bearer <access>` only.

    On top of simplejwt's checks (signature, expiry, token type, is_active)
    a soft-deleted account is rejected even while its token is still valid.
    """

    def get_user(self, validated_token):
        user = super().get_user(validated_token)
        if getattr(user, "deleted_at", None) is not None:
            raise AuthenticationFailed("User not found", code="user_not_found")
        return user
