# clinic_core/accounts/services.py
from __future__ import annotations

import logging

import pyotp
from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.tokens import default_token_generator
from django.db import IntegrityError, transaction
from django.utils import timezone
from django.utils.encoding import force_bytes, force_str
from django.utils.http import urlsafe_base64_decode, urlsafe_base64_encode
from rest_framework.exceptions import AuthenticationFailed, PermissionDenied, ValidationError
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from clinic_core.accounts.tokens import issue_login_tokens, revoke_all_refresh_tokens
from clinic_core.audit.services import AuditService, diff
from clinic_core.common.api.exceptions import ConflictError
from clinic_core.common.context import Actor
from clinic_core.common.lookups import assert_exists
from clinic_core.common.roles import ADMINS, Role
from clinic_core.common.services import apply_changes, soft_delete
from clinic_core.messaging.mail import notify_by_email

logger = logging.getLogger(__name__)

User = get_user_model()

EMAIL_TAKEN = "A user with this email already exists."
RESET_REQUESTED = "If an account exists for this email, a password reset link has been sent."
TWO_FACTOR_INCOMPLETE = "2FA setup incomplete"
TWO_FACTOR_BAD_CODE = "Invalid 2FA code"
TWO_FACTOR_NOT_ENABLED = "2FA is not enabled for this user."


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _email_taken(email: str, *, exclude_id: int | None = None) -> bool:
    qs = User.objects.filter(email__iexact=email)
    if exclude_id is not None:
        qs = qs.exclude(id=exclude_id)
    return qs.exists()


def _guard_role_grant(actor: Actor, role: str | None) -> None:
    # only a super admin can mint another super admin
    if role == Role.SUPERADMIN and actor.role != Role.SUPERADMIN:
        raise PermissionDenied("Only a super admin can assign the SUPERADMIN role.")


def _snapshot(user) -> dict:
    return {
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "phone": user.phone,
        "role": user.role,
        "is_active": user.is_active,
    }


class UserService:
    @staticmethod
    @transaction.atomic
    def create_user(
        *,
        actor: Actor,
        email: str,
        password: str,
        first_name: str = "",
        last_name: str = "",
        phone: str = "",
        role: str = Role.FRONTDESK,
        is_active: bool = True,
    ):
        email = _normalize_email(email)
        _guard_role_grant(actor, role)

        if _email_taken(email):
            raise ConflictError(EMAIL_TAKEN)

        try:
            user = User.objects.create_user(
                email=email,
                password=password,
                first_name=first_name or "",
                last_name=last_name or "",
                phone=phone or "",
                role=role,
                is_active=is_active,
            )
        except IntegrityError:
            # lost a race against a concurrent registration
            raise ConflictError(EMAIL_TAKEN)

        AuditService.log(
            action="USER_CREATED",
            entity_type="User",
            entity_id=user.id,
            actor=actor,
            after=_snapshot(user),
        )
        return user

    @staticmethod
    @transaction.atomic
    def update_user(*, actor: Actor, user_id: int, data: dict):
        user = assert_exists(User, user_id, label="User", lock=True)
        data = dict(data or {})

        if "email" in data:
            data["email"] = _normalize_email(data["email"])
            if _email_taken(data["email"], exclude_id=user.id):
                raise ConflictError(EMAIL_TAKEN)
        if "role" in data:
            _guard_role_grant(actor, data["role"])

        password = data.pop("password", None)
        changes = apply_changes(
            user, data, {"email", "first_name", "last_name", "phone", "role", "is_active"}
        )
        if password:
            user.set_password(password)

        if not changes and not password:
            return user

        user.save()
        if password:
            revoke_all_refresh_tokens(user)

        before, after = diff(changes)
        AuditService.log(
            action="USER_UPDATED",
            entity_type="User",
            entity_id=user.id,
            actor=actor,
            before=before,
            after=after,
            details={"password_changed": bool(password)},
        )
        return user

    @staticmethod
    @transaction.atomic
    def delete_user(*, actor: Actor, user_id: int) -> None:
        if actor.user_id is not None and str(actor.user_id) == str(user_id):
            raise ValidationError("You cannot delete your own account.")

        user = soft_delete(User, user_id, actor=actor, label="User")
        user.is_active = False
        user.save(update_fields=["is_active", "updated_at"])
        revoke_all_refresh_tokens(user)

        AuditService.log(
            action="USER_DELETED",
            entity_type="User",
            entity_id=user.id,
            actor=actor,
            before=_snapshot(user),
        )

    @staticmethod
    @transaction.atomic
    def purge_user(*, actor: Actor, user_id: int) -> None:
        """Physical delete. Soft-deleted accounts can be purged too."""
        if actor.user_id is not None and str(actor.user_id) == str(user_id):
            raise ValidationError("You cannot purge your own account.")

        user = assert_exists(User, user_id, label="User", queryset=User.objects.all(), lock=True)
        snapshot, pk = _snapshot(user), user.id
        user.delete()

        AuditService.log(
            action="USER_PURGED",
            entity_type="User",
            entity_id=pk,
            actor=actor,
            before=snapshot,
        )


class AuthService:
    @staticmethod
    def logout(*, refresh: str) -> None:
        """
        Revoke one refresh token. Unknown, expired and already revoked
        tokens are all reported as 401.
        """
        try:
            RefreshToken(refresh).blacklist()
        except TokenError as exc:
            raise InvalidToken(exc.args[0] if exc.args else "Token is invalid or expired")

    @staticmethod
    def request_password_reset(*, email: str) -> None:
        """Emails a reset link when the account exists. Silent otherwise."""
        user = User.objects.alive().filter(email__iexact=_normalize_email(email), is_active=True).first()
        if user is None:
            logger.info("Password reset requested for unknown email")
            return

        uid = urlsafe_base64_encode(force_bytes(user.pk))
        token = default_token_generator.make_token(user)
        link = f"{settings.FRONTEND_URL.rstrip('/')}/reset-password?uid={uid}&token={token}"

        notify_by_email(
            [user.email],
            "Reset your password",
            (
                f"Hello {user.first_name or user.email},\n\n"
                f"Use the link below to choose a new password:\n{link}\n\n"
                "If you did not request this, you can ignore this email."
            ),
        )
        AuditService.log(
            action="PASSWORD_RESET_REQUESTED",
            entity_type="User",
            entity_id=user.id,
            actor=Actor(user_id=user.id, role=user.role),
        )

    @staticmethod
    @transaction.atomic
    def reset_password(*, uid: str, token: str, new_password: str) -> None:
        try:
            pk = force_str(urlsafe_base64_decode(uid))
            user = User.objects.alive().select_for_update().get(pk=pk)
        except (TypeError, ValueError, OverflowError, User.DoesNotExist):
            user = None

        if user is None or not default_token_generator.check_token(user, token):
            raise PermissionDenied("Invalid or expired password reset token.")

        user.set_password(new_password)
        user.save(update_fields=["password", "updated_at"])
        revoke_all_refresh_tokens(user)

        AuditService.log(
            action="PASSWORD_RESET",
            entity_type="User",
            entity_id=user.id,
            actor=Actor(user_id=user.id, role=user.role),
            details={"at": timezone.now().isoformat()},
        )


def requires_second_factor(user) -> bool:
    """Admins sign in with the password alone, everyone else with 2FA on must add a code."""
    return bool(user.two_factor_enabled) and user.role not in ADMINS


def _code_matches(secret: str, code: str) -> bool:
    # one step of clock drift either way
    return bool(secret) and pyotp.TOTP(secret).verify(str(code or "").strip(), valid_window=1)


class TwoFactorService:
    @staticmethod
    @transaction.atomic
    def start_setup(*, actor: Actor) -> dict:
        """
        Issue a fresh pending secret. Calling it again replaces the pending
        secret; an already enabled secret stays in force until enable().
        """
        user = assert_exists(User, actor.user_id, label="User", lock=True)
        secret = pyotp.random_base32()
        user.two_factor_temp_secret = secret
        user.save(update_fields=["two_factor_temp_secret", "updated_at"])

        AuditService.log(action="TWO_FACTOR_SETUP_STARTED", entity_type="User", entity_id=user.id, actor=actor)
        return {
            "secret": secret,
            "otpauth_url": pyotp.TOTP(secret).provisioning_uri(
                name=user.email, issuer_name=settings.TWO_FACTOR_ISSUER
            ),
        }

    @staticmethod
    @transaction.atomic
    def enable(*, actor: Actor, code: str):
        user = assert_exists(User, actor.user_id, label="User", lock=True)
        if not user.two_factor_temp_secret:
            raise ValidationError(TWO_FACTOR_INCOMPLETE)
        if not _code_matches(user.two_factor_temp_secret, code):
            raise ValidationError(TWO_FACTOR_BAD_CODE)

        user.two_factor_secret = user.two_factor_temp_secret
        user.two_factor_temp_secret = ""
        user.two_factor_enabled = True
        user.save(update_fields=["two_factor_secret", "two_factor_temp_secret", "two_factor_enabled", "updated_at"])

        AuditService.log(
            action="TWO_FACTOR_ENABLED",
            entity_type="User",
            entity_id=user.id,
            actor=actor,
            before={"two_factor_enabled": False},
            after={"two_factor_enabled": True},
        )
        return user

    @staticmethod
    def login(*, email: str, code: str):
        """
        Second step of a 2FA sign-in. Returns (user, token pair).
        Unknown and disabled accounts get the same 401.
        """
        user = User.objects.alive().filter(email__iexact=_normalize_email(email), is_active=True).first()
        if user is None or not user.two_factor_enabled:
            raise AuthenticationFailed(TWO_FACTOR_NOT_ENABLED)
        if not _code_matches(user.two_factor_secret, code):
            logger.info("Rejected 2FA code for user %s", user.id)
            raise AuthenticationFailed(TWO_FACTOR_BAD_CODE)

        tokens = issue_login_tokens(user)
        AuditService.log(
            action="TWO_FACTOR_LOGIN",
            entity_type="User",
            entity_id=user.id,
            actor=Actor(user_id=user.id, role=user.role),
        )
        return user, tokens
