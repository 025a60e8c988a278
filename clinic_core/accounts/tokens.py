from __future__ import annotations

from django.contrib.auth.models import update_last_login
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken


def issue_refresh_token(user) -> RefreshToken:
    """
    Refresh token carrying the role claim; access tokens minted from it
    inherit `userId` + `role`. for_user() also records an OutstandingToken row,
    which is what makes refresh tokens revocable server-side.
    """
    refresh = RefreshToken.for_user(user)
    refresh["role"] = user.role
    return refresh


def token_pair(user) -> dict[str, str]:
    refresh = issue_refresh_token(user)
    return {"access": str(refresh.access_token), "refresh": str(refresh)}


def issue_login_tokens(user) -> dict[str, str]:
    """Token pair for a completed sign-in; stamps last_login like simplejwt's obtain view."""
    pair = token_pair(user)
    if api_settings.UPDATE_LAST_LOGIN:
        update_last_login(None, user)
    return pair


def revoke_all_refresh_tokens(user) -> int:
    revoked = 0
    for outstanding in OutstandingToken.objects.filter(user=user):
        _, created = BlacklistedToken.objects.get_or_create(token=outstanding)
        revoked += int(created)
    return revoked
