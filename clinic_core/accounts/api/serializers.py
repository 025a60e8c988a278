from __future__ import annotations

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers
from rest_framework_simplejwt.exceptions import AuthenticationFailed
from rest_framework_simplejwt.serializers import TokenObtainSerializer

from clinic_core.accounts.services import requires_second_factor
from clinic_core.accounts.tokens import issue_login_tokens
from clinic_core.common.api.serializers import AtLeastOneFieldMixin, StrictSerializer
from clinic_core.common.roles import Role

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "first_name",
            "last_name",
            "full_name",
            "phone",
            "role",
            "is_active",
            "two_factor_enabled",
            "last_login",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class UserCreateSerializer(StrictSerializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8)
    first_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    last_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True)
    role = serializers.ChoiceField(choices=Role.choices, required=False, default=Role.FRONTDESK)
    is_active = serializers.BooleanField(required=False, default=True)

    def validate_password(self, value):
        validate_password(value)
        return value


class UserUpdateSerializer(AtLeastOneFieldMixin, StrictSerializer):
    email = serializers.EmailField(required=False)
    password = serializers.CharField(write_only=True, min_length=8, required=False)
    first_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    last_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True)
    role = serializers.ChoiceField(choices=Role.choices, required=False)
    is_active = serializers.BooleanField(required=False)

    def validate_password(self, value):
        validate_password(value)
        return value


class UserQuerySerializer(serializers.Serializer):
    q = serializers.CharField(required=False, allow_blank=True)
    role = serializers.ChoiceField(choices=Role.choices, required=False)
    is_active = serializers.BooleanField(required=False, allow_null=True, default=None)


class LoginSerializer(TokenObtainSerializer):
    """
    email + password -> {user, access, refresh}.

    Non-admin accounts with 2FA on get {user} only and finish the sign-in at
    auth/2fa/login/; no token is issued and last_login is left alone.
    """

    def validate(self, attrs):
        email = (attrs.get(self.username_field) or "").strip().lower()
        attrs[self.username_field] = email

        # soft-deleted accounts never reach authenticate()
        if User.objects.filter(email__iexact=email, deleted_at__isnull=False).exists():
            raise AuthenticationFailed(self.error_messages["no_active_account"], "no_active_account")

        super().validate(attrs)

        data = {"user": UserSerializer(self.user).data}
        if requires_second_factor(self.user):
            return data
        return {**data, **issue_login_tokens(self.user)}


class RefreshRequestSerializer(StrictSerializer):
    refresh = serializers.CharField()


class ForgotPasswordSerializer(StrictSerializer):
    email = serializers.EmailField()


class ResetPasswordSerializer(StrictSerializer):
    uid = serializers.CharField()
    token = serializers.CharField()
    new_password = serializers.CharField(write_only=True, min_length=8)

    def validate_new_password(self, value):
        validate_password(value)
        return value


class TokenPairSerializer(serializers.Serializer):
    access = serializers.CharField()
    refresh = serializers.CharField()


class LoginResponseSerializer(serializers.Serializer):
    user = UserSerializer()
    access = serializers.CharField(required=False)
    refresh = serializers.CharField(required=False)


class MeResponseSerializer(serializers.Serializer):
    user = UserSerializer()
    capabilities = serializers.ListField(child=serializers.CharField())


class TwoFactorCodeSerializer(StrictSerializer):
    code = serializers.CharField(max_length=12)


class TwoFactorLoginSerializer(StrictSerializer):
    email = serializers.EmailField()
    code = serializers.CharField(max_length=12)


class TwoFactorSetupSerializer(serializers.Serializer):
    secret = serializers.CharField()
    otpauth_url = serializers.CharField()
