# clinic_core/accounts/api/auth.py

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenRefreshSerializer

from clinic_core.accounts.api.serializers import (
    ForgotPasswordSerializer,
    LoginResponseSerializer,
    LoginSerializer,
    MeResponseSerializer,
    RefreshRequestSerializer,
    ResetPasswordSerializer,
    TokenPairSerializer,
    TwoFactorCodeSerializer,
    TwoFactorLoginSerializer,
    TwoFactorSetupSerializer,
    UserCreateSerializer,
    UserSerializer,
)
from clinic_core.accounts.services import RESET_REQUESTED, AuthService, TwoFactorService, UserService
from clinic_core.common.api.responses import created, ok
from clinic_core.common.context import Actor
from clinic_core.common.permissions import PUBLIC, PolicyPermission, capabilities_for


class PublicAPIView(APIView):
    authentication_classes = PUBLIC["authentication_classes"]
    permission_classes = PUBLIC["permission_classes"]


class LoginView(PublicAPIView):
    @extend_schema(request=LoginSerializer, responses={200: LoginResponseSerializer}, tags=["Auth"])
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        data = serializer.validated_data
        if "access" not in data:
            return ok(data, "Two-factor code required")
        return ok(data, "Login successful")


class RefreshView(PublicAPIView):
    """Rotates: the presented refresh token is blacklisted and a new pair issued."""

    @extend_schema(request=RefreshRequestSerializer, responses={200: TokenPairSerializer}, tags=["Auth"])
    def post(self, request):
        body = RefreshRequestSerializer(data=request.data)
        body.is_valid(raise_exception=True)

        serializer = TokenRefreshSerializer(data=body.validated_data)
        try:
            serializer.is_valid(raise_exception=True)
        except TokenError as exc:
            raise InvalidToken(exc.args[0] if exc.args else None)

        return ok(serializer.validated_data, "Token refreshed")


class LogoutView(PublicAPIView):
    @extend_schema(request=RefreshRequestSerializer, responses={200: None}, tags=["Auth"])
    def post(self, request):
        body = RefreshRequestSerializer(data=request.data)
        body.is_valid(raise_exception=True)

        AuthService.logout(refresh=body.validated_data["refresh"])
        return ok(None, "Logged out")


class ForgotPasswordView(PublicAPIView):
    @extend_schema(request=ForgotPasswordSerializer, responses={200: None}, tags=["Auth"])
    def post(self, request):
        body = ForgotPasswordSerializer(data=request.data)
        body.is_valid(raise_exception=True)

        AuthService.request_password_reset(email=body.validated_data["email"])
        return ok(None, RESET_REQUESTED)


class ResetPasswordView(PublicAPIView):
    @extend_schema(request=ResetPasswordSerializer, responses={200: None}, tags=["Auth"])
    def post(self, request):
        body = ResetPasswordSerializer(data=request.data)
        body.is_valid(raise_exception=True)

        AuthService.reset_password(**body.validated_data)
        return ok(None, "Password has been reset")


class RegisterView(APIView):
    permission_classes = [PolicyPermission]
    policy_resource = "auth"
    policy_action = "register"

    @extend_schema(request=UserCreateSerializer, responses={201: UserSerializer}, tags=["Auth"])
    def post(self, request):
        body = UserCreateSerializer(data=request.data)
        body.is_valid(raise_exception=True)

        user = UserService.create_user(actor=Actor.from_request(request), **body.validated_data)
        return created(UserSerializer(user).data, "User registered")


class MeView(APIView):
    permission_classes = [IsAuthenticated, PolicyPermission]
    policy_resource = "auth"
    policy_action = "me"

    @extend_schema(responses={200: MeResponseSerializer}, tags=["Auth"])
    def get(self, request):
        return ok(
            {
                "user": UserSerializer(request.user).data,
                "capabilities": capabilities_for(request.user.role),
            }
        )


class TwoFactorSetupView(APIView):
    """Returns a new pending secret plus the otpauth:// URL to render as a QR code."""

    permission_classes = [IsAuthenticated, PolicyPermission]
    policy_resource = "auth"
    policy_action = "two_factor_setup"

    @extend_schema(request=None, responses={200: TwoFactorSetupSerializer}, tags=["Auth"])
    def post(self, request):
        data = TwoFactorService.start_setup(actor=Actor.from_request(request))
        return ok(data, "Scan the code with an authenticator app, then confirm it")


class TwoFactorEnableView(APIView):
    permission_classes = [IsAuthenticated, PolicyPermission]
    policy_resource = "auth"
    policy_action = "two_factor_enable"

    @extend_schema(request=TwoFactorCodeSerializer, responses={200: UserSerializer}, tags=["Auth"])
    def post(self, request):
        body = TwoFactorCodeSerializer(data=request.data)
        body.is_valid(raise_exception=True)

        user = TwoFactorService.enable(actor=Actor.from_request(request), code=body.validated_data["code"])
        return ok(UserSerializer(user).data, "Two-factor authentication enabled")


class TwoFactorLoginView(PublicAPIView):
    @extend_schema(request=TwoFactorLoginSerializer, responses={200: LoginResponseSerializer}, tags=["Auth"])
    def post(self, request):
        body = TwoFactorLoginSerializer(data=request.data)
        body.is_valid(raise_exception=True)

        user, tokens = TwoFactorService.login(**body.validated_data)
        return ok({"user": UserSerializer(user).data, **tokens}, "Login successful")
