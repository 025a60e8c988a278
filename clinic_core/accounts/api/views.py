from __future__ import annotations

from django.contrib.auth import get_user_model
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from clinic_core.accounts.api.serializers import (
    UserCreateSerializer,
    UserQuerySerializer,
    UserSerializer,
    UserUpdateSerializer,
)
from clinic_core.accounts.selectors import list_users
from clinic_core.accounts.services import UserService
from clinic_core.common.api.pagination import PAGE_PARAMS, paginate
from clinic_core.common.api.responses import created, ok
from clinic_core.common.context import Actor
from clinic_core.common.lookups import assert_exists
from clinic_core.common.permissions import PolicyPermission

User = get_user_model()


class UserViewSet(viewsets.ViewSet):
    permission_classes = [PolicyPermission]
    policy_resource = "users"

    serializer_class = UserSerializer
    queryset = User.objects.none()

    @extend_schema(
        tags=["Users"],
        parameters=[
            OpenApiParameter(name="q", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="role", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="is_active", type=OpenApiTypes.BOOL, location=OpenApiParameter.QUERY, required=False),
            *PAGE_PARAMS,
        ],
    )
    def list(self, request):
        q = UserQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        return ok(paginate(request, list_users(**q.validated_data), UserSerializer))

    @extend_schema(tags=["Users"], request=UserCreateSerializer, responses={201: UserSerializer})
    def create(self, request):
        ser = UserCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        user = UserService.create_user(actor=Actor.from_request(request), **ser.validated_data)
        return created(UserSerializer(user).data, "User created")

    @extend_schema(tags=["Users"], responses={200: UserSerializer})
    def retrieve(self, request, pk=None):
        user = assert_exists(User, pk, label="User")
        return ok(UserSerializer(user).data)

    @extend_schema(tags=["Users"], request=UserUpdateSerializer, responses={200: UserSerializer})
    def partial_update(self, request, pk=None):
        ser = UserUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        user = UserService.update_user(actor=Actor.from_request(request), user_id=pk, data=ser.validated_data)
        return ok(UserSerializer(user).data, "User updated")

    @extend_schema(tags=["Users"], responses={200: None})
    def destroy(self, request, pk=None):
        UserService.delete_user(actor=Actor.from_request(request), user_id=pk)
        return ok(None, "User deleted")

    @extend_schema(tags=["Users"], responses={204: None})
    @action(detail=True, methods=["delete"])
    def purge(self, request, pk=None):
        UserService.purge_user(actor=Actor.from_request(request), user_id=pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
