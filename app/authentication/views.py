"""
Authentication and user profile views.

Endpoints:
    POST /api/v1/auth/register            - Create account, returns JWT pair
    POST /api/v1/auth/login               - Check credentials, returns JWT pair
                                            and sets the signed auth cookie
    POST /api/v1/auth/logout              - Clear the auth cookie
    GET  /api/v1/users/{id}               - Public profile
    PUT  /api/v1/users/{id}               - Update own profile
    GET  /api/v1/users/search/phone       - Exact phone lookup (?phone=)
    GET  /api/v1/users/search/name        - Name search (?name=)

Related files:
    - services.py: AuthService, UserService
    - serializers.py: Request/response serializers
"""

import logging

from django.conf import settings
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import serializers, status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.serializers import (
    AuthResponseSerializer,
    LoginSerializer,
    ProfileUpdateSerializer,
    RegisterSerializer,
    UserSerializer,
)
from authentication.services import AuthService, UserService

logger = logging.getLogger(__name__)


def _auth_payload(user):
    return {
        "success": True,
        "user": UserSerializer(user).data,
        **AuthService.issue_tokens(user),
    }


class RegisterView(APIView):
    """POST: Create an account and return a JWT pair."""

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Register",
        description="Create an account identified by phone number.",
        tags=["Auth"],
        request=RegisterSerializer,
        responses={201: AuthResponseSerializer},
    )
    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService().register(**serializer.validated_data)
        if not result:
            return Response(result.to_response(), status=status.HTTP_409_CONFLICT)

        return Response(_auth_payload(result.data), status=status.HTTP_201_CREATED)


class LoginView(APIView):
    """
    POST: Log in with phone number and password.

    The access token is returned in the body and also stored in a signed,
    HTTP-only cookie for browser clients.
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Log in",
        tags=["Auth"],
        request=LoginSerializer,
        responses={200: AuthResponseSerializer},
    )
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService().login(**serializer.validated_data)
        if not result:
            return Response(result.to_response(), status=status.HTTP_401_UNAUTHORIZED)

        payload = _auth_payload(result.data)
        response = Response(payload, status=status.HTTP_200_OK)
        response.set_signed_cookie(
            settings.AUTH_COOKIE_NAME,
            payload["access"],
            salt=settings.AUTH_COOKIE_SALT,
            max_age=int(settings.SIMPLE_JWT["ACCESS_TOKEN_LIFETIME"].total_seconds()),
            httponly=True,
            secure=settings.AUTH_COOKIE_SECURE,
            samesite="Lax",
        )
        return response


class LogoutView(APIView):
    """POST: Drop the auth cookie. Bearer tokens simply expire."""

    permission_classes = [AllowAny]

    @extend_schema(summary="Log out", tags=["Auth"], request=None, responses={200: None})
    def post(self, request):
        response = Response({"success": True})
        response.delete_cookie(settings.AUTH_COOKIE_NAME, samesite="Lax")
        return response


class UserDetailView(APIView):
    """
    GET: Public profile of any user.
    PUT: Update the caller's own profile.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Get user profile", tags=["Users"], responses={200: UserSerializer})
    def get(self, request, user_id):
        user = UserService().get_profile(user_id)
        return Response(UserSerializer(user).data)

    @extend_schema(
        summary="Update own profile",
        tags=["Users"],
        request=ProfileUpdateSerializer,
        responses={200: UserSerializer},
    )
    def put(self, request, user_id):
        serializer = ProfileUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = UserService().update_profile(
            user_id=user_id,
            actor_id=request.user.id,
            data=serializer.validated_data,
        )
        return Response(UserSerializer(user).data)


class PhoneQuerySerializer(serializers.Serializer):
    phone = serializers.CharField(max_length=32)


class NameQuerySerializer(serializers.Serializer):
    name = serializers.CharField(max_length=50)


class UserPhoneSearchView(APIView):
    """GET: Find users by exact phone number."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Search users by phone",
        tags=["Users"],
        parameters=[OpenApiParameter("phone", str, required=True)],
        responses={200: UserSerializer(many=True)},
    )
    def get(self, request):
        query = PhoneQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        users = UserService().search_by_phone(query.validated_data["phone"])
        if not users:
            return Response(
                {"success": False, "msg": "User not found", "error_code": "USER_NOT_FOUND"},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response({"success": True, "data": UserSerializer(users, many=True).data})


class UserNameSearchView(APIView):
    """GET: Case-insensitive substring search on user names."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Search users by name",
        tags=["Users"],
        parameters=[OpenApiParameter("name", str, required=True)],
        responses={200: UserSerializer(many=True)},
    )
    def get(self, request):
        query = NameQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        users = UserService().search_by_name(query.validated_data["name"])
        return Response({"success": True, "data": UserSerializer(users, many=True).data})
