"""
Authentication API views.

Endpoints:
    POST /api/v1/auth/register/        - Create an account
    POST /api/v1/auth/token/           - Obtain JWT pair (simplejwt)
    POST /api/v1/auth/token/refresh/   - Refresh access token (simplejwt)
    GET  /api/v1/auth/me/              - Current user and profile
    PATCH /api/v1/auth/me/             - Update display name and profile details
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.serializers import (
    ProfileUpdateSerializer,
    RegisterSerializer,
    UserSerializer,
)
from authentication.services import AccountService, ProfileService


class RegisterView(APIView):
    """
    Create an account and return a JWT pair so the client is logged in.
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Register",
        tags=["Auth"],
        request=RegisterSerializer,
        responses={201: UserSerializer},
    )
    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AccountService.register(**serializer.validated_data)
        if not result.success:
            return Response(
                {"error": result.error, "error_code": result.error_code},
                status=status.HTTP_400_BAD_REQUEST,
            )

        refresh = RefreshToken.for_user(result.data)
        return Response(
            {
                "user": UserSerializer(result.data).data,
                "access": str(refresh.access_token),
                "refresh": str(refresh),
            },
            status=status.HTTP_201_CREATED,
        )


class MeView(APIView):
    """
    Current user's account and public profile.

    GET returns the user with nested profile; PATCH updates profile fields.
    The display name set here is what counterparts see in conversations.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Get current user",
        tags=["Auth"],
        responses={200: UserSerializer},
    )
    def get(self, request):
        return Response(UserSerializer(request.user).data)

    @extend_schema(
        summary="Update current user's profile",
        tags=["Auth"],
        request=ProfileUpdateSerializer,
        responses={200: UserSerializer},
    )
    def patch(self, request):
        serializer = ProfileUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        result = ProfileService.update_profile(request.user, **serializer.validated_data)
        if not result.success:
            return Response(
                {"error": result.error, "error_code": result.error_code},
                status=status.HTTP_400_BAD_REQUEST,
            )

        request.user.refresh_from_db()
        return Response(UserSerializer(request.user).data)
