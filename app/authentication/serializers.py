"""
Serializers for authentication models.

This module provides DRF serializers for:
- User model (read operations, with public profile data)
- Profile updates (display name and contact details)
- Registration (create user)

Related files:
    - models.py: User and Profile models
    - views.py: Views that use these serializers
"""

from django.contrib.auth import password_validation
from rest_framework import serializers

from authentication.models import Profile, User


class ProfileSerializer(serializers.ModelSerializer):
    """Public profile fields with the resolved display name."""

    public_name = serializers.CharField(read_only=True)
    initial = serializers.CharField(read_only=True)

    class Meta:
        model = Profile
        fields = [
            "display_name",
            "public_name",
            "initial",
            "bio",
            "location",
            "phone",
            "avatar_url",
            "updated_at",
        ]
        read_only_fields = ["public_name", "initial", "updated_at"]


class UserSerializer(serializers.ModelSerializer):
    """
    Current-user serializer returned by /api/v1/auth/me/.

    Includes the nested profile for convenience.
    """

    profile = ProfileSerializer(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "email_verified",
            "date_joined",
            "profile",
        ]
        read_only_fields = fields


class ProfileUpdateSerializer(serializers.Serializer):
    """Validates PATCH /api/v1/auth/me/ bodies; every field is optional."""

    display_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    bio = serializers.CharField(required=False, allow_blank=True)
    location = serializers.CharField(max_length=200, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True)
    avatar_url = serializers.URLField(required=False, allow_blank=True)


class RegisterSerializer(serializers.Serializer):
    """Email/password sign-up with an optional display name."""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8)
    display_name = serializers.CharField(
        max_length=100, required=False, allow_blank=True, default=""
    )

    def validate_password(self, value):
        password_validation.validate_password(value)
        return value
