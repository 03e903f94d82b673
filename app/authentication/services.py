"""
Account and profile services.

ProfileService is the profile store the messaging core reads display names
from. Names are resolved in batches and cached in the default Django cache
(Redis in production) because conversation lists ask for many at once.

Usage:
    from authentication.services import AccountService, ProfileService

    name = ProfileService.get_display_name(user_id)
    names = ProfileService.get_display_names([owner_id, renter_id])

    result = AccountService.register(email, password, display_name="Dana")
"""

from __future__ import annotations

from collections.abc import Iterable

from django.conf import settings
from django.core.cache import cache

from authentication.models import DEFAULT_DISPLAY_NAME, Profile, User
from core.services import BaseService, ServiceResult


class ProfileService(BaseService):
    """Display-name resolution and profile updates."""

    CACHE_KEY = "profile:display_name:{user_id}"

    @classmethod
    def _cache_key(cls, user_id) -> str:
        return cls.CACHE_KEY.format(user_id=user_id)

    @classmethod
    def get_display_name(cls, user_id) -> str:
        """Return the public name for one user (placeholder when unknown or blank)."""
        return cls.get_display_names([user_id])[user_id]

    @classmethod
    def get_display_names(cls, user_ids: Iterable) -> dict:
        """
        Resolve public names for many users with at most one query.

        Every requested id is present in the returned dict; users without a
        profile or with a blank display name map to DEFAULT_DISPLAY_NAME.
        """
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return {}

        keys = {cls._cache_key(user_id): user_id for user_id in ids}
        cached = cache.get_many(list(keys))
        names = {keys[key]: value for key, value in cached.items()}

        missing = [user_id for user_id in ids if user_id not in names]
        if missing:
            found = {
                profile.user_id: profile.public_name
                for profile in Profile.objects.filter(user_id__in=missing)
            }
            resolved = {
                user_id: found.get(user_id, DEFAULT_DISPLAY_NAME) for user_id in missing
            }
            cache.set_many(
                {cls._cache_key(user_id): name for user_id, name in resolved.items()},
                timeout=settings.CHAT_DISPLAY_NAME_CACHE_SECONDS,
            )
            names.update(resolved)

        return names

    @classmethod
    def invalidate(cls, user_id) -> None:
        cache.delete(cls._cache_key(user_id))

    @classmethod
    def update_profile(cls, user: User, **fields) -> ServiceResult[Profile]:
        """
        Update editable profile fields for a user.

        Unknown field names are rejected so typos don't silently no-op.
        """
        editable = {"display_name", "bio", "location", "phone", "avatar_url"}
        unknown = set(fields) - editable
        if unknown:
            return ServiceResult.failure(
                f"Unknown profile fields: {', '.join(sorted(unknown))}",
                error_code="UNKNOWN_FIELD",
            )

        profile, _ = Profile.objects.get_or_create(user=user)
        for name, value in fields.items():
            setattr(profile, name, value.strip() if isinstance(value, str) else value)
        profile.save()

        cls.get_logger().info(f"Updated profile for user {user.pk}: {sorted(fields)}")
        return ServiceResult.success(profile)


class AccountService(BaseService):
    """Account registration."""

    @classmethod
    def register(
        cls, email: str, password: str, display_name: str = ""
    ) -> ServiceResult[User]:
        normalized = User.objects.normalize_email(email).strip()
        if User.objects.filter(email__iexact=normalized).exists():
            return ServiceResult.failure(
                "An account with this email already exists",
                error_code="EMAIL_EXISTS",
            )

        with cls.atomic():
            user = User.objects.create_user(
                email=normalized,
                password=password,
                display_name=display_name.strip(),
            )

        cls.get_logger().info(f"Registered user {user.pk}")
        return ServiceResult.success(user)
