"""
Authentication models.

This module defines the account models:
- User: Custom user model with email-based authentication (slim, auth-focused)
- Profile: Public-facing profile data (OneToOne with User)

Related files:
    - managers.py: Custom user manager for email-based creation
    - services.py: ProfileService display-name resolution
    - signals.py: Auto-create profile on user creation

Display names:
    Other users only ever see a Profile's display_name. When it is blank the
    placeholder DEFAULT_DISPLAY_NAME is shown instead; email addresses are
    never exposed to counterparts.
"""

from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models

from authentication.managers import UserManager
from core.models import BaseModel

DEFAULT_DISPLAY_NAME = "User"


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    Profile data (display name, bio, avatar) lives on Profile.

    Fields:
        email: Primary identifier, unique, used for login
        email_verified: Whether the user's email has been verified
        is_active: Whether the user account is active; inactive users
            cannot log in and cannot start conversations
        is_staff: Whether the user can access Django admin
        date_joined: When the user account was created
        updated_at: When the user record was last modified
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )

    email_verified = models.BooleanField(
        default=False,
        help_text="Whether the user's email has been verified",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        return self.email

    def get_full_name(self):
        """Return the public display name, falling back to the placeholder."""
        try:
            return self.profile.public_name
        except Profile.DoesNotExist:
            return DEFAULT_DISPLAY_NAME

    def get_short_name(self):
        return self.get_full_name()


class Profile(BaseModel):
    """
    Public profile shown to other marketplace users.

    Fields:
        user: OneToOne link to User (also serves as primary key)
        display_name: Name shown in listings and conversations
        bio: Free-text introduction
        location: Free-text city/area
        phone: Contact number, never exposed through the messaging API
        avatar_url: Link to an externally hosted avatar image

    Note:
        Profile is automatically created via signals when a User is created.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
        primary_key=True,
        help_text="User this profile belongs to",
    )

    display_name = models.CharField(
        max_length=100,
        blank=True,
        help_text="Name shown to other users (placeholder used when blank)",
    )

    bio = models.TextField(
        blank=True,
        help_text="Short introduction shown on the user's listings",
    )

    location = models.CharField(
        max_length=200,
        blank=True,
        help_text="Free-text location (e.g. 'Austin, TX')",
    )

    phone = models.CharField(
        max_length=32,
        blank=True,
        help_text="Contact phone number (private)",
    )

    avatar_url = models.URLField(
        blank=True,
        help_text="URL of the user's avatar image",
    )

    class Meta:
        db_table = "authentication_profile"
        verbose_name = "profile"
        verbose_name_plural = "profiles"

    def __str__(self):
        return self.public_name

    @property
    def public_name(self) -> str:
        """Display name with surrounding whitespace removed, or the placeholder."""
        return self.display_name.strip() or DEFAULT_DISPLAY_NAME

    @property
    def initial(self) -> str:
        """Upper-cased first letter of the public name, used for avatar badges."""
        return self.public_name[0].upper()
