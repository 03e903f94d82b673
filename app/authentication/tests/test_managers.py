"""
Tests for UserManager.

Covers:
- create_user(): email normalization, password hashing, display name on profile
- create_superuser(): elevated flags and their validation

Related files:
    - managers.py: Implementation under test
"""

import pytest

from authentication.models import User


class TestUserManagerCreateUser:
    """Tests for UserManager.create_user() method."""

    def test_creates_user_with_email_and_password(self, db):
        """
        Given valid email and password
        When create_user is called
        Then a user is created who can authenticate with that password
        """
        user = User.objects.create_user(email="mgr@example.com", password="SecurePass123!")

        assert user.pk is not None
        assert user.email == "mgr@example.com"
        assert user.check_password("SecurePass123!") is True

    def test_normalizes_email_domain_to_lowercase(self, db):
        user = User.objects.create_user(email="Renter@EXAMPLE.COM", password="x" * 12)

        assert user.email == "Renter@example.com"

    def test_missing_email_raises_value_error(self, db):
        with pytest.raises(ValueError, match="Email"):
            User.objects.create_user(email="", password="SecurePass123!")

    def test_without_password_sets_unusable_password(self, db):
        user = User.objects.create_user(email="nopass@example.com")

        assert user.has_usable_password() is False

    def test_display_name_is_written_to_profile(self, db):
        """
        Given a display name
        When create_user is called
        Then it lands on the auto-created Profile, not the User row

        Why it matters: Counterparts in conversations only ever see the
        profile display name.
        """
        user = User.objects.create_user(
            email="named@example.com", password="SecurePass123!", display_name="Owner Olga"
        )

        user.profile.refresh_from_db()
        assert user.profile.display_name == "Owner Olga"


class TestUserManagerCreateSuperuser:
    """Tests for UserManager.create_superuser() method."""

    def test_sets_staff_and_superuser_flags(self, db):
        admin = User.objects.create_superuser(email="root@example.com", password="AdminPass123!")

        assert admin.is_staff is True
        assert admin.is_superuser is True
        assert admin.email_verified is True

    def test_rejects_is_staff_false(self, db):
        with pytest.raises(ValueError, match="is_staff"):
            User.objects.create_superuser(
                email="bad@example.com", password="AdminPass123!", is_staff=False
            )
