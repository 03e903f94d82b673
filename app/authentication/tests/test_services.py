"""
Tests for ProfileService and AccountService.
"""

from django.db import connection
from django.test.utils import CaptureQueriesContext

from authentication.models import User
from authentication.services import AccountService, ProfileService
from authentication.tests.factories import UserFactory


# =============================================================================
# TestProfileServiceDisplayNames
# =============================================================================


class TestProfileServiceDisplayNames:
    """Tests for ProfileService.get_display_name(s)."""

    def test_resolves_names_for_many_users(self, db):
        dana = UserFactory(display_name="Dana")
        olga = UserFactory(display_name="Olga")

        names = ProfileService.get_display_names([dana.id, olga.id])

        assert names == {dana.id: "Dana", olga.id: "Olga"}

    def test_unknown_user_maps_to_placeholder(self, db):
        names = ProfileService.get_display_names([999999])

        assert names == {999999: "User"}

    def test_blank_display_name_maps_to_placeholder(self, db):
        user = UserFactory(display_name="")

        assert ProfileService.get_display_name(user.id) == "User"

    def test_batch_lookup_uses_single_query(self, db):
        """
        Why it matters: Conversation lists resolve every counterpart at once;
        a query per row would scale with the number of conversations.
        """
        users = [UserFactory() for _ in range(5)]

        with CaptureQueriesContext(connection) as ctx:
            ProfileService.get_display_names([u.id for u in users])

        assert len(ctx.captured_queries) == 1

    def test_second_lookup_is_served_from_cache(self, db):
        user = UserFactory(display_name="Cached")
        ProfileService.get_display_name(user.id)

        with CaptureQueriesContext(connection) as ctx:
            assert ProfileService.get_display_name(user.id) == "Cached"

        assert len(ctx.captured_queries) == 0

    def test_empty_input_returns_empty_dict(self, db):
        assert ProfileService.get_display_names([]) == {}


# =============================================================================
# TestProfileServiceUpdateProfile
# =============================================================================


class TestProfileServiceUpdateProfile:
    def test_updates_and_strips_fields(self, db):
        user = UserFactory(display_name="Old")

        result = ProfileService.update_profile(user, display_name="  New Name  ", location="Austin")

        assert result.success is True
        assert result.data.display_name == "New Name"
        assert result.data.location == "Austin"

    def test_rejects_unknown_fields(self, db):
        user = UserFactory()

        result = ProfileService.update_profile(user, email="nope@example.com")

        assert result.success is False
        assert result.error_code == "UNKNOWN_FIELD"


# =============================================================================
# TestAccountServiceRegister
# =============================================================================


class TestAccountServiceRegister:
    def test_registers_user_with_display_name(self, db):
        result = AccountService.register("new@example.com", "SecurePass123!", "Newcomer")

        assert result.success is True
        assert result.data.profile.display_name == "Newcomer"
        assert result.data.check_password("SecurePass123!")

    def test_duplicate_email_is_rejected_case_insensitively(self, db):
        UserFactory(email="taken@example.com")

        result = AccountService.register("TAKEN@example.com", "SecurePass123!")

        assert result.success is False
        assert result.error_code == "EMAIL_EXISTS"
        assert User.objects.count() == 1
