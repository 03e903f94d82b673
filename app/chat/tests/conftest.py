"""
Test configuration and fixtures for chat tests.

This module provides:
- A renter, an owner with a listing, and an outsider
- A conversation between renter and owner about the listing
- API client helpers for authenticated requests
- An EventChannel bound to a private in-memory channel layer

Usage:
    def test_example(conversation, renter_client):
        response = renter_client.get(f"/api/v1/chat/conversations/{conversation.id}/")
        assert response.status_code == 200
"""

import pytest
import pytest_asyncio
from channels.layers import InMemoryChannelLayer
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.tests.factories import UserFactory
from chat.channel import EventChannel
from chat.tests.factories import ConversationFactory
from listings.tests.factories import ListingFactory


def client_for(user):
    """API client authenticated with a JWT for ``user``."""
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def renter(db):
    """The user contacting the owner (participant A)."""
    return UserFactory(display_name="Rita")


@pytest.fixture
def owner(db):
    """The listing owner (participant B)."""
    return UserFactory(display_name="Oscar")


@pytest.fixture
def outsider(db):
    """A user who takes part in no test conversation."""
    return UserFactory(display_name="Ned")


# =============================================================================
# Listing / Conversation Fixtures
# =============================================================================


@pytest.fixture
def listing(owner):
    return ListingFactory(owner=owner, title="Cordless drill")


@pytest.fixture
def conversation(listing, renter):
    """Conversation between renter and owner about the listing, no messages yet."""
    return ConversationFactory(listing=listing, renter=renter)


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def renter_client(renter):
    return client_for(renter)


@pytest.fixture
def owner_client(owner):
    return client_for(owner)


@pytest.fixture
def outsider_client(outsider):
    return client_for(outsider)


@pytest.fixture
def anonymous_client():
    return APIClient()


# =============================================================================
# Real-time Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def event_channel():
    """
    Connected EventChannel on its own InMemoryChannelLayer.

    Disconnected after the test, which cancels any subscriptions left open.
    """
    channel = EventChannel(layer=InMemoryChannelLayer()).connect()
    yield channel
    await channel.disconnect()
