"""
Chat app for listing conversations.

This app handles:
- Conversations between a renter and a listing's owner
- Message sending and history
- Read flags and unread counts
- WebSocket real-time updates

Related apps:
    - authentication: User model and display names
    - listings: Listings conversations are about

WebSocket Support:
    Uses Django Channels for real-time communication.
    See consumers.py for WebSocket handlers.
    See channel.py for in-process subscriptions.

Usage:
    from chat import api as chat_api

    conversation = chat_api.get_or_create_conversation(listing.id, renter.id, owner.id)
    chat_api.send_message(conversation.id, renter.id, owner.id, "Is this available?")
"""
