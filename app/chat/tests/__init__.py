"""
Tests for chat app.

This package contains test modules for:
- test_models.py: Conversation, Message model tests
- test_services.py: Directory, store, read-state and list service tests
- test_events.py: MessageAppended validation
- test_channel.py: EventChannel publish/subscribe
- test_session.py: ChatSession state machine
- test_consumers.py: WebSocket consumer tests
- test_middleware.py: WebSocket JWT authentication
- test_views.py: REST API endpoint tests
- test_api.py, test_tasks.py: Plain-function interface and Celery tasks
- test_integration.py: End-to-end messaging scenarios

Usage:
    pytest chat/tests/
    pytest chat/tests/test_consumers.py
"""
