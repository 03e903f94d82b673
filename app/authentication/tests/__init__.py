"""
Tests for authentication app.

This package contains test modules for:
- test_models.py: User and Profile model tests
- test_managers.py: UserManager tests
- test_services.py: ProfileService and AccountService tests
- test_signals.py: Profile creation and display-name cache signals
- test_views.py: API endpoint tests

Usage:
    pytest authentication/tests/
    pytest authentication/tests/test_models.py
"""
