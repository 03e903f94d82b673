"""
Tests for core app.

This package contains test modules for:
- test_services.py: ServiceResult and BaseService
- test_exceptions.py: Application exception hierarchy
- test_views.py: Health check endpoint
"""
