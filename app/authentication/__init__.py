"""
Authentication application.

Email-based accounts, public profiles and JWT login.

Key components:
    - User model: Custom email-based user authentication
    - Profile model: Display name and contact details shown to other users
    - ProfileService: Batched, cached display-name lookups
    - AccountService: Registration

Usage:
    from authentication.models import User, Profile
    from authentication.services import ProfileService
"""
