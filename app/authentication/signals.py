"""
Django signals for authentication.

Handlers:
- create_user_profile: every new User gets an empty Profile
- invalidate_display_name_cache: profile edits drop the cached display name

Signals are connected in AuthenticationConfig.ready().
"""

import logging

from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

logger = logging.getLogger(__name__)


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_user_profile(sender, instance, created, **kwargs):
    """Create a Profile for newly created users."""
    if created:
        from authentication.models import Profile

        Profile.objects.get_or_create(user=instance)
        logger.debug(f"Profile created for user: {instance.pk}")


@receiver(post_save, sender="authentication.Profile")
def invalidate_display_name_cache(sender, instance, **kwargs):
    """Forget the cached display name so conversation lists pick up the change."""
    from authentication.services import ProfileService

    ProfileService.invalidate(instance.user_id)
