"""
Listing model.

Fields consumed by the chat app:
    owner: participant B of every conversation about the listing
    title: shown next to the counterpart's name in conversation lists
"""

from django.conf import settings
from django.db import models

from core.models import BaseModel

UNKNOWN_LISTING_TITLE = "Unknown Listing"


class Listing(BaseModel):
    """
    An item offered for rent.

    Fields:
        owner: User who posted the listing
        title: Short headline
        description: Free-text description
        category: Free-text category (e.g. "Tools", "Camping")
        price: Daily price, optional
        location: Free-text pickup location
        is_available: Whether the owner currently accepts requests
    """

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="listings",
        help_text="User who posted this listing",
    )

    title = models.CharField(
        max_length=200,
        help_text="Listing headline",
    )

    description = models.TextField(
        blank=True,
        help_text="Listing description",
    )

    category = models.CharField(
        max_length=50,
        blank=True,
        db_index=True,
        help_text="Listing category",
    )

    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Daily rental price",
    )

    location = models.CharField(
        max_length=200,
        blank=True,
        help_text="Pickup location",
    )

    is_available = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Whether the listing is currently available to rent",
    )

    class Meta:
        db_table = "listings_listing"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["owner", "-created_at"], name="listing_owner_created_idx"),
        ]

    def __str__(self) -> str:
        return self.title or UNKNOWN_LISTING_TITLE

    @property
    def display_title(self) -> str:
        return self.title.strip() or UNKNOWN_LISTING_TITLE
