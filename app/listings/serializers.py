"""
Serializers for listings.
"""

from rest_framework import serializers

from authentication.services import ProfileService
from listings.models import Listing


class ListingSerializer(serializers.ModelSerializer):
    """Listing with the owner's public name for the detail page."""

    owner_id = serializers.IntegerField(read_only=True)
    owner_name = serializers.SerializerMethodField()

    class Meta:
        model = Listing
        fields = [
            "id",
            "owner_id",
            "owner_name",
            "title",
            "description",
            "category",
            "price",
            "location",
            "is_available",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "owner_id", "owner_name", "created_at", "updated_at"]

    def get_owner_name(self, obj: Listing) -> str:
        return ProfileService.get_display_name(obj.owner_id)

    def validate_title(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Title cannot be blank.")
        return value
