"""
Listing API.

    GET   /api/v1/listings/         - Browse available listings (?mine=1 for own)
    POST  /api/v1/listings/         - Post a listing (owner = current user)
    GET   /api/v1/listings/{id}/    - Listing detail
    PATCH /api/v1/listings/{id}/    - Owner edits
"""

from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import mixins, viewsets
from rest_framework.permissions import IsAuthenticated

from listings.models import Listing
from listings.permissions import IsOwnerOrReadOnly
from listings.serializers import ListingSerializer


@extend_schema_view(
    list=extend_schema(operation_id="list_listings", summary="List listings", tags=["Listings"]),
    create=extend_schema(operation_id="create_listing", summary="Create listing", tags=["Listings"]),
    retrieve=extend_schema(operation_id="get_listing", summary="Get listing", tags=["Listings"]),
    partial_update=extend_schema(
        operation_id="update_listing", summary="Update listing", tags=["Listings"]
    ),
)
class ListingViewSet(
    mixins.ListModelMixin,
    mixins.CreateModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = ListingSerializer
    permission_classes = [IsAuthenticated, IsOwnerOrReadOnly]
    http_method_names = ["get", "post", "patch", "head", "options"]

    def get_queryset(self):
        queryset = Listing.objects.select_related("owner")
        if self.action == "list":
            if self.request.query_params.get("mine"):
                return queryset.filter(owner=self.request.user)
            return queryset.filter(is_available=True)
        return queryset

    def perform_create(self, serializer):
        serializer.save(owner=self.request.user)
