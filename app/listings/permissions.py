from rest_framework import permissions


class IsOwnerOrReadOnly(permissions.BasePermission):
    """Anyone authenticated can read; only the owner can change a listing."""

    message = "Only the listing owner can modify this listing."

    def has_object_permission(self, request, view, obj) -> bool:
        if request.method in permissions.SAFE_METHODS:
            return True
        return obj.owner_id == request.user.id
