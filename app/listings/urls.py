from django.urls import include, path
from rest_framework.routers import SimpleRouter

from listings.views import ListingViewSet

router = SimpleRouter()
router.register(r"", ListingViewSet, basename="listing")

app_name = "listings"

urlpatterns = [
    path("", include(router.urls)),
]
