"""
Listings app.

Rental items posted by owners. Only the parts other apps depend on live
here: the owner, the title shown in conversation lists, and a minimal
browse/create API. Photos, reviews and geocoding are handled elsewhere.

Usage:
    from listings.models import Listing
"""
