"""Services layer public API.

Import service classes from here.
"""

from wishlist.services.catalog import CatalogService
from wishlist.services.lifecycle import LifecycleService

__all__ = [
    "CatalogService",
    "LifecycleService",
]
