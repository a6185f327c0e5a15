"""API routers.

Each router module defines endpoints for a specific domain:
  - movies: Wishlist lifecycle and catalog endpoints (/movies)
"""

from wishlist.api.routers.movies import router as movies_router

__all__ = ["movies_router"]
