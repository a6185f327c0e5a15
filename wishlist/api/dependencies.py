"""FastAPI dependency injection providers.

Dependencies are injected via function parameters using `Depends()`. This
pattern enables:
  - Clean separation between infrastructure and route handlers
  - Easy test substitution (`app.dependency_overrides[get_lifecycle_service]`)
  - Explicit lifecycle management (TMDb client stored in app.state)

Example usage:
    @router.get("/movies/{movie_id}")
    async def get_movie(movie_id: uuid.UUID, service: LifecycleServiceDep):
        return await service.get(movie_id)
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from wishlist.infra.repositories import MovieRepository
from wishlist.infra.tmdb import TMDbClient
from wishlist.services import CatalogService, LifecycleService


# ---------------------------------------------------------------------------
# TMDb client
# ---------------------------------------------------------------------------


def get_metadata_client(request: Request) -> TMDbClient:
    """Dependency that provides the singleton TMDb client.

    The client (and its httpx connection pool) is created once at application
    startup in the lifespan context manager and stored in
    `app.state.tmdb_client`.

    Raises:
        HTTPException: 503 Service Unavailable if client not initialized.
    """
    client: TMDbClient | None = getattr(request.app.state, "tmdb_client", None)

    if client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Metadata client not initialized. Service is starting or shutting down.",
        )

    return client


MetadataClientDep = Annotated[TMDbClient, Depends(get_metadata_client)]


# ---------------------------------------------------------------------------
# Database repositories
#
# Repositories are stateless — instantiating one per request is cheap and
# ensures no cross-request state leakage. The underlying AsyncEngine (and
# its connection pool) is a module-level singleton shared across all requests.
# ---------------------------------------------------------------------------


def get_movie_repository() -> MovieRepository:
    """Dependency that provides a MovieRepository instance."""
    return MovieRepository()


MovieRepoDep = Annotated[MovieRepository, Depends(get_movie_repository)]


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


def get_lifecycle_service(
    repo: MovieRepoDep,
    metadata: MetadataClientDep,
) -> LifecycleService:
    return LifecycleService(repo, metadata)


def get_catalog_service(repo: MovieRepoDep) -> CatalogService:
    return CatalogService(repo)


# Type aliases for use in route handler signatures
LifecycleServiceDep = Annotated[LifecycleService, Depends(get_lifecycle_service)]
CatalogServiceDep = Annotated[CatalogService, Depends(get_catalog_service)]
