"""
FastAPI Dependencies

Process-wide collaborators (settings, cache, event bus) and request-scoped
services. Tests replace any of them through ``app.dependency_overrides``.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings, get_settings
from ..core.database import get_database_session
from ..core.exceptions import AuthenticationError
from ..core.security import TokenClaims, decode_access_token
from ..services.accounts import AccountService
from ..services.cache.cache_manager import CacheManager, get_cache_manager
from ..services.catalog import CatalogService
from ..services.events.event_bus import EventBus, get_event_bus

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> TokenClaims:
    """Claims of the authenticated caller; 401 without a valid bearer token."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authentication required")
    return decode_access_token(credentials.credentials, settings)


def get_catalog_service(
    session: AsyncSession = Depends(get_database_session),
    cache: CacheManager = Depends(get_cache_manager),
    event_bus: EventBus = Depends(get_event_bus),
    settings: Settings = Depends(get_settings),
) -> CatalogService:
    return CatalogService(session, cache, event_bus, settings)


def get_account_service(
    session: AsyncSession = Depends(get_database_session),
    settings: Settings = Depends(get_settings),
) -> AccountService:
    return AccountService(session, settings)
