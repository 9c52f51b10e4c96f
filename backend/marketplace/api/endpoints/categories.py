"""
Categories API endpoints
"""

from typing import List

from fastapi import APIRouter, Depends

from ...schemas import CategoryRead
from ...services.catalog import CatalogService
from ..dependencies import get_catalog_service

router = APIRouter(prefix="/api/categories")


@router.get("", response_model=List[CategoryRead])
async def list_categories(catalog: CatalogService = Depends(get_catalog_service)):
    """All categories with their course counts."""
    return await catalog.list_categories()
