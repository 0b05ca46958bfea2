"""
winget package search endpoint (unauthenticated, used for suggestions).
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from ..config import get_settings
from ..schemas import PackageMatch
from ..services.package_resolver import PackageLookupError, WingetRunResolver, get_package_resolver

router = APIRouter(prefix="/api/winget", tags=["winget"])


@router.get("/search", response_model=List[PackageMatch])
async def search_packages(
    q: str = Query("", description="Application name to search for"),
    resolver: WingetRunResolver = Depends(get_package_resolver),
):
    """Search winget.run and return the top matches."""
    query = q.strip()
    if not query:
        raise HTTPException(status_code=400, detail={"error": "validation", "message": "missing q"})

    try:
        matches = await resolver.search(query, limit=get_settings().package_search_limit)
    except PackageLookupError:
        matches = []

    if not matches:
        raise HTTPException(status_code=404, detail={"error": "not_found", "message": "no package found"})

    return matches
