"""
Application registry API endpoints.

Provides endpoints for:
- Listing, creating, replacing and deleting the caller's apps
- Generating the installation script for the caller's apps
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import Identity, get_current_identity
from ..database import get_db
from ..schemas import AppDraft, AppRead, ScriptData, ScriptResponse
from ..services.app_registry import AppRegistry
from ..services.errors import SetupForMeError
from ..services.package_resolver import WingetRunResolver, get_package_resolver


router = APIRouter(prefix="/api/apps", tags=["apps"])


def get_app_registry(
    db: AsyncSession = Depends(get_db),
    resolver: WingetRunResolver = Depends(get_package_resolver),
) -> AppRegistry:
    return AppRegistry(db, resolver)


def _http_error(e: SetupForMeError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.to_detail())


# ============================================================================
# Script Endpoint
# ============================================================================

@router.get("/script", response_model=ScriptResponse)
async def generate_script(
    identity: Identity = Depends(get_current_identity),
    registry: AppRegistry = Depends(get_app_registry),
):
    """
    Generate the PowerShell installation script for the caller's apps.

    Always reflects the current registry state; nothing is cached.
    """
    try:
        script = await registry.generate_script(identity)
    except SetupForMeError as e:
        raise _http_error(e)

    return ScriptResponse(
        message="Script generated successfully",
        data=ScriptData(script=script),
    )


# ============================================================================
# App Endpoints
# ============================================================================

@router.get("", response_model=List[AppRead])
async def list_apps(
    identity: Identity = Depends(get_current_identity),
    registry: AppRegistry = Depends(get_app_registry),
):
    """List the caller's apps in insertion order."""
    try:
        return await registry.list_by_owner(identity)
    except SetupForMeError as e:
        raise _http_error(e)


@router.post("", response_model=AppRead, status_code=201)
async def create_app(
    draft: AppDraft,
    identity: Identity = Depends(get_current_identity),
    registry: AppRegistry = Depends(get_app_registry),
):
    """
    Create a new app.

    If neither package_id nor download_url is given, the package id is
    looked up on winget.run by name.
    """
    try:
        return await registry.create(identity, draft)
    except SetupForMeError as e:
        raise _http_error(e)


@router.put("/{app_id}", response_model=AppRead)
async def update_app(
    app_id: int,
    draft: AppDraft,
    identity: Identity = Depends(get_current_identity),
    registry: AppRegistry = Depends(get_app_registry),
):
    """Replace an app (owner only)."""
    try:
        return await registry.update(identity, app_id, draft)
    except SetupForMeError as e:
        raise _http_error(e)


@router.delete("/{app_id}", status_code=204)
async def delete_app(
    app_id: int,
    identity: Identity = Depends(get_current_identity),
    registry: AppRegistry = Depends(get_app_registry),
):
    """Delete an app (owner only)."""
    try:
        await registry.delete(identity, app_id)
    except SetupForMeError as e:
        raise _http_error(e)

    return Response(status_code=status.HTTP_204_NO_CONTENT)
