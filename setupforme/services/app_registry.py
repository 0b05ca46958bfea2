"""
Application Registry

Owner-scoped CRUD over application records plus the validation applied
before anything is persisted. Every operation takes the caller's Identity
explicitly; mutations by anyone other than the owner are rejected before
the record is touched.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urlparse

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import Identity
from ..config import get_settings
from ..models import App
from ..schemas import AppDraft
from .errors import AuthorizationError, DependencyError, NotFoundError, ValidationError
from .package_resolver import PackageResolver
from .script_generator import InstallScriptGenerator

logger = logging.getLogger(__name__)


@dataclass
class ValidatedApp:
    """Normalized draft: trimmed, with blank optional fields as None."""
    name: str
    package_id: Optional[str]
    download_url: Optional[str]
    install_args: Optional[str]


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def is_valid_download_url(url: str) -> bool:
    """Absolute https URL with a host."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme == "https" and bool(parsed.hostname)


def _check_length(column: str, value: Optional[str]) -> None:
    limit = App.__table__.c[column].type.length
    if value is not None and len(value) > limit:
        raise ValidationError(f"{column} must be at most {limit} characters")


def validate_draft(draft: AppDraft) -> ValidatedApp:
    """
    Apply the field-level rules shared by create and update.

    The "package id or download URL" rule is checked by the caller, since
    create may still fill in a package id by auto-resolution.
    """
    name = _clean(draft.name)
    if not name:
        raise ValidationError("App name is required")

    package_id = _clean(draft.package_id)
    _check_length("name", name)
    _check_length("package_id", package_id)

    download_url = _clean(draft.download_url)
    if download_url is not None and not is_valid_download_url(download_url):
        raise ValidationError("Invalid download URL (must be an https URL with a host)")

    return ValidatedApp(
        name=name,
        package_id=package_id,
        download_url=download_url,
        install_args=_clean(draft.install_args),
    )


class AppRegistry:
    """Application records of a single database session."""

    def __init__(self, db: AsyncSession, resolver: Optional[PackageResolver] = None):
        self.db = db
        self.resolver = resolver
        self.resolve_timeout = get_settings().package_search_timeout

    async def list_by_owner(self, identity: Identity) -> List[App]:
        """All of the caller's apps in insertion order."""
        try:
            result = await self.db.execute(
                select(App).where(App.owner_id == identity.user_id).order_by(App.id)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch apps for user {identity.user_id}: {e}", exc_info=True)
            raise DependencyError("Failed to fetch apps") from e

    async def create(self, identity: Identity, draft: AppDraft) -> App:
        values = validate_draft(draft)

        if values.package_id is None and values.download_url is None:
            values.package_id = await self._auto_resolve(values.name)
            if values.package_id is None:
                raise ValidationError(
                    "Either package_id or download_url is required (auto-resolve failed)"
                )
            _check_length("package_id", values.package_id)

        app = App(
            owner_id=identity.user_id,
            name=values.name,
            package_id=values.package_id,
            download_url=values.download_url,
            install_args=values.install_args,
        )

        try:
            self.db.add(app)
            await self.db.commit()
            await self.db.refresh(app)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to create app {values.name!r} for user {identity.user_id}: {e}", exc_info=True)
            raise DependencyError("Failed to create app") from e

        logger.info(f"User {identity.user_id} created app {app.id} ({app.name})")
        return app

    async def update(self, identity: Identity, app_id: int, draft: AppDraft) -> App:
        """Full replace of an app owned by the caller."""
        app = await self._get_owned(identity, app_id, action="update")
        values = validate_draft(draft)

        if values.package_id is None and values.download_url is None:
            raise ValidationError("Either package_id or download_url is required")

        app.name = values.name
        app.package_id = values.package_id
        app.download_url = values.download_url
        app.install_args = values.install_args

        try:
            await self.db.commit()
            await self.db.refresh(app)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to update app {app_id}: {e}", exc_info=True)
            raise DependencyError("Failed to update app") from e

        logger.info(f"User {identity.user_id} updated app {app_id}")
        return app

    async def delete(self, identity: Identity, app_id: int) -> None:
        app = await self._get_owned(identity, app_id, action="delete")

        try:
            await self.db.delete(app)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to delete app {app_id}: {e}", exc_info=True)
            raise DependencyError("Failed to delete app") from e

        logger.info(f"User {identity.user_id} deleted app {app_id}")

    async def generate_script(self, identity: Identity) -> str:
        """Installation script for the caller's current apps."""
        apps = await self.list_by_owner(identity)
        logger.info(f"Generating installation script for user {identity.user_id} ({len(apps)} apps)")
        return InstallScriptGenerator.generate_script(apps)

    async def _get_owned(self, identity: Identity, app_id: int, action: str) -> App:
        try:
            result = await self.db.execute(select(App).where(App.id == app_id))
            app = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Failed to load app {app_id}: {e}", exc_info=True)
            raise DependencyError("Database error") from e

        if app is None:
            raise NotFoundError("App not found")

        if app.owner_id != identity.user_id:
            logger.warning(f"User {identity.user_id} attempted to {action} app {app_id} owned by {app.owner_id}")
            raise AuthorizationError(f"You can only {action} your own apps")

        return app

    async def _auto_resolve(self, name: str) -> Optional[str]:
        """Best-effort package id lookup; any failure means "not found"."""
        if self.resolver is None:
            return None
        try:
            package_id = await asyncio.wait_for(self.resolver.resolve(name), timeout=self.resolve_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Package lookup for {name!r} timed out after {self.resolve_timeout}s")
            return None
        except Exception as e:
            logger.warning(f"Package lookup for {name!r} failed: {e}")
            return None
        return _clean(package_id)
