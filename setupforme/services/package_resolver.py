"""
winget.run Package Lookup Service

Translates a free-text application name into a winget package id.
Lookups are best effort: resolve() never raises, it returns None when the
name cannot be resolved for any reason (no match, HTTP error, timeout).
"""
import httpx
from typing import List, Optional, Protocol
import logging

from ..config import get_settings
from ..schemas import PackageMatch

logger = logging.getLogger(__name__)


class PackageResolver(Protocol):
    """Capability used by the app registry to fill in a missing package id."""

    async def resolve(self, name: str) -> Optional[str]:
        ...


class PackageLookupError(Exception):
    """Raised by search() when winget.run cannot be queried."""
    pass


def _text(value) -> str:
    """String fields of a winget.run package; anything else counts as missing."""
    return value.strip() if isinstance(value, str) else ""


class WingetRunResolver:
    """Searches the public winget.run catalogue."""

    def __init__(self, search_url: Optional[str] = None, timeout: Optional[float] = None):
        settings = get_settings()
        self.search_url = search_url or settings.package_search_url
        self.timeout = timeout if timeout is not None else settings.package_search_timeout

    async def search(self, query: str, limit: int = 5) -> List[PackageMatch]:
        """
        Search winget.run for packages matching a query.

        Args:
            query: Free-text application name
            limit: Maximum number of matches to return

        Returns:
            Matches in the order winget.run ranks them (possibly empty)

        Raises:
            PackageLookupError: If the request fails or the response is malformed
        """
        if not query or not query.strip():
            return []

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.get(
                    self.search_url,
                    params={"query": query.strip()},
                    headers={"Accept": "application/json"},
                )
                response.raise_for_status()
                data = response.json()
            except httpx.TimeoutException as e:
                logger.warning(f"winget.run lookup timed out for {query!r}")
                raise PackageLookupError("Package lookup timed out") from e
            except httpx.HTTPStatusError as e:
                logger.warning(f"winget.run returned status {e.response.status_code} for {query!r}")
                raise PackageLookupError(f"winget.run returned status {e.response.status_code}") from e
            except (httpx.HTTPError, ValueError) as e:
                logger.warning(f"winget.run lookup failed for {query!r}: {e}")
                raise PackageLookupError(f"Package lookup failed: {e}") from e

        packages = data.get("Packages") if isinstance(data, dict) else None
        if not isinstance(packages, list):
            raise PackageLookupError("Unexpected winget.run response")

        matches = []
        for package in packages[:limit]:
            package_id = _text(package.get("Id")) if isinstance(package, dict) else ""
            if not package_id:
                continue
            latest = package.get("Latest")
            if not isinstance(latest, dict):
                latest = {}
            matches.append(PackageMatch(
                id=package_id,
                name=_text(latest.get("Name")),
                publisher=_text(latest.get("Publisher")),
            ))
        return matches

    async def resolve(self, name: str) -> Optional[str]:
        """Return the top match's package id, or None."""
        try:
            matches = await self.search(name, limit=1)
        except PackageLookupError:
            return None

        if not matches:
            logger.info(f"No winget package found for {name!r}")
            return None

        logger.info(f"Resolved {name!r} to winget package {matches[0].id}")
        return matches[0].id


def get_package_resolver() -> WingetRunResolver:
    """FastAPI dependency returning the winget.run resolver."""
    return WingetRunResolver()
