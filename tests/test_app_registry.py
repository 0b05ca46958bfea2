"""
Tests for the application registry.

This module tests:
- Draft validation (name, URL scheme/host, id-or-url rule)
- Auto-resolution of package ids on create
- Owner-only update/delete
- Storage failure handling
- Script generation from the registry
"""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.exc import OperationalError

from setupforme.models import App
from setupforme.schemas import AppDraft
from setupforme.services.app_registry import AppRegistry, is_valid_download_url, validate_draft
from setupforme.services.errors import (
    AuthorizationError,
    DependencyError,
    NotFoundError,
    ValidationError,
)


class TestValidation:
    """Tests for validate_draft() and is_valid_download_url()."""

    @pytest.mark.parametrize("url", [
        "https://example.com/setup.exe",
        "https://example.com",
        "https://user@downloads.example.com:8443/a/b.msi?x=1",
    ])
    def test_valid_urls(self, url):
        assert is_valid_download_url(url) is True

    @pytest.mark.parametrize("url", [
        "http://example.com/x",
        "ftp://example.com/x.exe",
        "https:///setup.exe",
        "example.com/setup.exe",
        "/setup.exe",
        "https://[::1",
        "javascript:alert(1)",
    ])
    def test_invalid_urls(self, url):
        assert is_valid_download_url(url) is False

    def test_fields_are_trimmed_and_blanks_dropped(self):
        values = validate_draft(AppDraft(
            name="  Firefox  ", package_id="  ", download_url=" https://example.com/f.exe ", install_args=""
        ))

        assert values.name == "Firefox"
        assert values.package_id is None
        assert values.download_url == "https://example.com/f.exe"
        assert values.install_args is None

    @pytest.mark.parametrize("name", [None, "", "   ", "\t\n"])
    def test_missing_name_rejected(self, name):
        with pytest.raises(ValidationError, match="name is required"):
            validate_draft(AppDraft(name=name, package_id="Foo.Bar"))

    def test_aliases_accepted(self):
        draft = AppDraft.model_validate({
            "name": "Tool", "packageId": "A.B", "downloadUrl": "https://x.test/a.exe", "installArgs": "/S"
        })
        assert draft.package_id == "A.B"
        assert draft.download_url == "https://x.test/a.exe"
        assert draft.install_args == "/S"

        legacy = AppDraft.model_validate({"name": "Tool", "winget_id": "C.D", "args": "--silent"})
        assert legacy.package_id == "C.D"
        assert legacy.install_args == "--silent"

    @pytest.mark.parametrize("field", ["name", "package_id"])
    def test_values_longer_than_column_rejected(self, field):
        limit = App.__table__.c[field].type.length
        fields = {"name": "Firefox", "package_id": "Mozilla.Firefox", field: "x" * (limit + 1)}

        with pytest.raises(ValidationError, match=f"{field} must be at most {limit}"):
            validate_draft(AppDraft(**fields))

    def test_values_at_column_limit_accepted(self):
        limit = App.__table__.c.name.type.length
        values = validate_draft(AppDraft(name="n" * limit, package_id="p" * limit))

        assert len(values.name) == limit
        assert len(values.package_id) == limit

    def test_length_checked_after_trimming(self):
        limit = App.__table__.c.name.type.length
        values = validate_draft(AppDraft(name="  " + "n" * limit + "  ", package_id="Foo.Bar"))

        assert len(values.name) == limit


class TestCreate:
    """Tests for AppRegistry.create()."""

    @pytest.mark.asyncio
    async def test_create_with_package_id(self, mock_db, mock_resolver, identity):
        registry = AppRegistry(mock_db, mock_resolver)

        app = await registry.create(identity, AppDraft(name="Firefox", package_id="Mozilla.Firefox"))

        assert app.owner_id == identity.user_id
        assert app.package_id == "Mozilla.Firefox"
        mock_db.add.assert_called_once_with(app)
        mock_db.commit.assert_awaited_once()
        mock_resolver.resolve.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_with_download_url(self, mock_db, mock_resolver, identity):
        registry = AppRegistry(mock_db, mock_resolver)

        app = await registry.create(identity, AppDraft(
            name="Tool", download_url="https://example.com/setup.exe", install_args="/S"
        ))

        assert app.package_id is None
        assert app.download_url == "https://example.com/setup.exe"
        assert app.install_args == "/S"
        mock_resolver.resolve.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_name_rejected_regardless_of_other_fields(self, mock_db, mock_resolver, identity):
        registry = AppRegistry(mock_db, mock_resolver)

        with pytest.raises(ValidationError):
            await registry.create(identity, AppDraft(
                name=" ", package_id="Foo.Bar", download_url="https://example.com/a.exe"
            ))

        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_insecure_url_rejected(self, mock_db, mock_resolver, identity):
        registry = AppRegistry(mock_db, mock_resolver)

        with pytest.raises(ValidationError, match="Invalid download URL"):
            await registry.create(identity, AppDraft(name="X", download_url="http://example.com/x"))

        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_auto_resolves_package_id(self, mock_db, mock_resolver, identity):
        mock_resolver.resolve.return_value = "Mozilla.Firefox"
        registry = AppRegistry(mock_db, mock_resolver)

        app = await registry.create(identity, AppDraft(name="Firefox"))

        assert app.package_id == "Mozilla.Firefox"
        mock_resolver.resolve.assert_awaited_once_with("Firefox")

    @pytest.mark.asyncio
    async def test_auto_resolve_not_found_rejected(self, mock_db, mock_resolver, identity):
        registry = AppRegistry(mock_db, mock_resolver)

        with pytest.raises(ValidationError, match="auto-resolve failed"):
            await registry.create(identity, AppDraft(name="Nonexistent Thing"))

        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_over_long_resolved_id_rejected(self, mock_db, mock_resolver, identity):
        mock_resolver.resolve.return_value = "x" * 300
        registry = AppRegistry(mock_db, mock_resolver)

        with pytest.raises(ValidationError, match="package_id must be at most"):
            await registry.create(identity, AppDraft(name="Firefox"))

        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_auto_resolve_error_treated_as_not_found(self, mock_db, mock_resolver, identity):
        mock_resolver.resolve.side_effect = RuntimeError("network down")
        registry = AppRegistry(mock_db, mock_resolver)

        with pytest.raises(ValidationError):
            await registry.create(identity, AppDraft(name="Firefox"))

    @pytest.mark.asyncio
    async def test_auto_resolve_timeout_treated_as_not_found(self, mock_db, identity):
        async def slow_resolve(name):
            await asyncio.sleep(5)
            return "Too.Late"

        resolver = MagicMock()
        resolver.resolve = slow_resolve
        registry = AppRegistry(mock_db, resolver)
        registry.resolve_timeout = 0.01

        with pytest.raises(ValidationError):
            await registry.create(identity, AppDraft(name="Firefox"))

    @pytest.mark.asyncio
    async def test_blank_resolution_treated_as_not_found(self, mock_db, mock_resolver, identity):
        mock_resolver.resolve.return_value = "   "
        registry = AppRegistry(mock_db, mock_resolver)

        with pytest.raises(ValidationError):
            await registry.create(identity, AppDraft(name="Firefox"))

    @pytest.mark.asyncio
    async def test_no_resolver_configured(self, mock_db, identity):
        registry = AppRegistry(mock_db)

        with pytest.raises(ValidationError):
            await registry.create(identity, AppDraft(name="Firefox"))

    @pytest.mark.asyncio
    async def test_storage_failure(self, mock_db, mock_resolver, identity):
        mock_db.commit.side_effect = OperationalError("INSERT", {}, Exception("connection lost"))
        registry = AppRegistry(mock_db, mock_resolver)

        with pytest.raises(DependencyError):
            await registry.create(identity, AppDraft(name="Firefox", package_id="Mozilla.Firefox"))

        mock_db.rollback.assert_awaited_once()


class TestUpdate:
    """Tests for AppRegistry.update()."""

    @pytest.mark.asyncio
    async def test_full_replace(self, mock_db, mock_resolver, identity, make_app, query_result):
        existing = make_app(app_id=7, install_args="--old")
        mock_db.execute.return_value = query_result(one=existing)
        registry = AppRegistry(mock_db, mock_resolver)

        app = await registry.update(identity, 7, AppDraft(
            name="Firefox ESR", download_url="https://example.com/ff.exe"
        ))

        assert app is existing
        assert app.name == "Firefox ESR"
        assert app.package_id is None
        assert app.download_url == "https://example.com/ff.exe"
        assert app.install_args is None
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_not_found(self, mock_db, mock_resolver, identity, query_result):
        mock_db.execute.return_value = query_result(one=None)
        registry = AppRegistry(mock_db, mock_resolver)

        with pytest.raises(NotFoundError):
            await registry.update(identity, 99, AppDraft(name="X", package_id="X.X"))

    @pytest.mark.asyncio
    async def test_non_owner_rejected_and_record_unchanged(
        self, mock_db, mock_resolver, identity, other_identity, make_app, query_result
    ):
        existing = make_app(app_id=7, name="Firefox", package_id="Mozilla.Firefox")
        mock_db.execute.return_value = query_result(one=existing)
        registry = AppRegistry(mock_db, mock_resolver)

        with pytest.raises(AuthorizationError):
            await registry.update(other_identity, 7, AppDraft(name="Hijacked", package_id="Evil.Pkg"))

        assert existing.name == "Firefox"
        assert existing.package_id == "Mozilla.Firefox"
        assert existing.owner_id == identity.user_id
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_neither_id_nor_url_rejected_without_lookup(
        self, mock_db, mock_resolver, identity, make_app, query_result
    ):
        mock_db.execute.return_value = query_result(one=make_app())
        mock_resolver.resolve.return_value = "Mozilla.Firefox"
        registry = AppRegistry(mock_db, mock_resolver)

        with pytest.raises(ValidationError):
            await registry.update(identity, 1, AppDraft(name="Firefox"))

        mock_resolver.resolve.assert_not_awaited()
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_url_rejected(self, mock_db, mock_resolver, identity, make_app, query_result):
        existing = make_app()
        mock_db.execute.return_value = query_result(one=existing)
        registry = AppRegistry(mock_db, mock_resolver)

        with pytest.raises(ValidationError):
            await registry.update(identity, 1, AppDraft(name="Firefox", download_url="http://example.com/x"))

        assert existing.download_url is None
        mock_db.commit.assert_not_awaited()


class TestDelete:
    """Tests for AppRegistry.delete()."""

    @pytest.mark.asyncio
    async def test_delete_own_app(self, mock_db, mock_resolver, identity, make_app, query_result):
        existing = make_app(app_id=3)
        mock_db.execute.return_value = query_result(one=existing)
        registry = AppRegistry(mock_db, mock_resolver)

        await registry.delete(identity, 3)

        mock_db.delete.assert_awaited_once_with(existing)
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_non_owner_rejected(
        self, mock_db, mock_resolver, other_identity, make_app, query_result
    ):
        mock_db.execute.return_value = query_result(one=make_app(app_id=3))
        registry = AppRegistry(mock_db, mock_resolver)

        with pytest.raises(AuthorizationError):
            await registry.delete(other_identity, 3)

        mock_db.delete.assert_not_awaited()
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_not_found(self, mock_db, mock_resolver, identity, query_result):
        mock_db.execute.return_value = query_result(one=None)
        registry = AppRegistry(mock_db, mock_resolver)

        with pytest.raises(NotFoundError):
            await registry.delete(identity, 3)


class TestListAndScript:
    """Tests for listing and script generation."""

    @pytest.mark.asyncio
    async def test_list_by_owner(self, mock_db, mock_resolver, identity, make_app, query_result):
        apps = [make_app(app_id=1), make_app(app_id=2, name="Git", package_id="Git.Git")]
        mock_db.execute.return_value = query_result(rows=apps)
        registry = AppRegistry(mock_db, mock_resolver)

        result = await registry.list_by_owner(identity)

        assert result == apps
        mock_db.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_list_empty(self, mock_db, mock_resolver, identity, query_result):
        mock_db.execute.return_value = query_result(rows=[])
        registry = AppRegistry(mock_db, mock_resolver)

        assert await registry.list_by_owner(identity) == []

    @pytest.mark.asyncio
    async def test_list_storage_failure(self, mock_db, mock_resolver, identity):
        mock_db.execute.side_effect = OperationalError("SELECT", {}, Exception("connection lost"))
        registry = AppRegistry(mock_db, mock_resolver)

        with pytest.raises(DependencyError):
            await registry.list_by_owner(identity)

    @pytest.mark.asyncio
    async def test_generate_script_uses_fetch_order(
        self, mock_db, mock_resolver, identity, make_app, query_result
    ):
        apps = [
            make_app(app_id=9, name="Zeta", package_id="Z.Z"),
            make_app(app_id=2, name="Alpha", package_id=None, download_url="https://example.com/a.exe"),
        ]
        mock_db.execute.return_value = query_result(rows=apps)
        registry = AppRegistry(mock_db, mock_resolver)

        script = await registry.generate_script(identity)

        assert script.index("# App 1: Zeta") < script.index("# App 2: Alpha")
        assert "-FileName 'a.exe'" in script
        assert "Installation complete!" in script

    @pytest.mark.asyncio
    async def test_generate_script_no_apps(self, mock_db, mock_resolver, identity, query_result):
        mock_db.execute.return_value = query_result(rows=[])
        registry = AppRegistry(mock_db, mock_resolver)

        script = await registry.generate_script(identity)

        assert "No applications to install." in script
