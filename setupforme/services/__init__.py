"""
Services Module

Key Submodules:
- script_generator: PowerShell installation script generation
- quoting: PowerShell literal quoting used by the generator
- app_registry: Owner-scoped application records and their validation
- package_resolver: winget.run package lookup
- users: Signup and login

Usage:
    from setupforme.services import AppRegistry, InstallScriptGenerator
"""

from .app_registry import AppRegistry, validate_draft, is_valid_download_url
from .errors import (
    SetupForMeError,
    ValidationError,
    AuthorizationError,
    NotFoundError,
    ConflictError,
    DependencyError,
)
from .package_resolver import PackageResolver, WingetRunResolver, get_package_resolver
from .quoting import quote_literal
from .script_generator import InstallScriptGenerator

__all__ = [
    # Registry
    "AppRegistry",
    "validate_draft",
    "is_valid_download_url",
    # Errors
    "SetupForMeError",
    "ValidationError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
    "DependencyError",
    # Package lookup
    "PackageResolver",
    "WingetRunResolver",
    "get_package_resolver",
    # Script generation
    "quote_literal",
    "InstallScriptGenerator",
]
