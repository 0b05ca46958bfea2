"""
Pydantic schemas for the SetupForMe API.
"""
from typing import Optional
import uuid
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, AliasChoices


# ============================================================================
# App Schemas
# ============================================================================

class AppDraft(BaseModel):
    """
    Schema for creating or fully replacing an app.

    Every field is optional at the schema level so that missing or blank
    values reach the registry and are rejected there with a validation error.
    camelCase and legacy field names are accepted as input aliases.
    """
    name: Optional[str] = Field(None, description="Display name of the application")
    package_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("package_id", "packageId", "winget_id"),
        description="winget package id (e.g., 'Mozilla.Firefox')",
    )
    download_url: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("download_url", "downloadUrl"),
        description="https URL of an installer",
    )
    install_args: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("install_args", "installArgs", "args"),
        description="Extra arguments passed to the installer",
    )


class AppRead(BaseModel):
    """Schema for reading app data."""
    id: int
    owner_id: uuid.UUID
    name: str
    package_id: Optional[str] = None
    download_url: Optional[str] = None
    install_args: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============================================================================
# Script Schemas
# ============================================================================

class ScriptData(BaseModel):
    script: str


class ScriptResponse(BaseModel):
    """Envelope for the generated installation script."""
    message: str
    data: ScriptData


# ============================================================================
# Auth Schemas
# ============================================================================

class Credentials(BaseModel):
    """Schema for signup and login."""
    email: EmailStr
    password: str


class UserRead(BaseModel):
    id: uuid.UUID
    email: str

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    token: str
    user: UserRead


# ============================================================================
# Package Search Schemas
# ============================================================================

class PackageMatch(BaseModel):
    """A single winget.run search hit."""
    id: str
    name: str = ""
    publisher: str = ""
