from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.dialects.postgresql import UUID
import uuid
from .database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)  # Stored lower-cased
    hashed_password = Column(String(255), nullable=False)  # Bcrypt hash

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    apps = relationship("App", back_populates="owner", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User {self.email}>"


class App(Base):
    """An application a user wants installed by the generated script."""
    __tablename__ = "apps"

    # Integer sequence so that ordering by id is insertion order
    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    owner_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    package_id = Column(String(255), nullable=True)  # winget package id (e.g., "Mozilla.Firefox")
    download_url = Column(Text, nullable=True)  # https only
    install_args = Column(Text, nullable=True)  # Passed through to the installer verbatim

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    owner = relationship("User", back_populates="apps")

    def __repr__(self):
        return f"<App {self.id} {self.name!r}>"
