# src/accountlink/db/models.py

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from .session import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    # Python-side defaults so the values are on the instance after flush
    # (no refresh round-trip needed under AsyncSession).
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )


class User(TimestampMixin, Base):
    """
    One row per logical human account.

    email is the merge key: a login from a new provider account whose
    resolved email matches an existing User is linked to that User.
    """

    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(320), nullable=False)
    display_name = Column(String(255))
    avatar_url = Column(Text)
    bio = Column(Text)

    auth_providers = relationship(
        "AuthProvider",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (UniqueConstraint("email", name="uq_users_email"),)

    def __repr__(self) -> str:
        return f"User(id={self.id!s}, email={self.email!r})"


class AuthProvider(TimestampMixin, Base):
    """
    Link between one external provider account and one local User.

    Rules:
      - provider: uppercase tag, e.g. "GOOGLE", "GITHUB"
      - provider_user_id: stable id from that provider ('' when none was given)
      - (provider, provider_user_id) is unique whenever the id is non-empty
      - (user_id, provider) is unique: one link per provider per User
    """

    __tablename__ = "auth_providers"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    provider = Column(String(64), nullable=False)
    provider_user_id = Column(String(255), nullable=False, default="")

    # Last email reported by this provider account; may differ from users.email
    provider_email = Column(String(320))

    user = relationship("User", back_populates="auth_providers")

    __table_args__ = (
        UniqueConstraint("user_id", "provider", name="uq_auth_providers_user_provider"),
        Index(
            "uq_auth_providers_provider_user_id",
            "provider",
            "provider_user_id",
            unique=True,
            postgresql_where=provider_user_id != "",
            sqlite_where=provider_user_id != "",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"AuthProvider(provider={self.provider!r}, "
            f"provider_user_id={self.provider_user_id!r}, user_id={self.user_id!s})"
        )
