"""SQLAlchemy ORM models.

``employee_groups`` and ``employee_group_members`` are owned by this service.
The remaining tables are written by the learning, chat and credits services
and are mapped here for read access only.
"""

from datetime import date, datetime
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class OrganizationModel(Base):
    """Customer organization model."""

    __tablename__ = "organizations"

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    profiles: Mapped[list["ProfileModel"]] = relationship(
        "ProfileModel",
        back_populates="organization",
    )
    groups: Mapped[list["EmployeeGroupModel"]] = relationship(
        "EmployeeGroupModel",
        back_populates="organization",
        cascade="all, delete-orphan",
    )


class ProfileModel(Base):
    """User profile model (synced from Supabase auth)."""

    __tablename__ = "profiles"

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    org_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("organizations.id", ondelete="SET NULL"),
        index=True,
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    full_name: Mapped[str | None] = mapped_column(String(200))
    avatar_url: Mapped[str | None] = mapped_column(String(500))
    headline: Mapped[str | None] = mapped_column(String(300))
    role: Mapped[str | None] = mapped_column(String(50))
    membership_status: Mapped[str | None] = mapped_column(String(50))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    organization: Mapped[Optional["OrganizationModel"]] = relationship(
        "OrganizationModel",
        back_populates="profiles",
    )


class EmployeeGroupModel(Base):
    """Employee group model; dynamic groups carry a type and criteria."""

    __tablename__ = "employee_groups"
    __table_args__ = (
        CheckConstraint(
            "(is_dynamic AND dynamic_type IS NOT NULL AND criteria IS NOT NULL) "
            "OR (NOT is_dynamic AND dynamic_type IS NULL AND criteria IS NULL)",
            name="ck_employee_groups_dynamic_fields",
        ),
    )

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    org_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_dynamic: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    dynamic_type: Mapped[str | None] = mapped_column(String(50))
    criteria: Mapped[dict[str, Any] | None] = mapped_column(JSONB(none_as_null=True))
    last_computed_at: Mapped[datetime | None] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    organization: Mapped["OrganizationModel"] = relationship(
        "OrganizationModel",
        back_populates="groups",
    )
    members: Mapped[list["EmployeeGroupMemberModel"]] = relationship(
        "EmployeeGroupMemberModel",
        back_populates="group",
        cascade="all, delete-orphan",
    )


class EmployeeGroupMemberModel(Base):
    """Static group membership model (composite PK on group_id + user_id)."""

    __tablename__ = "employee_group_members"

    group_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("employee_groups.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    added_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    group: Mapped["EmployeeGroupModel"] = relationship(
        "EmployeeGroupModel",
        back_populates="members",
    )
    user: Mapped["ProfileModel"] = relationship("ProfileModel")


# --- Activity tables (read-only) ---


class UserProgressModel(Base):
    """Per-user course progress."""

    __tablename__ = "user_progress"

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    user_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    course_id: Mapped[UUID | None] = mapped_column(PG_UUID(as_uuid=True))
    view_time_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_accessed: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, index=True
    )


class ConversationModel(Base):
    """AI agent conversation."""

    __tablename__ = "conversations"

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    user_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str | None] = mapped_column(String(300))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    messages: Mapped[list["ConversationMessageModel"]] = relationship(
        "ConversationMessageModel",
        back_populates="conversation",
    )


class ConversationMessageModel(Base):
    """Single message within a conversation."""

    __tablename__ = "conversation_messages"

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    conversation_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    conversation: Mapped["ConversationModel"] = relationship(
        "ConversationModel",
        back_populates="messages",
    )


class UserStreakModel(Base):
    """Daily learning streak record."""

    __tablename__ = "user_streaks"

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    user_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    activity_date: Mapped[date] = mapped_column(Date, nullable=False)


class UserCreditsLedgerModel(Base):
    """Learning credit awards."""

    __tablename__ = "user_credits_ledger"

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    user_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    awarded_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class UserCollectionModel(Base):
    """User-owned collection of saved content."""

    __tablename__ = "user_collections"

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    user_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    items: Mapped[list["CollectionItemModel"]] = relationship(
        "CollectionItemModel",
        back_populates="collection",
    )


class CollectionItemModel(Base):
    """Item saved into a user collection."""

    __tablename__ = "collection_items"

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    collection_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("user_collections.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    item_type: Mapped[str] = mapped_column(String(50), nullable=False, default="course")
    item_id: Mapped[UUID | None] = mapped_column(PG_UUID(as_uuid=True))
    added_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    collection: Mapped["UserCollectionModel"] = relationship(
        "UserCollectionModel",
        back_populates="items",
    )
