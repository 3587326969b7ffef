"""
Gateway models.

Entities: User, ApiKey, ApiKeyHit, ApiQuota, Project, ProjectUser,
ProjectSetting, Service, Cache, ApiLog.

ApiKeyHit and ApiLog are append-only ledgers: the gateway inserts rows and
never updates or deletes them. Keys, quotas, projects and services are
provisioned by administration and only read here.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from sqlalchemy import Column, Enum as SQLEnum, Numeric, Text, UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel


def _utc_now() -> datetime:
    """Timezone-aware UTC now (replaces deprecated datetime.utcnow())."""
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class IntervalUnitEnum(str, Enum):
    """Rolling-window unit for quota rules."""

    SECOND = "second"
    MINUTE = "minute"
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class ApiLogTypeEnum(str, Enum):
    """Audit phase: start of a request, successful finish, or error finish."""

    START = "start"
    FINISH = "finish"
    ERROR = "error"


# ---------------------------------------------------------------------------
# User / ApiKey - Credentials
# ---------------------------------------------------------------------------


class User(SQLModel, table=True):
    __tablename__ = "user"

    id: int | None = Field(default=None, primary_key=True)
    username: str = Field(max_length=255, unique=True, index=True)
    is_enabled: bool = Field(default=True)
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)

    api_keys: list["ApiKey"] = Relationship(back_populates="user")


class ApiKey(SQLModel, table=True):
    __tablename__ = "api_key"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True, ondelete="CASCADE")
    name: str = Field(max_length=255, unique=True, index=True)
    secret: str = Field(max_length=512)
    is_enabled: bool = Field(default=True)
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)

    user: "User" = Relationship(back_populates="api_keys")
    quotas: list["ApiQuota"] = Relationship(back_populates="api_key")


# ---------------------------------------------------------------------------
# ApiKeyHit - Usage ledger counted by quotas
# ---------------------------------------------------------------------------


class ApiKeyHit(SQLModel, table=True):
    __tablename__ = "api_key_hit"

    id: int | None = Field(default=None, primary_key=True)
    api_key_id: int = Field(foreign_key="api_key.id", index=True, ondelete="CASCADE")
    ip_address: str = Field(max_length=64, index=True)
    created_at: datetime = Field(default_factory=_utc_now, index=True)


# ---------------------------------------------------------------------------
# ApiQuota - Usage limits per key
# ---------------------------------------------------------------------------


class ApiQuota(SQLModel, table=True):
    __tablename__ = "api_quota"

    id: int | None = Field(default=None, primary_key=True)
    api_key_id: int = Field(foreign_key="api_key.id", index=True, ondelete="CASCADE")
    val: int = Field(description="Maximum hits allowed inside the window")
    interval_unit: IntervalUnitEnum = Field(
        sa_column=Column(
            SQLEnum(
                IntervalUnitEnum,
                name="intervalunitenum",
                values_callable=lambda x: [e.value for e in x],
            ),
            nullable=False,
        )
    )
    interval_value: int = Field(default=1, description="Window magnitude in units")
    restrict_by_ip: bool = Field(default=False)
    is_enabled: bool = Field(default=True)
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)

    api_key: "ApiKey" = Relationship(back_populates="quotas")


# ---------------------------------------------------------------------------
# Project - Tenant boundary
# ---------------------------------------------------------------------------


class ProjectUser(SQLModel, table=True):
    """Membership edge: user may use a private project."""

    __tablename__ = "project_user"

    project_id: int = Field(
        foreign_key="project.id", primary_key=True, ondelete="CASCADE"
    )
    user_id: int = Field(foreign_key="user.id", primary_key=True, ondelete="CASCADE")


class Project(SQLModel, table=True):
    __tablename__ = "project"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=255, unique=True, index=True)
    is_public: bool = Field(default=False)
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)

    settings: list["ProjectSetting"] = Relationship(
        back_populates="project", cascade_delete=True
    )


class ProjectSetting(SQLModel, table=True):
    """Per-project override, e.g. name='cache_backend' value='memory'."""

    __tablename__ = "project_setting"
    __table_args__ = (UniqueConstraint("project_id", "name"),)

    id: int | None = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="project.id", index=True, ondelete="CASCADE")
    name: str = Field(max_length=128)
    value: str = Field(max_length=512)

    project: "Project" = Relationship(back_populates="settings")


# ---------------------------------------------------------------------------
# Service - Translation provider catalogue (billing)
# ---------------------------------------------------------------------------


class Service(SQLModel, table=True):
    __tablename__ = "service"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=128, unique=True, index=True)
    cost_per_request: Decimal = Field(
        default=Decimal("0"), sa_column=Column(Numeric(12, 6), nullable=False)
    )
    currency_code: str = Field(default="usd", max_length=8)
    is_enabled: bool = Field(default=True)


# ---------------------------------------------------------------------------
# Cache - Durable per-project response cache
# ---------------------------------------------------------------------------


class Cache(SQLModel, table=True):
    __tablename__ = "cache"
    __table_args__ = (UniqueConstraint("project_id", "name"),)

    id: int | None = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="project.id", index=True, ondelete="CASCADE")
    name: str = Field(max_length=255)
    value: str = Field(sa_column=Column(Text, nullable=False))
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)


# ---------------------------------------------------------------------------
# ApiLog - Audit trail
# ---------------------------------------------------------------------------


class ApiLog(SQLModel, table=True):
    __tablename__ = "api_log"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    request_id: uuid.UUID = Field(index=True, description="Pairs start with finish/error")
    api_key_id: int = Field(foreign_key="api_key.id", index=True, ondelete="CASCADE")
    log_type: ApiLogTypeEnum = Field(
        sa_column=Column(
            SQLEnum(
                ApiLogTypeEnum,
                name="apilogtypeenum",
                values_callable=lambda x: [e.value for e in x],
            ),
            nullable=False,
            index=True,
        )
    )
    ip_address: str = Field(max_length=64)
    cost: Decimal = Field(
        default=Decimal("0"), sa_column=Column(Numeric(12, 6), nullable=False)
    )
    currency_code: str = Field(default="usd", max_length=8)
    is_success: bool = Field(default=False)
    cache_key: str | None = Field(default=None, max_length=255)
    message: str | None = Field(default=None, sa_column=Column(Text))
    duration_ms: int | None = Field(default=None, description="Request duration in milliseconds")
    created_at: datetime = Field(default_factory=_utc_now)
