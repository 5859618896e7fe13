from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Integer, String, false
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from src.auth_logins.db import Base


class UTCDateTime(TypeDecorator):
    """TIMESTAMPTZ column that always stores and returns aware UTC datetimes.

    SQLite has no time zone support, so values are normalized to UTC on the
    way in and tagged as UTC on the way out when the driver drops the offset.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            value = value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class AuthLogin(Base):
    """One authenticated user's profile and login state."""

    __tablename__ = "auth_logins"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    nickname: Mapped[str] = mapped_column(String, nullable=False)
    username: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str] = mapped_column(String, nullable=False)
    email_verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    picture: Mapped[str] = mapped_column(String, nullable=False)
    company: Mapped[str] = mapped_column(String, nullable=False)
    blog: Mapped[str] = mapped_column(String, nullable=False)
    phone: Mapped[str] = mapped_column(String, nullable=False)
    phone_verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    locale: Mapped[str] = mapped_column(String, nullable=False)
    login_provider: Mapped[str] = mapped_column(String, nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    last_login: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    last_ip: Mapped[str] = mapped_column(String, nullable=False)
    logins_count: Mapped[int] = mapped_column(Integer, nullable=False)


# Column groups used when validating values before they reach the database.
STRING_COLUMNS = (
    "user_id",
    "name",
    "nickname",
    "username",
    "email",
    "picture",
    "company",
    "blog",
    "phone",
    "locale",
    "login_provider",
    "last_ip",
)
BOOLEAN_COLUMNS = ("email_verified", "phone_verified")
TIMESTAMP_COLUMNS = ("created_at", "updated_at", "last_login")
INTEGER_COLUMNS = ("logins_count",)

# Columns that may not hold an empty string.
NON_EMPTY_COLUMNS = ("user_id", "email", "login_provider")

# Columns the store assigns or freezes; callers cannot update them.
IMMUTABLE_COLUMNS = ("id", "user_id", "created_at", "updated_at")

# Identity-provider profile fields refreshed on every profile login.
PROFILE_COLUMNS = (
    "name",
    "nickname",
    "username",
    "email",
    "email_verified",
    "picture",
    "company",
    "blog",
    "phone",
    "phone_verified",
    "locale",
    "login_provider",
)
