"""
Persistence of auth login records.

Each public method of AuthLoginStore runs in its own transaction: either the
whole operation is committed or nothing is. Values are checked against the
column constraints before any SQL is issued, so callers get a
ConstraintViolationError instead of a driver-specific IntegrityError.
"""
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from src.auth_logins.db import get_session_factory, session_scope
from src.auth_logins.errors import (
    ConstraintViolationError,
    DuplicateKeyError,
    RecordNotFoundError,
)
from src.auth_logins.log_config import get_logger
from src.auth_logins.models import (
    BOOLEAN_COLUMNS,
    IMMUTABLE_COLUMNS,
    INTEGER_COLUMNS,
    NON_EMPTY_COLUMNS,
    PROFILE_COLUMNS,
    STRING_COLUMNS,
    TIMESTAMP_COLUMNS,
    AuthLogin,
)
from src.auth_logins.schemas import AuthLoginRecord

logger = get_logger(__name__)

# Every column except the surrogate key, in table order.
DATA_COLUMNS = tuple(c.name for c in AuthLogin.__table__.columns if c.name != "id")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def check_value(column: str, value: Any) -> None:
    """Raise ConstraintViolationError unless value may be stored in column."""
    if column not in DATA_COLUMNS:
        raise ConstraintViolationError(column, "unknown column")
    if value is None:
        raise ConstraintViolationError(column, "must not be null")

    if column in STRING_COLUMNS:
        if not isinstance(value, str):
            raise ConstraintViolationError(column, "must be a string")
        if column in NON_EMPTY_COLUMNS and not value:
            raise ConstraintViolationError(column, "must not be empty")
    elif column in BOOLEAN_COLUMNS:
        if not isinstance(value, bool):
            raise ConstraintViolationError(column, "must be a boolean")
    elif column in INTEGER_COLUMNS:
        # bool is a subclass of int
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConstraintViolationError(column, "must be an integer")
        if value < 0:
            raise ConstraintViolationError(column, "must not be negative")
    elif column in TIMESTAMP_COLUMNS:
        if not isinstance(value, datetime):
            raise ConstraintViolationError(column, "must be a datetime")
        if value.utcoffset() is None:
            raise ConstraintViolationError(column, "must be timezone-aware")


class AuthLoginStore:
    """Create, read and update rows of the auth_logins table."""

    def __init__(
        self,
        session_factory: Optional[sessionmaker] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._session_factory = session_factory if session_factory is not None else get_session_factory()
        self._clock = clock

    def create(self, record: Mapping[str, Any]) -> AuthLoginRecord:
        """Insert a new record and return it with its assigned id."""
        values = self._new_row_values(record, self._clock())
        with session_scope(self._session_factory) as session:
            row = self._insert(session, values)
            result = AuthLoginRecord.model_validate(row)

        logger.info("auth_login_created", user_id=result.user_id, id=result.id)
        return result

    def find_by_user_id(self, user_id: str) -> AuthLoginRecord:
        with session_scope(self._session_factory) as session:
            row = self._get_row(session, user_id)
            return AuthLoginRecord.model_validate(row)

    def list_records(self, offset: int = 0, limit: int = 100) -> List[AuthLoginRecord]:
        """Return records ordered by id."""
        with session_scope(self._session_factory) as session:
            rows = session.execute(
                select(AuthLogin).order_by(AuthLogin.id).offset(offset).limit(limit)
            ).scalars().all()
            return [AuthLoginRecord.model_validate(row) for row in rows]

    def update(self, user_id: str, fields: Mapping[str, Any]) -> AuthLoginRecord:
        """Apply a partial update and bump updated_at."""
        changes = dict(fields)
        for column, value in changes.items():
            if column in IMMUTABLE_COLUMNS:
                raise ConstraintViolationError(column, "cannot be updated")
            check_value(column, value)

        with session_scope(self._session_factory) as session:
            row = self._get_row(session, user_id, for_update=True)
            for column, value in changes.items():
                setattr(row, column, value)
            row.updated_at = self._clock()
            session.flush()
            result = AuthLoginRecord.model_validate(row)

        logger.info("auth_login_updated", user_id=user_id, fields=sorted(changes))
        return result

    def record_login(
        self, user_id: str, ip: str, timestamp: Optional[datetime] = None
    ) -> AuthLoginRecord:
        """Count one more login for user_id, made from ip at timestamp."""
        if timestamp is None:
            timestamp = self._clock()
        check_value("last_ip", ip)
        check_value("last_login", timestamp)

        with session_scope(self._session_factory) as session:
            row = self._get_row(session, user_id, for_update=True)
            self._apply_login(session, row, ip, timestamp)
            result = AuthLoginRecord.model_validate(row)

        logger.info("auth_login_recorded", user_id=user_id, logins_count=result.logins_count)
        return result

    def record_profile_login(
        self, profile: Mapping[str, Any], ip: str, timestamp: Optional[datetime] = None
    ) -> AuthLoginRecord:
        """
        Record a login reported by the identity provider.

        The first login for a user_id creates its record with logins_count 1.
        Later logins refresh the profile fields present in profile and count
        the login as record_login does.
        """
        if timestamp is None:
            timestamp = self._clock()
        profile = dict(profile)
        user_id = profile.get("user_id")
        check_value("user_id", user_id)
        check_value("last_ip", ip)
        check_value("last_login", timestamp)
        for column, value in profile.items():
            if column != "user_id" and column not in PROFILE_COLUMNS:
                raise ConstraintViolationError(column, "is not a profile field")
            check_value(column, value)

        with session_scope(self._session_factory) as session:
            row = session.execute(
                select(AuthLogin).where(AuthLogin.user_id == user_id).with_for_update()
            ).scalar_one_or_none()
            created = row is None
            if created:
                values = {
                    column: False if column in BOOLEAN_COLUMNS else ""
                    for column in PROFILE_COLUMNS
                }
                values.update(profile, last_login=timestamp, last_ip=ip, logins_count=1)
                row = self._insert(session, self._new_row_values(values, self._clock()))
            else:
                for column in PROFILE_COLUMNS:
                    if column in profile:
                        setattr(row, column, profile[column])
                self._apply_login(session, row, ip, timestamp)
            result = AuthLoginRecord.model_validate(row)

        if created:
            logger.info("auth_login_created", user_id=user_id, id=result.id)
        else:
            logger.info("auth_login_recorded", user_id=user_id, logins_count=result.logins_count)
        return result

    def _new_row_values(self, record: Mapping[str, Any], now: datetime) -> Dict[str, Any]:
        values = dict(record)
        for column in ("id", "updated_at"):
            if column in values:
                raise ConstraintViolationError(column, "is assigned by the store")
        for column in values:
            if column not in DATA_COLUMNS:
                raise ConstraintViolationError(column, "unknown column")

        values.setdefault("email_verified", False)
        values.setdefault("phone_verified", False)
        values.setdefault("created_at", now)
        values["updated_at"] = now

        for column in DATA_COLUMNS:
            check_value(column, values.get(column))
        return values

    def _insert(self, session: Session, values: Dict[str, Any]) -> AuthLogin:
        row = AuthLogin(**values)
        session.add(row)
        try:
            session.flush()  # Ensure ID is generated
        except IntegrityError as e:
            raise self._translate_integrity_error(e, values["user_id"]) from e
        return row

    def _get_row(self, session: Session, user_id: str, for_update: bool = False) -> AuthLogin:
        stmt = select(AuthLogin).where(AuthLogin.user_id == user_id)
        if for_update:
            stmt = stmt.with_for_update()
        row = session.execute(stmt).scalar_one_or_none()
        if row is None:
            raise RecordNotFoundError(user_id)
        return row

    def _apply_login(self, session: Session, row: AuthLogin, ip: str, timestamp: datetime) -> None:
        # Increment in SQL so concurrent logins are not lost.
        row.logins_count = AuthLogin.logins_count + 1
        row.last_login = timestamp
        row.last_ip = ip
        row.updated_at = self._clock()
        session.flush()
        session.refresh(row)

    def _translate_integrity_error(self, e: IntegrityError, user_id: str) -> Exception:
        msg = str(e.orig).lower()
        if "user_id" in msg and ("unique" in msg or "duplicate" in msg):
            logger.warning("auth_login_conflict", user_id=user_id)
            return DuplicateKeyError(user_id)
        return ConstraintViolationError(AuthLogin.__tablename__, str(e.orig))
