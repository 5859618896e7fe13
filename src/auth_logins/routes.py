from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.auth_logins.db import get_session_factory, init_db
from src.auth_logins.schemas import (
    AuthLoginCreate,
    AuthLoginRecord,
    AuthLoginUpdate,
    LoginEvent,
    ProfileLogin,
)
from src.auth_logins.security import require_caller
from src.auth_logins.store import AuthLoginStore

router = APIRouter(prefix="/auth-logins", tags=["Auth Logins"], dependencies=[Depends(require_caller)])


def get_store() -> AuthLoginStore:
    sf = get_session_factory()
    if sf is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database not configured. Set DATABASE_URL environment variable.",
        )
    init_db()
    return AuthLoginStore(sf)


StoreDep = Annotated[AuthLoginStore, Depends(get_store)]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=AuthLoginRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Create an auth login record",
    responses={
        409: {"description": "user_id already exists"},
        422: {"description": "Constraint violation"},
    },
)
def create_auth_login(payload: AuthLoginCreate, store: StoreDep) -> AuthLoginRecord:
    """Insert a new record; the store assigns id and updated_at."""
    return store.create(payload.model_dump(exclude_none=True))


# PUBLIC_INTERFACE
@router.get("", response_model=List[AuthLoginRecord], summary="List auth login records")
def list_auth_logins(
    store: StoreDep,
    offset: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> List[AuthLoginRecord]:
    return store.list_records(offset=offset, limit=limit)


# PUBLIC_INTERFACE
@router.post(
    "/logins",
    response_model=AuthLoginRecord,
    summary="Record an identity provider login",
    description="Creates the record on the first login for a user_id, otherwise refreshes the profile and counts the login.",
)
def record_profile_login(payload: ProfileLogin, store: StoreDep) -> AuthLoginRecord:
    """Only the profile fields present in the body are written to an existing record."""
    return store.record_profile_login(
        payload.profile.model_dump(exclude_unset=True), payload.ip, payload.timestamp
    )


# PUBLIC_INTERFACE
@router.get(
    "/{user_id}",
    response_model=AuthLoginRecord,
    summary="Get a record by user_id",
    responses={404: {"description": "No record for user_id"}},
)
def get_auth_login(user_id: str, store: StoreDep) -> AuthLoginRecord:
    return store.find_by_user_id(user_id)


# PUBLIC_INTERFACE
@router.patch(
    "/{user_id}",
    response_model=AuthLoginRecord,
    summary="Update a record",
    responses={404: {"description": "No record for user_id"}, 422: {"description": "Constraint violation"}},
)
def update_auth_login(user_id: str, payload: AuthLoginUpdate, store: StoreDep) -> AuthLoginRecord:
    """Apply the fields present in the body; explicit nulls are rejected."""
    return store.update(user_id, payload.model_dump(exclude_unset=True))


# PUBLIC_INTERFACE
@router.post(
    "/{user_id}/logins",
    response_model=AuthLoginRecord,
    summary="Count a login for an existing record",
    responses={404: {"description": "No record for user_id"}},
)
def record_login(user_id: str, payload: LoginEvent, store: StoreDep) -> AuthLoginRecord:
    return store.record_login(user_id, payload.ip, payload.timestamp)
