from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


# PUBLIC_INTERFACE
class AuthLoginRecord(BaseModel):
    """A stored auth login, as returned by the store and the API."""
    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Surrogate key assigned by the store")
    user_id: str = Field(..., description="Identity provider subject, e.g. 'auth0|123'")
    name: str
    nickname: str
    username: str
    email: str
    email_verified: bool
    picture: str
    company: str
    blog: str
    phone: str
    phone_verified: bool
    locale: str
    login_provider: str
    created_at: datetime
    updated_at: datetime
    last_login: datetime
    last_ip: str
    logins_count: int


# PUBLIC_INTERFACE
class AuthLoginProfile(BaseModel):
    """Profile fields reported by the identity provider on login."""
    user_id: str = Field(..., min_length=1, description="Identity provider subject")
    name: str = Field("", description="Full name, empty if unknown")
    nickname: str = ""
    username: str = ""
    email: EmailStr = Field(..., description="Email address")
    email_verified: bool = False
    picture: str = Field("", description="Avatar URL")
    company: str = ""
    blog: str = Field("", description="Blog URL")
    phone: str = ""
    phone_verified: bool = False
    locale: str = ""
    login_provider: str = Field(..., min_length=1, description="e.g. 'github', 'google-oauth2'")


# PUBLIC_INTERFACE
class AuthLoginCreate(AuthLoginProfile):
    """Request payload for creating a record directly."""
    created_at: Optional[datetime] = Field(None, description="Defaults to now")
    last_login: datetime = Field(..., description="Time of the login that created the record")
    last_ip: str = Field(..., description="IP address of that login")
    logins_count: int = Field(..., ge=0, description="Logins seen so far")


# PUBLIC_INTERFACE
class AuthLoginUpdate(BaseModel):
    """Partial update; only the fields present in the body are applied."""
    name: Optional[str] = None
    nickname: Optional[str] = None
    username: Optional[str] = None
    email: Optional[EmailStr] = None
    email_verified: Optional[bool] = None
    picture: Optional[str] = None
    company: Optional[str] = None
    blog: Optional[str] = None
    phone: Optional[str] = None
    phone_verified: Optional[bool] = None
    locale: Optional[str] = None
    login_provider: Optional[str] = None
    last_login: Optional[datetime] = None
    last_ip: Optional[str] = None
    logins_count: Optional[int] = Field(None, ge=0)


# PUBLIC_INTERFACE
class LoginEvent(BaseModel):
    """A single successful login for an existing record."""
    ip: str = Field(..., description="Client IP address")
    timestamp: Optional[datetime] = Field(None, description="Defaults to now")


# PUBLIC_INTERFACE
class ProfileLogin(LoginEvent):
    """A login reported together with the identity provider profile."""
    profile: AuthLoginProfile
