from pydantic import BaseModel
from typing import Optional
from enum import Enum

from models.principal import Principal, Role

class SessionErrorCode(str, Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    USERNAME_TAKEN = "username_taken"

class SessionResult(BaseModel):
    """Outcome of authenticate/register; failures are values, not exceptions"""
    success: bool
    principal: Optional[Principal] = None
    role: Optional[Role] = None
    error: Optional[SessionErrorCode] = None

    @classmethod
    def ok(cls, principal: Principal, role: Role) -> "SessionResult":
        return cls(success=True, principal=principal, role=role)

    @classmethod
    def failed(cls, error: SessionErrorCode) -> "SessionResult":
        return cls(success=False, error=error)

class SessionMarker(BaseModel):
    """Serialized form of an authenticated session"""
    principal: Principal
    role: Role

class ActiveSession(SessionMarker):
    """Session resolved from a bearer token for one HTTP request"""

    @property
    def principal_id(self) -> str:
        return self.principal.id
