from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime, timezone
from enum import Enum

class Role(str, Enum):
    REQUESTER = "requester"
    CSC = "csc"  # Customer service center administrator
    TECHNICIAN = "technician"

# Each role lives in its own collection; usernames are unique per collection
ROLE_COLLECTIONS = {
    Role.REQUESTER: "requesters",
    Role.CSC: "csc_admins",
    Role.TECHNICIAN: "technicians",
}

class PrincipalBase(BaseModel):
    username: str = Field(..., min_length=1)
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

class PrincipalCreate(PrincipalBase):
    password: str = Field(..., min_length=1)

class PrincipalInDB(PrincipalCreate):
    id: str = Field(alias="_id")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Config:
        populate_by_name = True

    def public(self) -> "Principal":
        return Principal(**self.model_dump(exclude={"password"}))

class Principal(PrincipalBase):
    """Principal as exposed outside the identity store (no credential)"""
    id: str
    created_at: datetime

class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

class LoginRequest(BaseModel):
    username: str
    password: str
    role: Role = Role.REQUESTER

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: Role
    principal: Principal
