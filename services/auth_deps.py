"""
Auth dependencies for the service portal
Contains shared authentication dependencies to avoid circular imports
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from motor.motor_asyncio import AsyncIOMotorDatabase
from database.mongodb import get_database
from models.principal import Role
from models.session import ActiveSession
from services.auth_service import decode_access_token
from services.errors import AuthError, NotFoundError
from services.identity_store import IdentityStore
from services.request_repository import SimpleRequestRepository, ServiceRequestRepository

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token")


def get_identity_store(db: AsyncIOMotorDatabase = Depends(get_database)) -> IdentityStore:
    return IdentityStore(db)


def get_simple_requests(db: AsyncIOMotorDatabase = Depends(get_database)) -> SimpleRequestRepository:
    return SimpleRequestRepository(db)


def get_service_requests(db: AsyncIOMotorDatabase = Depends(get_database)) -> ServiceRequestRepository:
    return ServiceRequestRepository(db)


async def get_current_session(
    token: str = Depends(oauth2_scheme),
    identity_store: IdentityStore = Depends(get_identity_store)
) -> ActiveSession:
    """Resolve the bearer token to {principal, role}"""
    credentials_exception = AuthError("Could not validate credentials")

    payload = decode_access_token(token)
    if payload is None:
        raise credentials_exception

    principal_id = payload.get("sub")
    try:
        role = Role(payload.get("role"))
    except ValueError:
        raise credentials_exception
    if principal_id is None:
        raise credentials_exception

    try:
        principal = await identity_store.get_by_id(role, principal_id)
    except NotFoundError:
        raise credentials_exception

    return ActiveSession(principal=principal.public(), role=role)


def require_role(*roles: Role):
    """Dependency factory: 403 unless the session has one of the roles"""
    async def checker(session: ActiveSession = Depends(get_current_session)) -> ActiveSession:
        if session.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not allowed for this role"
            )
        return session
    return checker


require_requester = require_role(Role.REQUESTER)
require_csc = require_role(Role.CSC)
require_technician = require_role(Role.TECHNICIAN)
