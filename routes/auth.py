from fastapi import APIRouter, Depends, Form, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from models.principal import LoginRequest, RegisterRequest, Role, Token
from models.session import ActiveSession
from services.auth_deps import get_identity_store, get_current_session
from services.auth_service import create_access_token
from services.identity_store import IdentityStore
from services.session_context import SessionContext
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auth", tags=["authentication"])


@router.post("/signup", response_model=Token)
async def signup(data: RegisterRequest, identity_store: IdentityStore = Depends(get_identity_store)):
    """Create a requester account and sign it in"""
    session = SessionContext(identity_store)
    result = await session.register(data)

    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username already taken"
        )

    access_token = create_access_token(result.principal.id, result.role)
    return Token(access_token=access_token, role=result.role, principal=result.principal)


async def _sign_in(identity_store: IdentityStore, username: str, password: str, role: Role) -> Token:
    session = SessionContext(identity_store)
    result = await session.authenticate(username, password, role)

    if not result.success:
        # Same answer whether the username or the password was wrong
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(result.principal.id, result.role)
    return Token(access_token=access_token, role=result.role, principal=result.principal)


@router.post("/login", response_model=Token)
async def login(credentials: LoginRequest, identity_store: IdentityStore = Depends(get_identity_store)):
    """Login with username, password and role"""
    return await _sign_in(identity_store, credentials.username, credentials.password, credentials.role)


@router.post("/token", response_model=Token)
async def login_form(
    form_data: OAuth2PasswordRequestForm = Depends(),
    role: Role = Form(Role.REQUESTER),
    identity_store: IdentityStore = Depends(get_identity_store)
):
    """OAuth2 password flow (form fields), used by the interactive API docs"""
    return await _sign_in(identity_store, form_data.username, form_data.password, role)


@router.post("/logout")
async def logout(session: ActiveSession = Depends(get_current_session)):
    """Tokens are stateless; the client drops its copy"""
    logger.info(f"{session.role.value} logged out: {session.principal.username}")
    return {"message": "Logged out"}


@router.get("/me", response_model=ActiveSession)
async def get_me(session: ActiveSession = Depends(get_current_session)):
    """Get current principal and role"""
    return session
