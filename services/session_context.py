"""
Session context: who is signed in, and as which role

Two states, Anonymous and Authenticated(principal, role). Credential and
registration failures come back as SessionResult values; only storage
failures raise.

Passwords are compared by plain equality against the stored value so
existing accounts keep working. Hashing is tracked as an open item in
DESIGN.md.
"""

import logging
from typing import Optional

from pydantic import ValidationError

from models.principal import Principal, PrincipalCreate, RegisterRequest, Role
from models.session import SessionErrorCode, SessionMarker, SessionResult
from services.errors import DuplicateUsernameError
from services.identity_store import IdentityStore

logger = logging.getLogger(__name__)


class SessionContext:
    def __init__(self, identity_store: IdentityStore, marker=None):
        self.identity_store = identity_store
        self.marker = marker
        self._principal: Optional[Principal] = None
        self._role: Optional[Role] = None

    @property
    def is_authenticated(self) -> bool:
        return self._principal is not None

    def current_principal(self) -> Optional[Principal]:
        return self._principal

    def current_role(self) -> Optional[Role]:
        return self._role

    def _enter(self, principal: Principal, role: Role):
        self._principal = principal
        self._role = role
        if self.marker is not None:
            self.marker.save(SessionMarker(principal=principal, role=role).model_dump(mode="json"))

    async def authenticate(self, username: str, password: str, role) -> SessionResult:
        try:
            role = Role(role)
        except ValueError:
            return SessionResult.failed(SessionErrorCode.INVALID_CREDENTIALS)

        found = await self.identity_store.find_by_username(role, username)
        if found is None or found.password != password:
            logger.info(f"Failed {role.value} login attempt")
            return SessionResult.failed(SessionErrorCode.INVALID_CREDENTIALS)

        principal = found.public()
        self._enter(principal, role)
        logger.info(f"{role.value} logged in: {principal.username}")
        return SessionResult.ok(principal, role)

    async def register(self, data: RegisterRequest) -> SessionResult:
        """Sign up a requester and sign them in"""
        if await self.identity_store.find_by_username(Role.REQUESTER, data.username):
            return SessionResult.failed(SessionErrorCode.USERNAME_TAKEN)

        try:
            created = await self.identity_store.create_principal(
                Role.REQUESTER, PrincipalCreate(**data.model_dump())
            )
        except DuplicateUsernameError:
            return SessionResult.failed(SessionErrorCode.USERNAME_TAKEN)

        principal = created.public()
        self._enter(principal, Role.REQUESTER)
        return SessionResult.ok(principal, Role.REQUESTER)

    def end_session(self):
        if self._principal is not None:
            logger.info(f"{self._role.value} logged out: {self._principal.username}")
        self._principal = None
        self._role = None
        if self.marker is not None:
            self.marker.clear()

    def restore(self) -> bool:
        """Pick up a persisted session; a corrupt marker is dropped silently"""
        if self.marker is None:
            return False
        data = self.marker.load()
        if data is None:
            self.marker.clear()
            return False
        try:
            saved = SessionMarker.model_validate(data)
        except ValidationError:
            logger.debug("Discarding malformed session marker")
            self.marker.clear()
            return False

        self._principal = saved.principal
        self._role = saved.role
        return True
