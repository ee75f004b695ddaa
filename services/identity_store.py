"""
Identity store: requesters, CSC admins and technicians

Three disjoint collections, one per role. Lookups are always scoped by
role, so the same username may exist once in each collection.
"""

import logging
import uuid
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

from models.principal import Role, ROLE_COLLECTIONS, PrincipalCreate, PrincipalInDB
from services.errors import DuplicateUsernameError, NotFoundError, StorageError

logger = logging.getLogger(__name__)

# Bootstrap principals, one per role, so a fresh install is usable
DEFAULT_PRINCIPALS = {
    Role.CSC: {
        "username": "csc_admin",
        "password": "admin123",
        "email": "csc@company.com",
        "first_name": "CSC",
        "last_name": "Administrator",
    },
    Role.TECHNICIAN: {
        "username": "tech_admin",
        "password": "tech123",
        "email": "tech@company.com",
        "first_name": "Lab",
        "last_name": "Technician",
    },
    Role.REQUESTER: {
        "username": "testuser",
        "password": "test123",
        "email": "test@example.com",
        "first_name": "Test",
        "last_name": "User",
    },
}


class IdentityStore:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    def _collection(self, role: Role):
        return self.db[ROLE_COLLECTIONS[Role(role)]]

    async def create_principal(self, role: Role, data: PrincipalCreate) -> PrincipalInDB:
        """Store a new principal under its role; username unique per role"""
        role = Role(role)
        collection = self._collection(role)

        try:
            if await collection.find_one({"username": data.username}):
                raise DuplicateUsernameError(role.value, data.username)

            principal = PrincipalInDB(_id=str(uuid.uuid4()), **data.model_dump())
            await collection.insert_one(principal.model_dump(by_alias=True))
        except DuplicateKeyError:
            # Lost a race against another insert of the same username
            raise DuplicateUsernameError(role.value, data.username)
        except PyMongoError as e:
            logger.error(f"Failed to create {role.value} '{data.username}': {e}")
            raise StorageError("create_principal", e)

        logger.info(f"New {role.value} created: {principal.username}")
        return principal

    async def find_by_username(self, role: Role, username: str) -> Optional[PrincipalInDB]:
        """Exact, case-sensitive lookup inside one role collection"""
        try:
            doc = await self._collection(role).find_one({"username": username})
        except PyMongoError as e:
            logger.error(f"Principal lookup failed: {e}")
            raise StorageError("find_by_username", e)
        return PrincipalInDB(**doc) if doc else None

    async def get_by_id(self, role: Role, principal_id: str) -> PrincipalInDB:
        try:
            doc = await self._collection(role).find_one({"_id": principal_id})
        except PyMongoError as e:
            logger.error(f"Principal lookup failed: {e}")
            raise StorageError("get_by_id", e)
        if doc is None:
            raise NotFoundError("Principal", principal_id)
        return PrincipalInDB(**doc)

    async def list_all(self, role: Role) -> List[PrincipalInDB]:
        principals = []
        try:
            async for doc in self._collection(role).find({}):
                principals.append(PrincipalInDB(**doc))
        except PyMongoError as e:
            logger.error(f"Listing {Role(role).value} principals failed: {e}")
            raise StorageError("list_all", e)
        return principals

    async def seed_defaults(self) -> List[Role]:
        """Insert the default principal for every empty role collection"""
        seeded = []
        for role, data in DEFAULT_PRINCIPALS.items():
            if await self._collection(role).count_documents({}) > 0:
                continue
            await self.create_principal(role, PrincipalCreate(**data))
            seeded.append(role)

        if seeded:
            logger.info(f"Seeded default principals for: {', '.join(r.value for r in seeded)}")
        return seeded
