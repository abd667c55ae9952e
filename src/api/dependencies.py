"""Dependency wiring: which UserRepository backs the service.

The store is chosen once per process from ``USER_STORE``. The in-memory
store is a process-wide singleton, so its data lives as long as the
process does.
"""

import logging
import os

from fastapi import Depends, HTTPException

from adapter.fake.user_repository import FakeUserRepository
from adapter.mongodb.connection import get_mongodb_client, DATABASE_NAME
from adapter.mongodb.user_repository import MongoUserRepository
from port.user_repository import UserRepository
from services.user_service import UserService

logger = logging.getLogger(__name__)

MEMORY_STORE = 'memory'
MONGODB_STORE = 'mongodb'

USER_STORE = os.getenv('USER_STORE', MEMORY_STORE).strip().lower()
SEED_SAMPLE_USERS = os.getenv('SEED_SAMPLE_USERS', 'false').strip().lower() in ('1', 'true', 'yes')

_memory_repo: FakeUserRepository | None = None


def _get_db():
    """Get MongoDB database, raising 503 if unavailable."""
    client = get_mongodb_client()
    if client is None:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return client[DATABASE_NAME]


def get_memory_repo() -> FakeUserRepository:
    global _memory_repo
    if _memory_repo is None:
        _memory_repo = FakeUserRepository.with_sample_data() if SEED_SAMPLE_USERS else FakeUserRepository()
        logger.info("In-memory user store initialised", extra={"seeded": SEED_SAMPLE_USERS})
    return _memory_repo


def get_user_repo() -> UserRepository:
    if USER_STORE == MONGODB_STORE:
        return MongoUserRepository(_get_db())
    if USER_STORE != MEMORY_STORE:
        raise RuntimeError(f"Unknown USER_STORE '{USER_STORE}' (expected 'memory' or 'mongodb')")
    return get_memory_repo()


def get_user_service(repo: UserRepository = Depends(get_user_repo)) -> UserService:
    return UserService(repo)
