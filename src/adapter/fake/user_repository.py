"""In-memory implementation of UserRepository.

Backs the service when ``USER_STORE=memory`` and doubles as the test fake.
Storage is a plain list scanned linearly, which is fine at this data scale.
"""

import os
import threading
import time
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from domain.model.errors import EmailConflictError, NotFoundError
from domain.model.user import User, normalize_email

DEFAULT_LATENCY = int(os.getenv('MEMORY_STORE_LATENCY_MS', '10')) / 1000


class FakeUserRepository:
    def __init__(self, latency: float = DEFAULT_LATENCY):
        self.latency = latency
        self.store: list[User] = []
        self._next_id = 1
        self._lock = threading.Lock()

    @classmethod
    def with_sample_data(cls, latency: float = DEFAULT_LATENCY) -> "FakeUserRepository":
        """Repository pre-filled with three sample users (next ID is 4)."""
        repo = cls(latency=latency)
        now = datetime.now(timezone.utc)
        samples = [
            ('John', 'Doe', 'john.doe@example.com', 30, 5, True),
            ('Jane', 'Smith', 'jane.smith@example.com', 20, 2, True),
            ('Bob', 'Johnson', 'bob.johnson@example.com', 10, 1, False),
        ]
        for first, last, email, created_days, updated_days, active in samples:
            repo.store.append(User(
                id=repo._next_id,
                first_name=first,
                last_name=last,
                email=email,
                created_at=now - timedelta(days=created_days),
                updated_at=now - timedelta(days=updated_days),
                is_active=active,
            ))
            repo._next_id += 1
        return repo

    def _simulate_io(self) -> None:
        if self.latency > 0:
            time.sleep(self.latency)

    def _find(self, user_id: int) -> User | None:
        for user in self.store:
            if user.id == user_id:
                return user
        return None

    def _email_taken(self, email: str, exclude_id: int | None = None) -> bool:
        key = normalize_email(email)
        return any(
            u.id != exclude_id and normalize_email(u.email) == key
            for u in self.store
        )

    # ── write operations ─────────────────────────────────────

    def add(self, user: User) -> User:
        self._simulate_io()
        email = normalize_email(user.email)
        with self._lock:
            if self._email_taken(email):
                raise EmailConflictError(email)

            now = datetime.now(timezone.utc)
            stored = replace(user, id=self._next_id, email=email, created_at=now, updated_at=now)
            self._next_id += 1
            self.store.append(stored)
            return replace(stored)

    def update(self, user: User) -> User:
        self._simulate_io()
        email = normalize_email(user.email)
        with self._lock:
            existing = self._find(user.id)
            if existing is None:
                raise NotFoundError('User', user.id)
            if self._email_taken(email, exclude_id=user.id):
                raise EmailConflictError(email)

            existing.first_name = user.first_name
            existing.last_name = user.last_name
            existing.email = email
            existing.is_active = user.is_active
            existing.updated_at = datetime.now(timezone.utc)
            return replace(existing)

    def delete(self, user_id: int) -> bool:
        self._simulate_io()
        with self._lock:
            user = self._find(user_id)
            if user is None:
                return False
            self.store.remove(user)
            return True

    # ── read operations ──────────────────────────────────────

    def list_all(self) -> list[User]:
        self._simulate_io()
        with self._lock:
            return [replace(u) for u in self.store]

    def get_by_id(self, user_id: int) -> User | None:
        self._simulate_io()
        with self._lock:
            user = self._find(user_id)
            return replace(user) if user else None

    def get_by_email(self, email: str) -> User | None:
        self._simulate_io()
        key = normalize_email(email)
        with self._lock:
            for user in self.store:
                if normalize_email(user.email) == key:
                    return replace(user)
            return None
