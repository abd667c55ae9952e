"""MongoDB implementation of UserRepository.

Documents use the integer user ID as ``_id``. IDs come from an atomic
counter document so they are never reused, even after a delete. Email
uniqueness is enforced by the unique ``idx_users_email`` index.
"""

from datetime import datetime, timezone
from logging import getLogger

from pymongo import ASCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from adapter.mongodb import COUNTERS_COLLECTION_NAME, USERS_COLLECTION_NAME
from domain.model.errors import EmailConflictError, NotFoundError, StorageError
from domain.model.user import MAX_USER_ID, User, normalize_email

logger = getLogger(__name__)


def _now() -> datetime:
    """Current UTC time at the millisecond precision BSON dates keep."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def _as_utc(value: datetime) -> datetime:
    """Stored dates are UTC; a client without tz_aware returns them naive."""
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def _storable_id(user_id: int) -> bool:
    return 0 < user_id <= MAX_USER_ID


class MongoUserRepository:
    def __init__(self, db: Database):
        self.collection = db[USERS_COLLECTION_NAME]
        self.counters = db[COUNTERS_COLLECTION_NAME]

    def ensure_indexes(self) -> bool:
        """Create indexes for users collection."""
        from adapter.mongodb.indexes import ensure_user_indexes

        try:
            return ensure_user_indexes(self.collection)
        except PyMongoError as e:
            logger.error("Failed to create users indexes", extra={"error": str(e)})
            return False

    def _to_domain(self, doc: dict) -> User:
        """Convert MongoDB document to User domain model."""
        return User(
            id=doc['_id'],
            first_name=doc['first_name'],
            last_name=doc['last_name'],
            email=doc['email'],
            created_at=_as_utc(doc['created_at']),
            updated_at=_as_utc(doc['updated_at']),
            is_active=doc.get('is_active', True),
        )

    def _next_id(self) -> int:
        counter = self.counters.find_one_and_update(
            {'_id': USERS_COLLECTION_NAME},
            {'$inc': {'seq': 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return counter['seq']

    # ── write operations ─────────────────────────────────────

    def add(self, user: User) -> User:
        """Insert a new user and return it with its assigned ID."""
        email = normalize_email(user.email)
        try:
            user_id = self._next_id()
            now = _now()
            user_doc = {
                '_id': user_id,
                'first_name': user.first_name,
                'last_name': user.last_name,
                'email': email,
                'created_at': now,
                'updated_at': now,
                'is_active': user.is_active,
            }
            self.collection.insert_one(user_doc)
        except DuplicateKeyError:
            logger.warning("User creation failed: email already exists", extra={"email": email})
            raise EmailConflictError(email)
        except PyMongoError as e:
            logger.error("Failed to create user", extra={"email": email, "error": str(e)})
            raise StorageError("Failed to create user") from e

        logger.info("User created", extra={"userId": user_id, "email": email})
        return self._to_domain(user_doc)

    def update(self, user: User) -> User:
        """Overwrite mutable fields of an existing user."""
        if not _storable_id(user.id):
            raise NotFoundError('User', user.id)
        email = normalize_email(user.email)
        try:
            doc = self.collection.find_one_and_update(
                {'_id': user.id},
                {'$set': {
                    'first_name': user.first_name,
                    'last_name': user.last_name,
                    'email': email,
                    'is_active': user.is_active,
                    'updated_at': _now(),
                }},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            logger.warning("User update failed: email already exists", extra={"userId": user.id, "email": email})
            raise EmailConflictError(email)
        except PyMongoError as e:
            logger.error("Failed to update user", extra={"userId": user.id, "error": str(e)})
            raise StorageError("Failed to update user") from e

        if doc is None:
            raise NotFoundError('User', user.id)
        return self._to_domain(doc)

    def delete(self, user_id: int) -> bool:
        """Hard-delete a user. Return True if a document was removed."""
        if not _storable_id(user_id):
            return False
        try:
            result = self.collection.delete_one({'_id': user_id})
        except PyMongoError as e:
            logger.error("Failed to delete user", extra={"userId": user_id, "error": str(e)})
            raise StorageError("Failed to delete user") from e
        return result.deleted_count > 0

    # ── read operations ──────────────────────────────────────

    def list_all(self) -> list[User]:
        """Return all users sorted by last name, then first name."""
        try:
            cursor = self.collection.find({}).sort([('last_name', ASCENDING), ('first_name', ASCENDING)])
            return [self._to_domain(doc) for doc in cursor]
        except PyMongoError as e:
            logger.error("Failed to list users", extra={"error": str(e)})
            raise StorageError("Failed to list users") from e

    def get_by_id(self, user_id: int) -> User | None:
        """Find a user by ID. Return User or None if not found."""
        if not _storable_id(user_id):
            return None
        try:
            doc = self.collection.find_one({'_id': user_id})
        except PyMongoError as e:
            logger.error("Failed to get user by ID", extra={"userId": user_id, "error": str(e)})
            raise StorageError("Failed to get user") from e
        return self._to_domain(doc) if doc else None

    def get_by_email(self, email: str) -> User | None:
        """Find a user by email. Stored emails are normalized, so this is case-insensitive."""
        key = normalize_email(email)
        try:
            doc = self.collection.find_one({'email': key})
        except PyMongoError as e:
            logger.error("Failed to get user by email", extra={"email": key, "error": str(e)})
            raise StorageError("Failed to get user") from e
        return self._to_domain(doc) if doc else None
