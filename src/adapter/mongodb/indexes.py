"""MongoDB index management for the users collection.

Indexes are declared once in ``USER_INDEXES`` and reconciled at startup:
missing ones are created, ones whose name or key spec drifted are dropped
and recreated.
"""

from logging import getLogger

from pymongo.errors import PyMongoError

logger = getLogger(__name__)

# (name, keys, options)
USER_INDEXES = [
    ('idx_users_email', [('email', 1)], {'unique': True}),
    ('idx_users_name', [('last_name', 1), ('first_name', 1)], {}),
]


def create_index_safe(collection, keys: list, name: str, **kwargs) -> bool:
    """Create an index, replacing any index that conflicts with it.

    A conflict is an index with the same name but other keys, or the same
    keys under another name (rename). Both are dropped before creating.
    """
    wanted = dict(keys)
    for idx_name, idx_info in collection.index_information().items():
        if idx_name == '_id_':
            continue
        same_name = idx_name == name
        same_keys = dict(idx_info.get('key', [])) == wanted
        if same_name and same_keys and bool(idx_info.get('unique')) == bool(kwargs.get('unique')):
            return True
        if same_name or same_keys:
            logger.warning("Dropping conflicting index", extra={"index": idx_name, "wanted": name})
            collection.drop_index(idx_name)

    try:
        collection.create_index(keys, name=name, **kwargs)
    except PyMongoError as e:
        logger.error("Failed to create index", extra={"index": name, "error": str(e)})
        return False
    logger.info("Created index", extra={"index": name})
    return True


def ensure_user_indexes(collection) -> bool:
    """Reconcile every index in ``USER_INDEXES``. Return True if all exist."""
    results = [create_index_safe(collection, keys, name, **opts) for name, keys, opts in USER_INDEXES]
    return all(results)
