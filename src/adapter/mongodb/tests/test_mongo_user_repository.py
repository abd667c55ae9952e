"""Tests for MongoUserRepository against mocked collections."""

import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import bson
from bson.codec_options import CodecOptions
from pymongo.errors import DuplicateKeyError, PyMongoError

from adapter.mongodb import COUNTERS_COLLECTION_NAME, USERS_COLLECTION_NAME, connection
from adapter.mongodb.user_repository import MongoUserRepository
from domain.model.errors import EmailConflictError, NotFoundError, StorageError
from domain.model.user import MAX_USER_ID, User, UserInput
from services.user_service import UserService


NOW = datetime(2026, 1, 23, 12, 0, 0, tzinfo=timezone.utc)


def _doc(**overrides) -> dict:
    doc = {
        '_id': 1,
        'first_name': 'Ada',
        'last_name': 'Lovelace',
        'email': 'ada@example.com',
        'created_at': NOW,
        'updated_at': NOW,
        'is_active': True,
    }
    doc.update(overrides)
    return doc


class MongoRepoTestCase(unittest.TestCase):

    def setUp(self):
        self.users = MagicMock()
        self.counters = MagicMock()
        collections = {
            USERS_COLLECTION_NAME: self.users,
            COUNTERS_COLLECTION_NAME: self.counters,
        }
        db = MagicMock()
        db.__getitem__.side_effect = collections.__getitem__
        self.repo = MongoUserRepository(db)


class TestAdd(MongoRepoTestCase):

    def test_add_uses_counter_and_normalizes_email(self):
        self.counters.find_one_and_update.return_value = {'_id': 'users', 'seq': 7}

        user = self.repo.add(User.new('Ada', 'Lovelace', ' ADA@Example.com '))

        self.assertEqual(user.id, 7)
        self.assertEqual(user.email, 'ada@example.com')
        self.assertEqual(user.created_at, user.updated_at)
        inserted = self.users.insert_one.call_args[0][0]
        self.assertEqual(inserted['_id'], 7)
        self.assertEqual(inserted['email'], 'ada@example.com')
        self.assertTrue(inserted['is_active'])
        self.assertEqual(inserted['created_at'].microsecond % 1000, 0)
        counter_filter, counter_update = self.counters.find_one_and_update.call_args[0]
        self.assertEqual(counter_filter, {'_id': USERS_COLLECTION_NAME})
        self.assertEqual(counter_update, {'$inc': {'seq': 1}})

    def test_add_duplicate_key_raises_conflict(self):
        self.counters.find_one_and_update.return_value = {'seq': 2}
        self.users.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key error")

        with self.assertRaises(EmailConflictError) as ctx:
            self.repo.add(User.new('Ada', 'Lovelace', 'ada@example.com'))
        self.assertEqual(ctx.exception.email, 'ada@example.com')

    def test_add_driver_error_raises_storage_error(self):
        self.counters.find_one_and_update.side_effect = PyMongoError("connection refused")

        with self.assertRaises(StorageError):
            self.repo.add(User.new('Ada', 'Lovelace', 'ada@example.com'))
        self.users.insert_one.assert_not_called()


class TestReads(MongoRepoTestCase):

    def test_get_by_id_found(self):
        self.users.find_one.return_value = _doc()

        user = self.repo.get_by_id(1)

        self.assertEqual(user.id, 1)
        self.assertEqual(user.first_name, 'Ada')
        self.users.find_one.assert_called_once_with({'_id': 1})

    def test_get_by_id_not_found(self):
        self.users.find_one.return_value = None

        self.assertIsNone(self.repo.get_by_id(999))

    def test_get_by_id_driver_error(self):
        self.users.find_one.side_effect = PyMongoError("timeout")

        with self.assertRaises(StorageError):
            self.repo.get_by_id(1)

    def test_get_by_email_queries_normalized_value(self):
        self.users.find_one.return_value = _doc()

        user = self.repo.get_by_email('ADA@example.COM')

        self.assertEqual(user.email, 'ada@example.com')
        self.users.find_one.assert_called_once_with({'email': 'ada@example.com'})

    def test_list_all_sorted_by_last_then_first_name(self):
        self.users.find.return_value.sort.return_value = [
            _doc(_id=2, first_name='Grace', last_name='Hopper', email='grace@example.com'),
            _doc(),
        ]

        users = self.repo.list_all()

        self.assertEqual([u.id for u in users], [2, 1])
        self.users.find.return_value.sort.assert_called_once_with([('last_name', 1), ('first_name', 1)])

    def test_list_all_empty(self):
        self.users.find.return_value.sort.return_value = []

        self.assertEqual(self.repo.list_all(), [])


class TestUpdate(MongoRepoTestCase):

    def test_update_returns_stored_document(self):
        self.users.find_one_and_update.return_value = _doc(first_name='Augusta', updated_at=NOW.replace(hour=13))

        user = User(id=1, first_name='Augusta', last_name='Lovelace', email='Ada@Example.com', created_at=NOW)
        updated = self.repo.update(user)

        self.assertEqual(updated.first_name, 'Augusta')
        update_doc = self.users.find_one_and_update.call_args[0][1]['$set']
        self.assertEqual(update_doc['email'], 'ada@example.com')
        self.assertIn('updated_at', update_doc)
        self.assertNotIn('created_at', update_doc)

    def test_update_missing_raises_not_found(self):
        self.users.find_one_and_update.return_value = None

        with self.assertRaises(NotFoundError):
            self.repo.update(User(id=999, first_name='X', last_name='Y', email='x@example.com'))

    def test_update_duplicate_email_raises_conflict(self):
        self.users.find_one_and_update.side_effect = DuplicateKeyError("E11000 duplicate key error")

        with self.assertRaises(EmailConflictError):
            self.repo.update(User(id=1, first_name='X', last_name='Y', email='taken@example.com'))


class TestDelete(MongoRepoTestCase):

    def test_delete_existing(self):
        self.users.delete_one.return_value.deleted_count = 1

        self.assertTrue(self.repo.delete(1))
        self.users.delete_one.assert_called_once_with({'_id': 1})

    def test_delete_missing(self):
        self.users.delete_one.return_value.deleted_count = 0

        self.assertFalse(self.repo.delete(999))


class TestEnsureIndexes(MongoRepoTestCase):

    def test_creates_unique_email_index(self):
        self.users.index_information.return_value = {'_id_': {'key': [('_id', 1)]}}

        self.assertTrue(self.repo.ensure_indexes())

        calls = {c.kwargs['name']: c for c in self.users.create_index.call_args_list}
        self.assertIn('idx_users_email', calls)
        self.assertTrue(calls['idx_users_email'].kwargs['unique'])
        self.assertIn('idx_users_name', calls)

    def test_skips_matching_indexes(self):
        self.users.index_information.return_value = {
            '_id_': {'key': [('_id', 1)]},
            'idx_users_email': {'key': [('email', 1)], 'unique': True},
            'idx_users_name': {'key': [('last_name', 1), ('first_name', 1)]},
        }

        self.assertTrue(self.repo.ensure_indexes())
        self.users.create_index.assert_not_called()

    def test_replaces_renamed_index(self):
        self.users.index_information.return_value = {
            '_id_': {'key': [('_id', 1)]},
            'email_1': {'key': [('email', 1)], 'unique': True},
        }

        self.assertTrue(self.repo.ensure_indexes())
        self.users.drop_index.assert_called_once_with('email_1')

    def test_returns_false_on_driver_error(self):
        self.users.index_information.side_effect = PyMongoError("not authorized")

        self.assertFalse(self.repo.ensure_indexes())


class TestOutOfRangeIds(MongoRepoTestCase):
    """IDs past the signed 64-bit range cannot be encoded, so they never reach the driver."""

    def test_get_by_id_returns_none(self):
        self.assertIsNone(self.repo.get_by_id(MAX_USER_ID + 1))
        self.users.find_one.assert_not_called()

    def test_delete_returns_false(self):
        self.assertFalse(self.repo.delete(MAX_USER_ID + 1))
        self.users.delete_one.assert_not_called()

    def test_update_raises_not_found(self):
        with self.assertRaises(NotFoundError):
            self.repo.update(User(id=MAX_USER_ID + 1, first_name='X', last_name='Y', email='x@example.com'))
        self.users.find_one_and_update.assert_not_called()


class TestStoredRoundTrip(MongoRepoTestCase):
    """Documents pass through BSON the way the driver stores and returns them."""

    def setUp(self):
        super().setUp()
        self.stored = {}
        self.codec = CodecOptions(tz_aware=True)
        self.counters.find_one_and_update.return_value = {'_id': 'users', 'seq': 1}
        self.users.insert_one.side_effect = self._insert
        self.users.find_one.side_effect = self._find_one
        self.users.find_one_and_update.side_effect = self._set
        self.service = UserService(self.repo)

    def _through_bson(self, doc: dict) -> dict:
        return bson.decode(bson.encode(doc), codec_options=self.codec)

    def _insert(self, doc):
        self.stored[doc['_id']] = self._through_bson(doc)

    def _find_one(self, query):
        for doc in self.stored.values():
            if all(doc.get(key) == value for key, value in query.items()):
                return doc
        return None

    def _set(self, query, update, return_document=None):
        doc = self.stored.get(query['_id'])
        if doc is None:
            return None
        doc.update(update['$set'])
        self.stored[doc['_id']] = self._through_bson(doc)
        return self.stored[doc['_id']]

    def test_created_user_matches_fetched_user(self):
        created = self.service.create_user(UserInput('Ada', 'Lovelace', 'ada@example.com'))

        fetched = self.service.get_user(created.value.id)

        self.assertTrue(fetched.ok)
        self.assertEqual(fetched.value, created.value)
        self.assertEqual(fetched.value.created_at.utcoffset(), timedelta(0))

    def test_updated_user_matches_fetched_user(self):
        created = self.service.create_user(UserInput('Ada', 'Lovelace', 'ada@example.com'))

        updated = self.service.update_user(created.value.id, UserInput('Augusta', 'King', 'augusta@example.com'))
        fetched = self.service.get_user(created.value.id)

        self.assertEqual(fetched.value, updated.value)
        self.assertEqual(updated.value.created_at, created.value.created_at)

    def test_naive_dates_are_read_as_utc(self):
        self.codec = CodecOptions(tz_aware=False)
        created = self.repo.add(User.new('Ada', 'Lovelace', 'ada@example.com'))

        fetched = self.repo.get_by_id(created.id)

        self.assertIsNone(self.stored[1]['created_at'].tzinfo)
        self.assertEqual(fetched.created_at, created.created_at)


class TestGetMongodbClient(unittest.TestCase):

    def setUp(self):
        self._saved = connection._client
        connection._client = None

    def tearDown(self):
        connection._client = self._saved

    @patch('adapter.mongodb.connection.MONGO_URL', None)
    def test_missing_url_returns_none(self):
        self.assertIsNone(connection.get_mongodb_client())

    @patch('adapter.mongodb.connection.MongoClient')
    @patch('adapter.mongodb.connection.MONGO_URL', 'mongodb://localhost:27017')
    def test_client_reads_dates_as_utc_and_is_cached(self, mock_client_cls):
        first = connection.get_mongodb_client()
        second = connection.get_mongodb_client()

        self.assertIs(first, mock_client_cls.return_value)
        self.assertIs(first, second)
        mock_client_cls.assert_called_once()
        kwargs = mock_client_cls.call_args.kwargs
        self.assertTrue(kwargs['tz_aware'])
        self.assertFalse(kwargs['retryWrites'])
        self.assertEqual(first.admin.command.call_count, 2)

    @patch('adapter.mongodb.connection.MongoClient')
    @patch('adapter.mongodb.connection.MONGO_URL', 'mongodb://localhost:27017')
    def test_failed_ping_returns_none(self, mock_client_cls):
        mock_client_cls.return_value.admin.command.side_effect = PyMongoError("no servers")

        self.assertIsNone(connection.get_mongodb_client())


if __name__ == '__main__':
    unittest.main()
