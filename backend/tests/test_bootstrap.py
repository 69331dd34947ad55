"""
Bootstrap & Database Wiring Tests

What we test:
    ✅ create_super_admin inserts a hashed SUPER_ADMIN account
    ✅ An existing email is left untouched
    ✅ Missing MONGO_URI fails fast with MONGO_URI_MISSING (exit code 1)
    ✅ ensure_indexes keeps going after one collection fails
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import OperationFailure

from finsolvz import bootstrap, database
from finsolvz.config import Settings
from finsolvz.exceptions import ConfigurationError
from finsolvz.models.user import Role
from finsolvz.security import verify_password


@pytest.fixture
def users():
    repository = MagicMock()
    repository.find_by_email = AsyncMock(return_value=None)
    repository.create = AsyncMock(side_effect=lambda user: user)
    return repository


@pytest.mark.asyncio
async def test_creates_super_admin(users):
    user = await bootstrap.create_super_admin(users, "Ops", "ops@example.com", "s3cret!")
    assert user.role == Role.SUPER_ADMIN
    assert verify_password("s3cret!", user.password)
    users.create.assert_awaited_once_with(user)


@pytest.mark.asyncio
async def test_existing_admin_is_kept(users):
    users.find_by_email.return_value = object()
    assert await bootstrap.create_super_admin(users, "Ops", "ops@example.com", "s3cret!") is None
    users.create.assert_not_awaited()


def test_missing_mongo_uri():
    with pytest.raises(ConfigurationError) as exc_info:
        database.create_client(Settings(mongo_uri=""))
    assert exc_info.value.code == "MONGO_URI_MISSING"


def test_cli_exits_nonzero_without_database():
    assert bootstrap.main(["--password", "something-else"]) == 1


@pytest.mark.asyncio
async def test_ensure_indexes_continues_after_failure():
    collections = {name: MagicMock() for name in database.INDEXES}
    for collection in collections.values():
        collection.create_indexes = AsyncMock()
    collections[database.COMPANIES].create_indexes.side_effect = OperationFailure("duplicate names")

    await database.ensure_indexes(collections)

    for name, collection in collections.items():
        collection.create_indexes.assert_awaited_once_with(database.INDEXES[name])
