"""
Finsolvz Backend — MongoDB Connection Management
=================================================

What:  Creates the async MongoDB client, verifies connectivity, ensures
       indexes, and closes the client on shutdown.
Why:   One pooled client per process; every repository borrows the database
       handle from it.
How:   PyMongo's native asyncio client (`AsyncMongoClient`). Pool bounds come
       from settings and are managed entirely by the driver.
Who:   `lifespan()` in main.py connects and closes; `get_database()` in
       dependencies.py hands the database to repositories per request.

Connection Pool Architecture:
    ┌──────────────────────────────────────┐
    │       AsyncMongoClient (driver)      │
    │   maxPoolSize=10  minPoolSize=0      │
    │   maxIdleTimeMS=30000                │
    │   connectTimeoutMS=10000             │
    └──────────────────────────────────────┘
              ↑ app.state.database
    Request 1 → CompanyRepository(db) → companies collection
    Request 2 → ReportRepository(db)  → reports aggregation
"""

import logging
from typing import List, Mapping, Optional

from pymongo import ASCENDING, DESCENDING, AsyncMongoClient, IndexModel
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.collation import Collation
from pymongo.errors import OperationFailure, PyMongoError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from finsolvz.config import Settings, settings
from finsolvz.exceptions import ConfigurationError, DatabaseError

logger = logging.getLogger(__name__)

# ── Collections ───────────────────────────────────────────────────────────
USERS = "users"
COMPANIES = "companies"
REPORT_TYPES = "reporttypes"
REPORTS = "reports"

# ── Index Definitions ─────────────────────────────────────────────────────
# Case-insensitive comparison for company names (index and lookups)
NAME_COLLATION = Collation(locale="en", strength=2)

# Unique indexes are the real enforcement point for email, company name and
# report-type name; service pre-checks only produce the friendlier error.
INDEXES: Mapping[str, List[IndexModel]] = {
    USERS: [
        IndexModel([("email", ASCENDING)], unique=True, name="email_unique"),
        IndexModel([("resetPasswordToken", ASCENDING)], sparse=True, name="reset_token_sparse"),
        IndexModel([("company", ASCENDING)], name="company_1"),
    ],
    REPORT_TYPES: [
        IndexModel([("name", ASCENDING)], unique=True, name="name_unique"),
    ],
    COMPANIES: [
        IndexModel(
            [("name", ASCENDING)], unique=True, collation=NAME_COLLATION, name="name_ci_unique"
        ),
        IndexModel([("createdAt", DESCENDING)], name="createdAt_-1"),
        IndexModel([("user", ASCENDING)], name="user_1"),
    ],
    REPORTS: [
        IndexModel([("company", ASCENDING)], name="company_1"),
        IndexModel([("reportType", ASCENDING)], name="reportType_1"),
        IndexModel([("createdBy", ASCENDING)], name="createdBy_1"),
        IndexModel([("userAccess", ASCENDING)], name="userAccess_1"),
        IndexModel([("reportName", ASCENDING)], name="reportName_1"),
        IndexModel([("year", ASCENDING)], name="year_1"),
        IndexModel([("createdAt", DESCENDING)], name="createdAt_-1"),
        IndexModel([("company", ASCENDING), ("reportType", ASCENDING)], name="company_reportType"),
        IndexModel([("company", ASCENDING), ("year", ASCENDING)], name="company_year"),
    ],
}


def create_client(config: Optional[Settings] = None) -> AsyncMongoClient:
    """Build the pooled client. Raises MONGO_URI_MISSING when the URI is unset."""
    cfg = config or settings
    if not cfg.mongo_uri:
        raise ConfigurationError(
            message="MongoDB connection string is not configured",
            code="MONGO_URI_MISSING",
        )
    return AsyncMongoClient(
        cfg.mongo_uri,
        maxPoolSize=cfg.mongo_max_pool_size,
        minPoolSize=cfg.mongo_min_pool_size,
        maxIdleTimeMS=cfg.mongo_max_idle_time_ms,
        connectTimeoutMS=cfg.mongo_connect_timeout_ms,
        serverSelectionTimeoutMS=cfg.mongo_connect_timeout_ms,
        tz_aware=True,
    )


@retry(
    retry=retry_if_exception_type(PyMongoError),
    stop=stop_after_attempt(3),
    wait=wait_exponential_jitter(initial=1, max=8),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
async def ping(client: AsyncMongoClient) -> None:
    await client.admin.command("ping")


async def connect(config: Optional[Settings] = None) -> AsyncMongoClient:
    """
    Create the client and verify the server answers a ping.

    Raises:
        ConfigurationError: MONGO_URI_MISSING
        DatabaseError:      server unreachable after retries
    """
    client = create_client(config)
    try:
        await ping(client)
    except PyMongoError as e:
        await client.close()
        raise DatabaseError(
            message="Failed to connect to MongoDB",
            code="DATABASE_CONNECTION_ERROR",
            cause=e,
        ) from e
    logger.info("Connected to MongoDB database '%s'", (config or settings).mongo_db_name)
    return client


async def ensure_indexes(db: AsyncDatabase) -> None:
    """
    Create every index in INDEXES; existing identical indexes are a no-op.

    A failing index (e.g. a unique index over data that already holds
    duplicates) is logged and the remaining indexes are still created.
    """
    for collection_name, models in INDEXES.items():
        try:
            await db[collection_name].create_indexes(models)
        except OperationFailure as e:
            logger.error("Index creation failed on '%s': %s", collection_name, e)
    logger.info("Database indexes ensured")


async def close(client: Optional[AsyncMongoClient]) -> None:
    if client is not None:
        await client.close()
        logger.info("MongoDB client closed")
