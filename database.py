"""
MongoDB access

One shared MongoClient per process. Collections:
- users
- products
- carts
- orders

Routes receive the database through the ``get_db`` dependency so tests can
swap in an in-memory client.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog
from bson import ObjectId
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from config import settings
from errors import ServiceError

logger = structlog.get_logger(__name__)

client: Optional[MongoClient] = None
db: Optional[Database] = None

if settings.DATABASE_URL:
    client = MongoClient(settings.DATABASE_URL)
    db = client[settings.DATABASE_NAME]


def get_db() -> Database:
    if db is None:
        raise ServiceError("Database not available", RuntimeError("DATABASE_URL is not set"))
    return db


def ensure_indexes(database: Database) -> None:
    """One account per email, one cart per user."""
    database["users"].create_index([("email", ASCENDING)], unique=True)
    database["carts"].create_index([("userId", ASCENDING)], unique=True)
    database["orders"].create_index([("userId", ASCENDING)])


def check_connection(database: Optional[Database]) -> bool:
    """Ping the server; failures are logged, never raised."""
    if database is None:
        logger.warning("database.not_configured", hint="set DATABASE_URL or MONGO_URI")
        return False
    try:
        database.command("ping")
        ensure_indexes(database)
    except Exception as e:
        logger.error("database.connection_failed", error=str(e))
        return False
    logger.info("database.connected", name=database.name)
    return True


def now() -> datetime:
    return datetime.now(timezone.utc)


def object_id(value: str) -> Optional[ObjectId]:
    """Parse an identifier; malformed ones resolve to None (treated as not found)."""
    if isinstance(value, ObjectId):
        return value
    if value and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def to_str_id(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not doc:
        return doc
    d = dict(doc)
    if d.get("_id"):
        d["id"] = str(d.pop("_id"))
    return d


def create_document(database: Database, collection_name: str, data) -> Dict[str, Any]:
    """Insert a document with timestamps and return it with its string id."""
    if isinstance(data, BaseModel):
        data_dict = data.model_dump(by_alias=True, mode="json")
    else:
        data_dict = dict(data)
    stamp = now()
    data_dict["createdAt"] = stamp
    data_dict["updatedAt"] = stamp
    result = database[collection_name].insert_one(data_dict)
    data_dict["_id"] = result.inserted_id
    return to_str_id(data_dict)


def get_documents(database: Database, collection_name: str, filter_dict: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    return [to_str_id(d) for d in database[collection_name].find(filter_dict or {})]
