"""User accounts. Passwords are hashed on every write and never returned."""

from typing import Any, Dict, List

import structlog
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import create_document, now, object_id, to_str_id
from errors import AuthenticationError, ConflictError, NotFoundError
from schemas import UserCreate, UserUpdate
from security import hash_password, verify_password

logger = structlog.get_logger(__name__)

HIDDEN = {"password": 0}


def public(doc: Dict[str, Any]) -> Dict[str, Any]:
    user = to_str_id(doc)
    user.pop("password", None)
    return user


def list_users(db: Database) -> List[Dict[str, Any]]:
    return [public(u) for u in db["users"].find({}, HIDDEN)]


def get_user(db: Database, user_id: str) -> Dict[str, Any]:
    oid = object_id(user_id)
    user = db["users"].find_one({"_id": oid}, HIDDEN) if oid else None
    if not user:
        raise NotFoundError("User not found")
    return public(user)


def create_user(db: Database, payload: UserCreate) -> Dict[str, Any]:
    if db["users"].find_one({"email": payload.email}):
        raise ConflictError("Email already exists")
    user = payload.model_dump(by_alias=True, mode="json")
    user["password"] = hash_password(payload.password)
    try:
        user = create_document(db, "users", user)
    except DuplicateKeyError:
        raise ConflictError("Email already exists")
    logger.info("user.created", user_id=user["id"], role=user["role"])
    return public(user)


def update_user(db: Database, user_id: str, payload: UserUpdate) -> Dict[str, Any]:
    changes = payload.model_dump(by_alias=True, exclude_none=True, mode="json")
    if "password" in changes:
        changes["password"] = hash_password(changes["password"])
    changes["updatedAt"] = now()

    oid = object_id(user_id)
    if oid and "email" in changes and db["users"].find_one({"email": changes["email"], "_id": {"$ne": oid}}):
        raise ConflictError("Email already exists")
    try:
        user = db["users"].find_one_and_update(
            {"_id": oid},
            {"$set": changes},
            projection=HIDDEN,
            return_document=ReturnDocument.AFTER,
        ) if oid else None
    except DuplicateKeyError:
        raise ConflictError("Email already exists")
    if not user:
        raise NotFoundError("User not found")
    logger.info("user.updated", user_id=user_id, fields=sorted(changes))
    return public(user)


def delete_user(db: Database, user_id: str) -> None:
    oid = object_id(user_id)
    user = db["users"].find_one_and_delete({"_id": oid}) if oid else None
    if not user:
        raise NotFoundError("User not found")
    logger.info("user.deleted", user_id=user_id)


def authenticate(db: Database, email: str, password: str) -> Dict[str, Any]:
    """Check a credential pair. No session or token is issued."""
    user = db["users"].find_one({"email": email})
    if not user or not verify_password(password, user.get("password", "")):
        raise AuthenticationError("Invalid email or password")
    return public(user)
