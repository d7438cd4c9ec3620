"""Product catalog CRUD."""

from typing import Any, Dict, List

import structlog
from pymongo import ReturnDocument
from pymongo.database import Database

from database import create_document, get_documents, now, object_id, to_str_id
from errors import NotFoundError
from schemas import ProductCreate, ProductUpdate

logger = structlog.get_logger(__name__)


def list_products(db: Database) -> List[Dict[str, Any]]:
    return get_documents(db, "products")


def get_product(db: Database, product_id: str) -> Dict[str, Any]:
    oid = object_id(product_id)
    doc = db["products"].find_one({"_id": oid}) if oid else None
    if not doc:
        raise NotFoundError("Product not found")
    return to_str_id(doc)


def create_product(db: Database, payload: ProductCreate) -> Dict[str, Any]:
    product = create_document(db, "products", payload)
    logger.info("product.created", product_id=product["id"], price=product["price"])
    return product


def update_product(db: Database, product_id: str, payload: ProductUpdate) -> Dict[str, Any]:
    changes = payload.model_dump(by_alias=True, exclude_none=True, mode="json")
    changes["updatedAt"] = now()
    oid = object_id(product_id)
    doc = db["products"].find_one_and_update(
        {"_id": oid},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    ) if oid else None
    if not doc:
        raise NotFoundError("Product not found")
    return to_str_id(doc)


def delete_product(db: Database, product_id: str) -> Dict[str, Any]:
    # Carts and orders keep their captured prices; nothing cascades.
    oid = object_id(product_id)
    doc = db["products"].find_one_and_delete({"_id": oid}) if oid else None
    if not doc:
        raise NotFoundError("Product not found")
    logger.info("product.deleted", product_id=product_id)
    return to_str_id(doc)
