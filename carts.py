"""Cart lifecycle: one cart per user, total recomputed whenever items change."""

from typing import Any, Dict, List

import structlog
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import create_document, now, object_id, to_str_id
from errors import ConflictError, NotFoundError, ValidationError
from pricing import derive_total
from schemas import CartCreate, CartItem, CartUpdate

logger = structlog.get_logger(__name__)


def resolve_products(db: Database, items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Replace each item's productId with the product record, where one exists."""
    resolved = []
    for it in items:
        item = dict(it)
        oid = object_id(item.get("productId"))
        prod = db["products"].find_one({"_id": oid}) if oid else None
        if prod:
            item["productId"] = to_str_id(prod)
        resolved.append(item)
    return resolved


def _present(db: Database, cart: Dict[str, Any]) -> Dict[str, Any]:
    cart = to_str_id(cart)
    cart["items"] = resolve_products(db, cart.get("items", []))
    return cart


def capture_prices(db: Database, items: List[CartItem]) -> List[Dict[str, Any]]:
    """Dump cart items, filling any missing unit price from the catalog."""
    captured = []
    errors = []
    for i, it in enumerate(items):
        item = it.model_dump(by_alias=True)
        if item["price"] is None:
            oid = object_id(item["productId"])
            prod = db["products"].find_one({"_id": oid}) if oid else None
            if not prod:
                errors.append({"field": f"items.{i}.productId", "message": "Product not found"})
                continue
            item["price"] = float(prod["price"])
        captured.append(item)
    if errors:
        raise ValidationError(errors)
    return captured


def get_user_cart(db: Database, user_id: str) -> Dict[str, Any]:
    cart = db["carts"].find_one({"userId": user_id})
    if not cart:
        raise NotFoundError("Cart not found")
    return _present(db, cart)


def list_carts(db: Database) -> List[Dict[str, Any]]:
    carts = [_present(db, c) for c in db["carts"].find()]
    if not carts:
        raise NotFoundError("No carts found")
    return carts


def create_cart(db: Database, payload: CartCreate) -> Dict[str, Any]:
    items = capture_prices(db, payload.items)
    if db["carts"].find_one({"userId": payload.user_id}):
        raise ConflictError("Cart already exists for this user")
    cart = {
        "userId": payload.user_id,
        "items": items,
        "totalPrice": derive_total(items),
        "status": payload.status.value,
    }
    try:
        cart = create_document(db, "carts", cart)
    except DuplicateKeyError:
        raise ConflictError("Cart already exists for this user")
    logger.info("cart.created", cart_id=cart["id"], user_id=payload.user_id, total_price=cart["totalPrice"])
    return cart


def update_cart(db: Database, user_id: str, payload: CartUpdate) -> Dict[str, Any]:
    changes: Dict[str, Any] = {}
    if payload.items is not None:
        items = capture_prices(db, payload.items)
        changes["items"] = items
        changes["totalPrice"] = derive_total(items)
    if payload.status is not None:
        changes["status"] = payload.status.value
    changes["updatedAt"] = now()

    cart = db["carts"].find_one_and_update(
        {"userId": user_id},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )
    if not cart:
        raise NotFoundError("Cart not found for this user")
    logger.info("cart.updated", user_id=user_id, fields=sorted(changes))
    return to_str_id(cart)


def delete_cart(db: Database, user_id: str) -> Dict[str, Any]:
    cart = db["carts"].find_one_and_delete({"userId": user_id})
    if not cart:
        raise NotFoundError("Cart not found")
    logger.info("cart.deleted", user_id=user_id)
    return to_str_id(cart)


def clear_cart(db: Database, user_id: str) -> bool:
    """Empty the user's cart. Safe to repeat; returns False when the user has none."""
    result = db["carts"].update_one(
        {"userId": user_id},
        {"$set": {"items": [], "totalPrice": 0, "updatedAt": now()}},
    )
    logger.info("cart.cleared", user_id=user_id, matched=result.matched_count)
    return result.matched_count > 0
