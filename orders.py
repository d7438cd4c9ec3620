"""Order workflow.

Placing an order persists it with a frozen ``totalAmount`` and then empties
the buyer's cart. The two writes are not atomic: each order carries a
``cartCleared`` flag that is set only once the cart reset has gone through,
and ``replay_cart_clears`` finishes any reset that a crash interrupted.
"""

from typing import Any, Dict, List, Optional

import structlog
from pymongo import ReturnDocument
from pymongo.database import Database

from carts import clear_cart, resolve_products
from database import create_document, now, object_id, to_str_id
from errors import NotFoundError, ValidationError
from pricing import derive_total
from schemas import OrderCreate, OrderUpdate

logger = structlog.get_logger(__name__)

PENDING = "pending"


def _present(db: Database, order: Dict[str, Any]) -> Dict[str, Any]:
    order = to_str_id(order)
    uid = object_id(order.get("userId"))
    user = db["users"].find_one({"_id": uid}, {"password": 0}) if uid else None
    if user:
        order["userId"] = to_str_id(user)
    order["items"] = resolve_products(db, order.get("items", []))
    return order


def _find(db: Database, order_id: str) -> Dict[str, Any]:
    oid = object_id(order_id)
    order = db["orders"].find_one({"_id": oid}) if oid else None
    if not order:
        raise NotFoundError("Order not found")
    return order


def create_order(db: Database, payload: OrderCreate) -> Dict[str, Any]:
    order = payload.model_dump(by_alias=True, mode="json")
    order["totalAmount"] = derive_total(order["items"])
    order["orderStatus"] = PENDING
    order["cartCleared"] = False

    order = create_document(db, "orders", order)
    logger.info("order.created", order_id=order["id"], user_id=order["userId"], total_amount=order["totalAmount"])

    # Only reached once the insert above has returned.
    clear_cart(db, order["userId"])
    db["orders"].update_one({"_id": object_id(order["id"])}, {"$set": {"cartCleared": True}})
    order["cartCleared"] = True
    return order


def replay_cart_clears(db: Database) -> int:
    """Finish cart resets for orders whose creation was interrupted."""
    replayed = 0
    for order in db["orders"].find({"cartCleared": False}):
        clear_cart(db, order["userId"])
        db["orders"].update_one({"_id": order["_id"]}, {"$set": {"cartCleared": True}})
        replayed += 1
    if replayed:
        logger.warning("order.cart_clear_replayed", count=replayed)
    return replayed


def get_order(db: Database, order_id: str) -> Dict[str, Any]:
    return _present(db, _find(db, order_id))


def list_orders(db: Database, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
    filt = {"userId": user_id} if user_id else {}
    return [_present(db, o) for o in db["orders"].find(filt)]


def list_user_orders(db: Database, user_id: str) -> List[Dict[str, Any]]:
    orders = [to_str_id(o) for o in db["orders"].find({"userId": user_id})]
    if not orders:
        raise NotFoundError("No orders found for this user")
    for o in orders:
        o["items"] = resolve_products(db, o.get("items", []))
    return orders


def _apply(db: Database, order_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
    oid = object_id(order_id)
    changes["updatedAt"] = now()
    order = db["orders"].find_one_and_update(
        {"_id": oid},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    ) if oid else None
    if not order:
        raise NotFoundError("Order not found")
    return to_str_id(order)


def update_order(db: Database, order_id: str, payload: OrderUpdate) -> Dict[str, Any]:
    """Overwrite the given fields. ``totalAmount`` keeps its creation-time value."""
    changes = payload.model_dump(by_alias=True, exclude_none=True, mode="json")
    order = _apply(db, order_id, changes)
    if "items" in changes:
        logger.warning(
            "order.items_replaced_without_total",
            order_id=order_id,
            total_amount=order.get("totalAmount"),
            items_total=derive_total(changes["items"]),
        )
    return order


def update_order_status(db: Database, order_id: str, order_status: Optional[str]) -> Dict[str, Any]:
    if not order_status or not order_status.strip():
        raise ValidationError([{"field": "orderStatus", "message": "orderStatus is required"}], message="orderStatus is required")
    order = _apply(db, order_id, {"orderStatus": order_status})
    logger.info("order.status_changed", order_id=order_id, order_status=order_status)
    return order


def delete_order(db: Database, order_id: str) -> Dict[str, Any]:
    oid = object_id(order_id)
    order = db["orders"].find_one_and_delete({"_id": oid}) if oid else None
    if not order:
        raise NotFoundError("Order not found")
    logger.info("order.deleted", order_id=order_id)
    return to_str_id(order)
