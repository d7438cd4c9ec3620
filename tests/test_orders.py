"""Order workflow and its cart side effect."""

import pytest
from pymongo.errors import PyMongoError

import carts
import orders
from errors import NotFoundError, ValidationError
from schemas import CartCreate, OrderCreate, OrderUpdate


@pytest.fixture()
def cart(db):
    return carts.create_cart(
        db,
        CartCreate(userId="user-1", items=[{"productId": "p-1", "quantity": 2, "price": 10}]),
    )


@pytest.fixture()
def payload(shipping_address):
    return OrderCreate(
        userId="user-1",
        items=[{"productId": "p-1", "quantity": 1, "price": 20}],
        shippingAddress=shipping_address,
        paymentMethod="bkash",
    )


class TestCreateOrder:
    def test_total_and_status(self, db, payload):
        order = orders.create_order(db, payload)
        assert order["totalAmount"] == 20
        assert order["orderStatus"] == "pending"
        assert order["paymentMethod"] == "bkash"
        assert order["shippingAddress"]["postalCode"] == "1207"

    def test_clears_user_cart(self, db, cart, payload):
        orders.create_order(db, payload)
        stored = carts.get_user_cart(db, "user-1")
        assert stored["items"] == []
        assert stored["totalPrice"] == 0

    def test_marks_cart_cleared(self, db, cart, payload):
        order = orders.create_order(db, payload)
        assert db["orders"].find_one({})["cartCleared"] is True
        assert order["cartCleared"] is True

    def test_without_cart(self, db, payload):
        order = orders.create_order(db, payload)
        assert order["totalAmount"] == 20
        assert db["carts"].count_documents({}) == 0

    def test_other_users_cart_untouched(self, db, cart, payload, shipping_address):
        other = OrderCreate(
            userId="user-2",
            items=[{"productId": "p-1", "quantity": 1, "price": 20}],
            shippingAddress=shipping_address,
            paymentMethod="card",
        )
        orders.create_order(db, other)
        assert db["carts"].find_one({"userId": "user-1"})["totalPrice"] == 20

    def test_failed_insert_leaves_cart(self, db, cart, payload, monkeypatch):
        def boom(*args, **kwargs):
            raise PyMongoError("write failed")

        monkeypatch.setattr(orders, "create_document", boom)
        with pytest.raises(PyMongoError):
            orders.create_order(db, payload)
        stored = db["carts"].find_one({"userId": "user-1"})
        assert stored["totalPrice"] == 20
        assert len(stored["items"]) == 1


class TestReplayCartClears:
    def test_replays_interrupted_clear(self, db, cart):
        db["orders"].insert_one({"userId": "user-1", "items": [], "totalAmount": 0, "cartCleared": False})
        assert orders.replay_cart_clears(db) == 1
        assert db["carts"].find_one({"userId": "user-1"})["items"] == []
        assert db["orders"].find_one({})["cartCleared"] is True

    def test_nothing_to_replay(self, db, cart, payload):
        orders.create_order(db, payload)
        assert orders.replay_cart_clears(db) == 0


class TestReadOrders:
    def test_get_resolves_user_without_password(self, db, shipping_address):
        user_id = str(db["users"].insert_one({"name": "Rina", "email": "rina@example.com", "password": "hash"}).inserted_id)
        order = orders.create_order(
            db,
            OrderCreate(
                userId=user_id,
                items=[{"productId": "p-1", "quantity": 1, "price": 20}],
                shippingAddress=shipping_address,
                paymentMethod="nagad",
            ),
        )
        fetched = orders.get_order(db, order["id"])
        assert fetched["userId"]["name"] == "Rina"
        assert "password" not in fetched["userId"]

    def test_get_invalid_id_not_found(self, db):
        with pytest.raises(NotFoundError):
            orders.get_order(db, "not-an-object-id")

    def test_get_unknown_id_not_found(self, db):
        with pytest.raises(NotFoundError):
            orders.get_order(db, "5f1d7f1c2b3a4c5d6e7f8a9b")

    def test_list_with_filter(self, db, payload):
        orders.create_order(db, payload)
        assert len(orders.list_orders(db)) == 1
        assert len(orders.list_orders(db, "user-1")) == 1
        assert orders.list_orders(db, "user-2") == []

    def test_user_orders_empty_not_found(self, db):
        with pytest.raises(NotFoundError):
            orders.list_user_orders(db, "user-1")

    def test_user_orders(self, db, payload):
        orders.create_order(db, payload)
        result = orders.list_user_orders(db, "user-1")
        assert [o["totalAmount"] for o in result] == [20]


class TestUpdateOrder:
    def test_items_change_keeps_total(self, db, payload):
        order = orders.create_order(db, payload)
        updated = orders.update_order(
            db, order["id"], OrderUpdate(items=[{"productId": "p-9", "quantity": 5, "price": 3}])
        )
        assert updated["items"][0]["quantity"] == 5
        assert updated["totalAmount"] == 20

    def test_free_form_status(self, db, payload):
        order = orders.create_order(db, payload)
        updated = orders.update_order(db, order["id"], OrderUpdate(orderStatus="shipped"))
        assert updated["orderStatus"] == "shipped"

    def test_reassigns_user(self, db, payload):
        order = orders.create_order(db, payload)
        updated = orders.update_order(db, order["id"], OrderUpdate(userId="user-2"))
        assert updated["userId"] == "user-2"
        assert updated["totalAmount"] == 20

    def test_unknown_order(self, db):
        with pytest.raises(NotFoundError):
            orders.update_order(db, "5f1d7f1c2b3a4c5d6e7f8a9b", OrderUpdate(orderStatus="shipped"))


class TestUpdateOrderStatus:
    def test_sets_status(self, db, payload):
        order = orders.create_order(db, payload)
        updated = orders.update_order_status(db, order["id"], "delivered")
        assert updated["orderStatus"] == "delivered"

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_missing_status_rejected(self, db, payload, value):
        order = orders.create_order(db, payload)
        with pytest.raises(ValidationError):
            orders.update_order_status(db, order["id"], value)
        assert orders.get_order(db, order["id"])["orderStatus"] == "pending"


class TestDeleteOrder:
    def test_delete(self, db, payload):
        order = orders.create_order(db, payload)
        deleted = orders.delete_order(db, order["id"])
        assert deleted["id"] == order["id"]
        assert db["orders"].count_documents({}) == 0

    def test_delete_missing(self, db):
        with pytest.raises(NotFoundError):
            orders.delete_order(db, "5f1d7f1c2b3a4c5d6e7f8a9b")
