from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pymongo.database import Database

import carts
import database
import orders
import products
import users
from config import settings
from database import get_db
from errors import ServiceError, register_error_handlers
from logging_config import add_context, clear_context, configure_logging
from schemas import (
    CartCreate,
    CartUpdate,
    LoginRequest,
    OrderCreate,
    OrderStatusUpdate,
    OrderUpdate,
    ProductCreate,
    ProductUpdate,
    UserCreate,
    UserUpdate,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    # The server keeps listening even when the database is missing or down.
    if database.check_connection(database.db):
        try:
            orders.replay_cart_clears(database.db)
        except Exception as e:
            logger.error("order.cart_clear_replay_failed", error=str(e))
    logger.info("server.started", port=settings.PORT, environment=settings.ENVIRONMENT)
    yield


app = FastAPI(title="Shop API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)


@app.middleware("http")
async def bind_request_context(request: Request, call_next):
    clear_context()
    add_context(method=request.method, path=request.url.path)
    return await call_next(request)


# Health
@app.get("/")
def read_root():
    return {"message": "Shop backend is running"}


@app.get("/test")
def test_database():
    db = database.db
    try:
        collections = db.list_collection_names() if db is not None else []
        return {"backend": "ok", "db": "ok" if db is not None else "not_configured", "collections": collections}
    except Exception as e:
        return {"backend": "ok", "db": f"error: {str(e)[:80]}"}


# Users
@app.get("/api/users")
def list_users(db: Database = Depends(get_db)):
    try:
        return users.list_users(db)
    except HTTPException:
        raise
    except Exception as e:
        raise ServiceError("Error fetching users", e)


@app.get("/api/users/{user_id}")
def get_user(user_id: str, db: Database = Depends(get_db)):
    try:
        return users.get_user(db, user_id)
    except HTTPException:
        raise
    except Exception as e:
        raise ServiceError("Error fetching user", e)


@app.post("/api/users", status_code=201)
def create_user(payload: UserCreate, db: Database = Depends(get_db)):
    try:
        return users.create_user(db, payload)
    except HTTPException:
        raise
    except Exception as e:
        raise ServiceError("Error creating user", e)


@app.put("/api/users/{user_id}")
def update_user(user_id: str, payload: UserUpdate, db: Database = Depends(get_db)):
    try:
        return users.update_user(db, user_id, payload)
    except HTTPException:
        raise
    except Exception as e:
        raise ServiceError("Error updating user", e)


@app.delete("/api/users/{user_id}")
def delete_user(user_id: str, db: Database = Depends(get_db)):
    try:
        users.delete_user(db, user_id)
        return {"message": "User deleted successfully"}
    except HTTPException:
        raise
    except Exception as e:
        raise ServiceError("Error deleting user", e)


# Credential check (sessionless)
@app.post("/api/auth/login")
def login(creds: LoginRequest, db: Database = Depends(get_db)):
    try:
        return users.authenticate(db, creds.email, creds.password)
    except HTTPException:
        raise
    except Exception as e:
        raise ServiceError("Error checking credentials", e)


# Products
@app.get("/api/products")
def list_products(db: Database = Depends(get_db)):
    try:
        return products.list_products(db)
    except HTTPException:
        raise
    except Exception as e:
        raise ServiceError("Error fetching products", e)


@app.get("/api/products/{product_id}")
def get_product(product_id: str, db: Database = Depends(get_db)):
    try:
        return products.get_product(db, product_id)
    except HTTPException:
        raise
    except Exception as e:
        raise ServiceError("Error fetching product", e)


@app.post("/api/products", status_code=201)
def create_product(payload: ProductCreate, db: Database = Depends(get_db)):
    try:
        product = products.create_product(db, payload)
        return {"message": "Product created successfully", "product": product}
    except HTTPException:
        raise
    except Exception as e:
        raise ServiceError("Error creating product", e)


@app.put("/api/products/{product_id}")
def update_product(product_id: str, payload: ProductUpdate, db: Database = Depends(get_db)):
    try:
        product = products.update_product(db, product_id, payload)
        return {"message": "Product updated successfully", "product": product}
    except HTTPException:
        raise
    except Exception as e:
        raise ServiceError("Error updating product", e)


@app.delete("/api/products/{product_id}")
def delete_product(product_id: str, db: Database = Depends(get_db)):
    try:
        product = products.delete_product(db, product_id)
        return {"message": "Product deleted successfully", "product": product}
    except HTTPException:
        raise
    except Exception as e:
        raise ServiceError("Error deleting product", e)


# Carts
@app.get("/api/carts")
def list_carts(db: Database = Depends(get_db)):
    try:
        return carts.list_carts(db)
    except HTTPException:
        raise
    except Exception as e:
        raise ServiceError("Error fetching carts", e)


@app.get("/api/carts/{user_id}")
def get_cart(user_id: str, db: Database = Depends(get_db)):
    try:
        return carts.get_user_cart(db, user_id)
    except HTTPException:
        raise
    except Exception as e:
        raise ServiceError("Error fetching cart", e)


@app.post("/api/carts", status_code=201)
def create_cart(payload: CartCreate, db: Database = Depends(get_db)):
    try:
        cart = carts.create_cart(db, payload)
        return {"message": "Cart created successfully", "cart": cart}
    except HTTPException:
        raise
    except Exception as e:
        raise ServiceError("Error creating cart", e)


@app.put("/api/carts/{user_id}")
def update_cart(user_id: str, payload: CartUpdate, db: Database = Depends(get_db)):
    try:
        cart = carts.update_cart(db, user_id, payload)
        return {"message": "Cart updated successfully", "cart": cart}
    except HTTPException:
        raise
    except Exception as e:
        raise ServiceError("Error updating cart", e)


@app.delete("/api/carts/{user_id}")
def delete_cart(user_id: str, db: Database = Depends(get_db)):
    try:
        cart = carts.delete_cart(db, user_id)
        return {"message": "Cart deleted successfully", "cart": cart}
    except HTTPException:
        raise
    except Exception as e:
        raise ServiceError("Error deleting cart", e)


# Orders
@app.get("/api/orders")
def list_orders(user_id: Optional[str] = Query(None, alias="userId"), db: Database = Depends(get_db)):
    try:
        return orders.list_orders(db, user_id)
    except HTTPException:
        raise
    except Exception as e:
        raise ServiceError("Error fetching orders", e)


@app.get("/api/orders/user/{user_id}")
def list_user_orders(user_id: str, db: Database = Depends(get_db)):
    try:
        return orders.list_user_orders(db, user_id)
    except HTTPException:
        raise
    except Exception as e:
        raise ServiceError("Error fetching user orders", e)


@app.get("/api/orders/{order_id}")
def get_order(order_id: str, db: Database = Depends(get_db)):
    try:
        return orders.get_order(db, order_id)
    except HTTPException:
        raise
    except Exception as e:
        raise ServiceError("Error fetching order", e)


# Create order -> clear the user's cart
@app.post("/api/orders", status_code=201)
def create_order(payload: OrderCreate, db: Database = Depends(get_db)):
    try:
        order = orders.create_order(db, payload)
        return {"message": "Order created successfully", "order": order}
    except HTTPException:
        raise
    except Exception as e:
        raise ServiceError("Error creating order", e)


@app.put("/api/orders/{order_id}")
def update_order(order_id: str, payload: OrderUpdate, db: Database = Depends(get_db)):
    try:
        order = orders.update_order(db, order_id, payload)
        return {"message": "Order updated successfully", "order": order}
    except HTTPException:
        raise
    except Exception as e:
        raise ServiceError("Error updating order", e)


@app.patch("/api/orders/{order_id}/status")
def update_order_status(order_id: str, payload: Optional[OrderStatusUpdate] = None, db: Database = Depends(get_db)):
    try:
        order = orders.update_order_status(db, order_id, payload.order_status if payload else None)
        return {"message": "Order status updated successfully", "order": order}
    except HTTPException:
        raise
    except Exception as e:
        raise ServiceError("Error updating order status", e)


@app.delete("/api/orders/{order_id}")
def delete_order(order_id: str, db: Database = Depends(get_db)):
    try:
        order = orders.delete_order(db, order_id)
        return {"message": "Order deleted successfully", "order": order}
    except HTTPException:
        raise
    except Exception as e:
        raise ServiceError("Error deleting order", e)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
