"""
Request Schemas

Pydantic contracts checked before anything reaches MongoDB. Fields use
snake_case in Python and camelCase on the wire (and in stored documents):
- User -> "users"
- Product -> "products"
- Cart -> "carts"
- Order -> "orders"

Create models carry the required fields; the matching Update models accept
any subset of them.
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, HttpUrl, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel


class Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class CartStatus(str, Enum):
    ACTIVE = "active"
    ORDERED = "ordered"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    CASH_ON_DELIVERY = "cash_on_delivery"
    CARD = "card"
    BKASH = "bkash"
    NAGAD = "nagad"


def _strip(v):
    return v.strip() if isinstance(v, str) else v


def _normalize_email(v):
    return v.strip().lower() if isinstance(v, str) else v


def _check_ratings(v):
    for rating in v or []:
        if rating < 0 or rating > 5:
            raise ValueError("Ratings must be between 0 and 5")
    return v


_http_url = TypeAdapter(HttpUrl)


def _check_url(v):
    # Validated as a URL but stored exactly as sent.
    if v is None:
        return v
    try:
        _http_url.validate_python(v)
    except ValueError:
        raise ValueError("Invalid image URL")
    return v


# Users

class UserAddress(Schema):
    street: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None


class UserCreate(Schema):
    name: str = Field(..., min_length=2, description="Full name")
    email: EmailStr = Field(..., description="Email address, stored lowercased")
    age: int = Field(..., gt=0, strict=True, description="Age in years")
    password: str = Field(..., min_length=6, description="Plaintext, hashed before storage")
    address: Optional[UserAddress] = None
    role: Role = Role.USER
    is_active: bool = True
    hobbies: List[str] = []

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return _strip(v)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)

    @field_validator("hobbies")
    @classmethod
    def strip_hobbies(cls, v):
        return [h.strip() for h in v]


class UserUpdate(Schema):
    name: Optional[str] = Field(None, min_length=2)
    email: Optional[EmailStr] = None
    age: Optional[int] = Field(None, gt=0, strict=True)
    password: Optional[str] = Field(None, min_length=6)
    address: Optional[UserAddress] = None
    role: Optional[Role] = None
    is_active: Optional[bool] = None
    hobbies: Optional[List[str]] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return _strip(v)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)


class LoginRequest(Schema):
    email: EmailStr
    password: str

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)


# Products

class ProductCreate(Schema):
    name: str = Field(..., min_length=2, description="Product name")
    price: float = Field(..., gt=0, strict=True, description="Unit price")
    description: Optional[str] = None
    category: Optional[str] = None
    stock: int = Field(0, ge=0, description="Units on hand")
    is_available: bool = True
    ratings: List[float] = []
    image_url: Optional[str] = None

    @field_validator("ratings")
    @classmethod
    def ratings_in_range(cls, v):
        return _check_ratings(v)

    @field_validator("image_url")
    @classmethod
    def image_url_shape(cls, v):
        return _check_url(v)


class ProductUpdate(Schema):
    name: Optional[str] = Field(None, min_length=2)
    price: Optional[float] = Field(None, gt=0, strict=True)
    description: Optional[str] = None
    category: Optional[str] = None
    stock: Optional[int] = Field(None, ge=0)
    is_available: Optional[bool] = None
    ratings: Optional[List[float]] = None
    image_url: Optional[str] = None

    @field_validator("ratings")
    @classmethod
    def ratings_in_range(cls, v):
        return _check_ratings(v)

    @field_validator("image_url")
    @classmethod
    def image_url_shape(cls, v):
        return _check_url(v)


# Carts

class CartItem(Schema):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1, strict=True)
    # Captured from the product record when omitted.
    price: Optional[float] = Field(None, gt=0, strict=True)


class CartCreate(Schema):
    user_id: str = Field(..., min_length=1)
    items: List[CartItem]
    status: CartStatus = CartStatus.ACTIVE


class CartUpdate(Schema):
    items: Optional[List[CartItem]] = None
    status: Optional[CartStatus] = None


# Orders

class OrderItem(Schema):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0, strict=True)
    price: float = Field(..., gt=0, strict=True)


class ShippingAddress(Schema):
    street: str
    city: str
    state: str
    postal_code: str
    country: str


class OrderCreate(Schema):
    user_id: str = Field(..., min_length=1)
    items: List[OrderItem] = Field(..., min_length=1)
    shipping_address: ShippingAddress
    payment_method: PaymentMethod


class OrderUpdate(Schema):
    user_id: Optional[str] = Field(None, min_length=1)
    items: Optional[List[OrderItem]] = None
    shipping_address: Optional[ShippingAddress] = None
    payment_method: Optional[PaymentMethod] = None
    order_status: Optional[str] = None


class OrderStatusUpdate(Schema):
    order_status: Optional[str] = None
