"""
Pydantic Schemas for Request/Response Validation

Request bodies accept snake_case field names or their camelCase aliases
(``menuItemId``, ``deliveryAddress``, ``isApproved`` ...) so the SPA can
post either form. Responses are snake_case.

Version: 1.0.0
"""

import re
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from food_delivery.models import OrderStatus, UserRole


# =============================================================================
# SHARED VALIDATORS
# =============================================================================

def _clean_phone(v: Optional[str]) -> Optional[str]:
    if v is None or v.strip() == "":
        return None
    cleaned = re.sub(r"[^\d]", "", v)
    if len(cleaned) < 10 or len(cleaned) > 15:
        raise ValueError("Phone number must have between 10 and 15 digits")
    return v.strip()


# bcrypt only looks at the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72

MAX_ITEM_QUANTITY = 99


def _check_password_bytes(v: str) -> str:
    if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return v


class RequestModel(BaseModel):
    """Base for request bodies: camelCase aliases, surrounding whitespace stripped."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# =============================================================================
# AUTH REQUEST SCHEMAS
# =============================================================================

class RegisterRequest(RequestModel):
    """Request schema for creating an account."""
    email: EmailStr = Field(..., examples=["jane@example.com"])
    password: str = Field(..., min_length=6, max_length=128)
    name: str = Field(..., min_length=2, max_length=100, examples=["Jane Doe"])
    phone: Optional[str] = Field(None, max_length=20, examples=["555-123-4567"])
    address: Optional[str] = Field(None, max_length=255)
    role: UserRole = Field(default=UserRole.CUSTOMER, examples=["customer"])

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password_bytes(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return _clean_phone(v)

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: UserRole) -> UserRole:
        if v == UserRole.ADMIN:
            raise ValueError("Role must be one of: customer, restaurant")
        return v


class LoginRequest(RequestModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class ProfileUpdate(RequestModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=255)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return _clean_phone(v)


class PasswordChange(RequestModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=128)

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        return _check_password_bytes(v)


# =============================================================================
# RESTAURANT / MENU REQUEST SCHEMAS
# =============================================================================

class RestaurantCreate(RequestModel):
    name: str = Field(..., min_length=2, max_length=100, examples=["Luigi's Trattoria"])
    description: Optional[str] = Field(None, max_length=1000)
    address: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    cuisine_type: Optional[str] = Field(None, max_length=50, examples=["Italian"])

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return _clean_phone(v)


class RestaurantUpdate(RequestModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    address: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    cuisine_type: Optional[str] = Field(None, max_length=50)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return _clean_phone(v)


class MenuItemCreate(RequestModel):
    name: str = Field(..., min_length=2, max_length=100, examples=["Pizza Margherita"])
    description: Optional[str] = Field(None, max_length=1000)
    price: float = Field(..., gt=0, examples=[14.99])
    category: Optional[str] = Field(None, max_length=50, examples=["pizza"])
    is_available: bool = True
    image_url: Optional[str] = Field(None, max_length=500)

    @field_validator("price")
    @classmethod
    def round_price(cls, v: float) -> float:
        if round(v, 2) <= 0:
            raise ValueError("Price must be at least 0.01")
        return round(v, 2)

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        if not re.match(r"^https?://[^\s/$.?#].[^\s]*$", v):
            raise ValueError("Invalid URL")
        return v


class MenuItemUpdate(MenuItemCreate):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    price: Optional[float] = Field(None, gt=0)
    is_available: Optional[bool] = None

    @field_validator("price")
    @classmethod
    def round_price(cls, v: Optional[float]) -> Optional[float]:
        if v is None:
            return v
        if round(v, 2) <= 0:
            raise ValueError("Price must be at least 0.01")
        return round(v, 2)


# =============================================================================
# CART / ORDER REQUEST SCHEMAS
# =============================================================================

class CartItemAdd(RequestModel):
    menu_item_id: int = Field(..., ge=1)
    restaurant_id: int = Field(..., ge=1)
    quantity: int = Field(default=1, ge=1, le=MAX_ITEM_QUANTITY)
    notes: Optional[str] = Field(None, max_length=200)


class CartItemUpdate(RequestModel):
    quantity: int = Field(..., ge=1, le=MAX_ITEM_QUANTITY)


class OrderPlace(RequestModel):
    delivery_address: str = Field(..., min_length=1, max_length=255, examples=["350 Fifth Avenue"])
    delivery_instructions: Optional[str] = Field(None, max_length=500)


class OrderStatusUpdate(RequestModel):
    status: OrderStatus


class OrderCancel(RequestModel):
    reason: Optional[str] = Field(None, max_length=500)


# =============================================================================
# ADMIN REQUEST SCHEMAS
# =============================================================================

class RoleUpdate(RequestModel):
    role: UserRole


class ApprovalUpdate(RequestModel):
    is_approved: bool


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class MessageResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    role: UserRole
    created_at: datetime


class UserEnvelope(BaseModel):
    user: UserResponse


class UserListResponse(BaseModel):
    users: List[UserResponse]


class AuthResponse(BaseModel):
    """Response after register or login."""
    success: bool = True
    message: str
    token: str
    user: UserResponse


class RestaurantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    address: str
    phone: Optional[str] = None
    cuisine_type: Optional[str] = None
    is_approved: bool
    created_at: datetime
    owner_name: Optional[str] = None
    owner_email: Optional[str] = None


class RestaurantEnvelope(BaseModel):
    restaurant: RestaurantResponse


class RestaurantListResponse(BaseModel):
    restaurants: List[RestaurantResponse]


class RestaurantCreatedResponse(MessageResponse):
    restaurant_id: int


class MenuItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    restaurant_id: int
    name: str
    description: Optional[str] = None
    price: float
    category: Optional[str] = None
    is_available: bool
    image_url: Optional[str] = None
    created_at: datetime


class MenuResponse(BaseModel):
    menu_items: List[MenuItemResponse]


class MenuItemCreatedResponse(MessageResponse):
    menu_item_id: int


class CartLine(BaseModel):
    id: int
    quantity: int
    notes: Optional[str] = None
    created_at: datetime
    menu_item_id: int
    name: str
    description: Optional[str] = None
    price: float
    image_url: Optional[str] = None
    restaurant_id: int
    restaurant_name: str
    line_total: float


class CartResponse(BaseModel):
    cart_items: List[CartLine]
    total: float


class OrderSummary(BaseModel):
    id: int
    customer_id: int
    restaurant_id: int
    total_amount: float
    status: OrderStatus
    delivery_address: str
    delivery_instructions: Optional[str] = None
    estimated_delivery_time: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    restaurant_name: Optional[str] = None
    restaurant_address: Optional[str] = None


class OrderListResponse(BaseModel):
    orders: List[OrderSummary]


class OrderLine(BaseModel):
    menu_item_id: int
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    quantity: int
    price: float
    notes: Optional[str] = None
    line_total: float


class OrderDetailResponse(BaseModel):
    order: OrderSummary
    order_items: List[OrderLine]


class OrderPlacedResponse(MessageResponse):
    order_id: int
    total_amount: float
    estimated_delivery_time: Optional[datetime] = None


class OrderTrackingResponse(BaseModel):
    order_id: int
    status: OrderStatus
    status_description: str
    next_status: Optional[OrderStatus] = None
    created_at: datetime
    estimated_delivery_time: Optional[datetime] = None
    restaurant_name: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    timestamp: datetime
