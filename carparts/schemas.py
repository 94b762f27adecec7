"""
Database Schemas

MongoDB collection schemas for the car-parts inventory, as Pydantic models.
Each model represents a collection in the database; the collection name is
the lowercase model name. Payload models used only for requests live at the
bottom.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    CARD = "CARD"


class User(BaseModel):
    """Collection: user"""
    username: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., description="BCrypt password hash")


class Category(BaseModel):
    """Collection: category"""
    name: str = Field(..., min_length=1)
    description: Optional[str] = None


class Part(BaseModel):
    """Collection: part"""
    name: str = Field(..., min_length=1)
    description: str
    category: str = Field(..., description="Reference to category _id as string")
    price: float = Field(..., ge=0)
    quantity: int = Field(..., ge=0)
    min_quantity: int = Field(5, ge=0, description="Low-stock threshold")
    manufacturer: str
    part_number: str = Field(..., min_length=1, description="Unique catalogue number")


class OrderItem(BaseModel):
    """Embedded line of an order"""
    part: str = Field(..., description="Reference to part _id as string")
    quantity: int = Field(..., ge=1)
    price: float = Field(..., ge=0, description="Part price when the order was placed")


class Order(BaseModel):
    """Collection: order"""
    order_number: str
    items: List[OrderItem]
    total_amount: float = Field(..., ge=0)
    payment_method: Optional[PaymentMethod] = None
    status: OrderStatus = OrderStatus.PENDING
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None


# Request payloads

class RegisterPayload(BaseModel):
    username: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)


class LoginPayload(BaseModel):
    username: str
    password: str


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None


class PartUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    quantity: Optional[int] = Field(None, ge=0)
    min_quantity: Optional[int] = Field(None, ge=0)
    manufacturer: Optional[str] = None
    part_number: Optional[str] = Field(None, min_length=1)


class OrderItemPayload(BaseModel):
    part: str
    quantity: int = Field(..., ge=1)


class OrderPayload(BaseModel):
    items: Optional[List[OrderItemPayload]] = None
    payment_method: Optional[PaymentMethod] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None


class OrderStatusPayload(BaseModel):
    status: OrderStatus
    payment_method: Optional[PaymentMethod] = None
