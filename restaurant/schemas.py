"""
Database Schemas

MongoDB collection schemas for the restaurant point of sale, as Pydantic
models. Each model represents a collection in the database:
- User -> "user" collection
- MenuItem -> "menu_item" collection
- Table -> "table" collection
- Order -> "order" collection
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field


class UserRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    WAITER = "waiter"
    CHEF = "chef"


class OrderStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    DIGITAL_WALLET = "digital_wallet"


class TableStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    RESERVED = "reserved"
    CLEANING = "cleaning"


class User(BaseModel):
    """Collection: user"""
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., description="BCrypt password hash")
    role: UserRole = UserRole.WAITER
    active: bool = True


class CustomizationOption(BaseModel):
    name: str
    price: float = Field(..., ge=0)


class Customization(BaseModel):
    name: str
    options: List[CustomizationOption] = []


class MenuItem(BaseModel):
    """Collection: menu_item"""
    name: str = Field(..., min_length=1)
    description: str
    category: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    image: Optional[str] = None
    customizations: List[Customization] = []
    available: bool = True
    preparation_time: int = Field(..., ge=0, description="Minutes")


class Table(BaseModel):
    """Collection: table"""
    table_number: int = Field(..., ge=1)
    capacity: int = Field(..., ge=1)
    status: TableStatus = TableStatus.AVAILABLE


class ChosenCustomization(BaseModel):
    """A customization option picked for one order line"""
    name: str
    option: str
    price: float = Field(0, ge=0)


class OrderItem(BaseModel):
    menu_item: str = Field(..., description="Reference to menu_item _id as string")
    quantity: int = Field(..., ge=1)
    customizations: List[ChosenCustomization] = []
    subtotal: float = Field(0, ge=0)


class Order(BaseModel):
    """Collection: order"""
    order_number: str
    table: int = Field(..., ge=1)
    waiter: str = Field(..., description="Reference to user _id as string")
    items: List[OrderItem]
    status: OrderStatus = OrderStatus.PENDING
    subtotal: float = Field(..., ge=0)
    tax: float = Field(..., ge=0)
    service_charge: float = Field(..., ge=0)
    total: float = Field(..., ge=0)
    payment_method: Optional[PaymentMethod] = None
    payment_status: bool = False
    notes: Optional[str] = None


# Request payloads

class RegisterPayload(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: UserRole = UserRole.WAITER


class LoginPayload(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    active: Optional[bool] = None


class MenuItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    category: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, ge=0)
    image: Optional[str] = None
    customizations: Optional[List[Customization]] = None
    available: Optional[bool] = None
    preparation_time: Optional[int] = Field(None, ge=0)


class OrderItemPayload(BaseModel):
    menu_item: str
    quantity: int = Field(..., ge=1)
    customizations: List[ChosenCustomization] = []


class OrderPayload(BaseModel):
    table: Optional[int] = None
    items: Optional[List[OrderItemPayload]] = None
    waiter: Optional[str] = None
    notes: Optional[str] = None


class OrderUpdate(BaseModel):
    items: Optional[List[OrderItemPayload]] = None
    notes: Optional[str] = None


class OrderStatusPayload(BaseModel):
    status: OrderStatus


class PaymentPayload(BaseModel):
    payment_method: PaymentMethod


class OrderTablePayload(BaseModel):
    table: int = Field(..., ge=1)


class TableStatusPayload(BaseModel):
    status: TableStatus


class AssignWaiterPayload(BaseModel):
    waiter_id: Optional[str] = None
