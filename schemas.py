"""
Database Schemas

Document shapes for the three collections of the shopping mall.
Each collection is partitioned by one field:
- products -> "category"
- users    -> "email"
- orders   -> "userId"

Field names match the JSON wire format used by the storefront client.
"""

from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field

Number = Union[int, float]
UserType = Literal["customer", "admin"]
OrderStatus = Literal["pending", "processing", "shipped", "delivered", "cancelled"]

USER_TYPES = ("customer", "admin")
ORDER_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled")


class Product(BaseModel):
    id: str
    sku: str = Field(..., description="Unique stock keeping unit")
    name: str
    price: Number = Field(..., ge=0)
    category: str = Field(..., description="Partition key")
    image: str = Field(..., description="Image URL")
    description: str = ""
    stock: Number = Field(0, ge=0)
    createdAt: datetime
    updatedAt: datetime


class User(BaseModel):
    id: str
    email: str = Field(..., description="Partition key, unique")
    name: str
    password: str = Field(..., description="BCrypt hashed password")
    user_type: UserType = "customer"
    address: Optional[str] = None
    createdAt: datetime
    updatedAt: datetime


class OrderItem(BaseModel):
    productId: str
    name: str
    price: Number = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    category: Optional[str] = None
    image: Optional[str] = None


class ShippingAddress(BaseModel):
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    zipCode: Optional[str] = None


class PaymentInfo(BaseModel):
    impUid: Optional[str] = Field(None, description="Gateway transaction id")
    merchantUid: Optional[str] = Field(None, description="Merchant reference sent to the gateway")
    paidAmount: Optional[Number] = None
    payMethod: Optional[str] = None
    pg: Optional[str] = None
    status: Optional[str] = None


class Order(BaseModel):
    id: str
    userId: str = Field("guest", description="Partition key")
    items: List[OrderItem]
    totalAmount: Number = 0
    tax: Number = 0
    shippingFee: Number = 0
    status: OrderStatus = "pending"
    shippingAddress: ShippingAddress
    paymentInfo: Optional[PaymentInfo] = None
    createdAt: datetime
    updatedAt: datetime
