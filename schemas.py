import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, EmailStr

# Collections will be created automatically when inserting documents


def slugify(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.strip().lower()).strip("-")


class OrderStatus(str, Enum):
    NOT_PROCESS = "Not Process"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class Role(int, Enum):
    USER = 0
    ADMIN = 1


# ------------- Documents -------------

class User(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., description="bcrypt hash, never the plain password")
    phone: str
    address: str
    answer: str = Field(..., description="Security question answer used by forgot-password")
    role: Role = Field(Role.USER)


class Category(BaseModel):
    name: str = Field(..., min_length=1, max_length=60)
    slug: str


class Product(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    slug: str
    description: str = Field(..., max_length=2000)
    price: float = Field(..., ge=0)
    quantity: int = Field(..., ge=0)
    category: str = Field(..., description="Category ObjectId")
    shipping: bool = Field(False)


class Order(BaseModel):
    products: list = Field(default_factory=list, description="Product ObjectIds")
    payment: dict = Field(default_factory=dict)
    buyer: str = Field(..., description="User ObjectId")
    status: OrderStatus = Field(OrderStatus.NOT_PROCESS)


# ------------- Request bodies -------------
# Fields default to "" so handlers can report the first missing one by name
# instead of FastAPI's generic 422.

class RegisterIn(BaseModel):
    name: Optional[str] = ""
    email: Optional[str] = ""
    password: Optional[str] = ""
    phone: Optional[str] = ""
    address: Optional[str] = ""
    answer: Optional[str] = ""


class LoginIn(BaseModel):
    email: Optional[str] = ""
    password: Optional[str] = ""


class ForgotPasswordIn(BaseModel):
    email: Optional[str] = ""
    answer: Optional[str] = ""
    newPassword: Optional[str] = ""


class ProfileUpdateIn(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class OrderStatusIn(BaseModel):
    status: Optional[str] = None


class CategoryIn(BaseModel):
    name: Optional[str] = ""
